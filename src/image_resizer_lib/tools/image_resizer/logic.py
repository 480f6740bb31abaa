"""Single-image resize pipeline — no CLI imports allowed."""

from __future__ import annotations

import base64
import contextlib
import logging
from pathlib import Path
from typing import Any

from image_resizer_lib.core.datatypes import (
    CacheLocation,
    Location,
    ResizeOutcome,
    ResizeRequest,
    ResolvedGeometry,
    ResultRecord,
    StageFailure,
)
from image_resizer_lib.core.events import EventBus
from image_resizer_lib.core.exceptions import CodecError, ToolError, ValidationError
from image_resizer_lib.tools.image_resizer.cache import CacheManager, extract_name
from image_resizer_lib.tools.image_resizer.codec import ImageCodec, PillowCodec
from image_resizer_lib.tools.image_resizer.geometry import resolve_geometry

logger = logging.getLogger(__name__)

TOOL_NAME = "image_resizer"

_PATH_SEPARATORS = ("/", "\\")

# ── Validation ────────────────────────────────────────────────────────────


def validate_request(request: ResizeRequest) -> None:
    """Reject requests that can be refused before touching the filesystem.

    Raises:
        ValidationError: If the format is empty or names a path, or quality
            is outside 0-100.
    """
    if not request.format:
        msg = "Output format must not be empty"
        raise ValidationError(msg)
    if any(sep in request.format for sep in _PATH_SEPARATORS):
        msg = f"Output format must not contain a path separator, got '{request.format}'"
        raise ValidationError(msg)
    if not 0 <= request.quality <= 100:
        msg = f"Quality must be between 0 and 100, got {request.quality}"
        raise ValidationError(msg)


# ── Best-effort stages ────────────────────────────────────────────────────


def _encode_stage(
    codec: ImageCodec,
    source_image: Any,
    geometry: ResolvedGeometry,
    request: ResizeRequest,
    failures: list[StageFailure],
) -> bytes:
    """Rotate, scale and encode; on failure log it and return an empty payload."""
    with contextlib.ExitStack() as stack:
        try:
            rotated = codec.rotate(source_image, request.rotation)
            stack.callback(codec.release, rotated)
            scaled = codec.scale(rotated, geometry.x_scale, geometry.y_scale)
            stack.callback(codec.release, scaled)
            return codec.encode(scaled, request.format, request.quality)
        except CodecError as exc:
            logger.error("Resize of %s failed while encoding: %s", request.source_ref, exc)
            failures.append(StageFailure(stage="encode", message=str(exc)))
            return b""


def _write_stage(
    cache: CacheManager,
    output_path: Path,
    payload: bytes,
    request: ResizeRequest,
    failures: list[StageFailure],
) -> tuple[CacheLocation, bytes]:
    """Write the payload; on failure log it and leave an empty file instead."""
    try:
        return cache.finalize(output_path, payload), payload
    except OSError as exc:
        logger.error("Resize of %s failed while writing %s: %s", request.source_ref, output_path, exc)
        failures.append(StageFailure(stage="encode", message=str(exc)))
    return cache.finalize(output_path, b""), b""


def _metadata_stage(
    codec: ImageCodec,
    source_image: Any,
    output_path: Path,
    quality: int,
    failures: list[StageFailure],
) -> None:
    """Copy embeddable metadata from the source onto the written output."""
    try:
        properties = codec.read_properties(source_image)
        codec.write_properties(output_path, properties, quality)
    except (CodecError, OSError) as exc:
        logger.error("Copying metadata to %s failed: %s", output_path, exc)
        failures.append(StageFailure(stage="metadata", message=str(exc)))


# ── Core resize logic ────────────────────────────────────────────────────


def resize_image(
    request: ResizeRequest,
    *,
    cache: CacheManager,
    codec: ImageCodec | None = None,
    cleanup_after_relocate: bool = False,
    event_bus: EventBus | None = None,
) -> ResizeOutcome:
    """Resize one image and describe the file that was produced.

    Encoding, output-write and metadata failures do not abort the call:
    they are logged, listed in ``ResizeOutcome.failures`` and the record
    describes whatever file resulted (an encode or write failure leaves an
    empty output file).

    Args:
        request: What to resize and how.
        cache: Manager for the cache directory holding working and output files.
        codec: Imaging backend; defaults to ``PillowCodec``.
        cleanup_after_relocate: Delete the cache output once it has been
            copied to ``request.output_dir``.
        event_bus: Optional bus receiving ``stage_failed`` and ``completed`` events.

    Returns:
        A ``ResizeOutcome`` with the result record and any stage failures.

    Raises:
        ValidationError: If the request is invalid.
        GeometryError: If the source has degenerate dimensions.
        ToolError: If the source cannot be decoded.
        OSError: If copying, writing or stat-ing a file fails.
    """
    validate_request(request)
    codec = codec or PillowCodec()
    failures: list[StageFailure] = []

    working = cache.prepare_working_copy(request.source_ref)
    data = working.path.read_bytes()

    try:
        source_image = codec.decode(data)
    except CodecError as exc:
        msg = f"Image '{request.source_ref}' could not be opened"
        raise ToolError(msg) from exc

    with contextlib.ExitStack() as stack:
        stack.callback(codec.release, source_image)

        geometry = resolve_geometry(codec.size(source_image), request)
        logger.debug("Resolved geometry for %s: %s", request.source_ref, geometry)

        payload = _encode_stage(codec, source_image, geometry, request, failures)
        output_path = cache.allocate_output_path(request.format, request.source_ref)
        cache_location, payload = _write_stage(cache, output_path, payload, request, failures)

        if request.keep_meta:
            _metadata_stage(codec, source_image, output_path, request.quality, failures)

    location: Location = cache_location
    if request.output_dir is not None:
        location = cache.relocate(
            cache_location,
            request.output_dir,
            request.format,
            remove_cache_copy=cleanup_after_relocate,
        )

    record = ResultRecord(
        path=location.path,
        uri=location.uri,
        size=cache.file_size(location.path),
        name=extract_name(location.uri),
        width=geometry.final_width,
        height=geometry.final_height,
        base64=base64.b64encode(payload).decode("ascii"),
    )

    if event_bus is not None:
        for failure in failures:
            event_bus.emit("stage_failed", tool=TOOL_NAME, stage=failure.stage, message=failure.message)
        event_bus.emit("completed", tool=TOOL_NAME, path=record.path, ok=not failures)

    return ResizeOutcome(record=record, location=location, failures=tuple(failures))


def resize(
    uri: str,
    width: int,
    height: int,
    format: str,  # noqa: A002
    quality: int,
    mode: str,
    only_scale_down: bool,
    rotation: int,
    output_path: str | None,
    keep_meta: bool,
    *,
    cache_dir: Path,
) -> dict[str, Any]:
    """Resize ``uri`` and return the result as a plain mapping.

    Positional parameters follow the host module's call signature;
    ``output_path`` is the directory the result is copied to, if any.
    Stage failures are logged but not reported in the returned mapping.
    """
    request = ResizeRequest(
        source_ref=uri,
        width=width,
        height=height,
        format=format,
        quality=quality,
        mode=mode,
        only_scale_down=only_scale_down,
        rotation=rotation,
        output_dir=Path(output_path) if output_path else None,
        keep_meta=keep_meta,
    )
    outcome = resize_image(request, cache=CacheManager(cache_dir))
    return outcome.record.to_dict()
