"""Output geometry — pure arithmetic, no I/O."""

from __future__ import annotations

import math

from image_resizer_lib.core.datatypes import FitMode, ResizeRequest, ResolvedGeometry, SourceImageInfo
from image_resizer_lib.core.exceptions import GeometryError

SCALE_DECIMALS = 5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    ``round()`` would round halves to even (``round(2.5) == 2``), which
    gives a pixel less than expected on exact halves.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def round_scale(value: float) -> float:
    """Round a scale factor to ``SCALE_DECIMALS`` places, halves away from zero."""
    factor = 10**SCALE_DECIMALS
    return round_half_up(value * factor) / factor


def _final_size(source: SourceImageInfo, request: ResizeRequest) -> tuple[int, int]:
    if request.width <= 0 or request.height <= 0:
        return source.width, source.height

    match request.fit_mode:
        case FitMode.STRETCH:
            if request.only_scale_down:
                return min(source.width, request.width), min(source.height, request.height)
            return request.width, request.height
        case FitMode.COVER:
            ratio = max(request.width / source.width, request.height / source.height)
        case _:
            ratio = min(request.width / source.width, request.height / source.height)

    if request.only_scale_down:
        ratio = min(ratio, 1.0)
    return round_half_up(source.width * ratio), round_half_up(source.height * ratio)


def resolve_geometry(source: SourceImageInfo, request: ResizeRequest) -> ResolvedGeometry:
    """Compute the final output size and codec scale factors.

    A target with a non-positive width or height means "keep the source
    size".  Otherwise ``stretch`` takes the target as-is, ``cover`` scales
    so the box is filled and ``contain`` (also used for unknown modes)
    scales so the image fits inside it.  ``only_scale_down`` never lets a
    dimension exceed the source.

    Args:
        source: Pixel size of the decoded source.
        request: The resize request.

    Returns:
        The final size and the per-axis scale factors rounded to
        five decimals.

    Raises:
        GeometryError: If the source has a zero or negative dimension.
    """
    if source.width <= 0 or source.height <= 0:
        msg = f"Source image has degenerate dimensions {source.width}x{source.height}"
        raise GeometryError(msg)

    final_width, final_height = _final_size(source, request)
    return ResolvedGeometry(
        final_width=final_width,
        final_height=final_height,
        x_scale=round_scale(final_width / source.width),
        y_scale=round_scale(final_height / source.height),
    )
