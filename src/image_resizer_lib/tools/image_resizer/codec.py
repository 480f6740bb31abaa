"""Image codec — decode, rotate, scale, encode and metadata primitives.

The resizer only talks to the ``ImageCodec`` protocol; ``PillowCodec`` is
the implementation used by default.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Protocol

from PIL import ExifTags, Image

from image_resizer_lib.core.datatypes import ImageProperties, SourceImageInfo
from image_resizer_lib.core.exceptions import CodecError
from image_resizer_lib.tools.image_resizer.geometry import round_half_up

logger = logging.getLogger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────

FORMAT_ALIASES: dict[str, str] = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "bmp": "BMP",
    "tiff": "TIFF",
    "gif": "GIF",
}

RESAMPLE_FILTERS: dict[str, Image.Resampling] = {
    "lanczos": Image.Resampling.LANCZOS,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "nearest": Image.Resampling.NEAREST,
}

# IFD pointer tags are rebuilt by Pillow when the EXIF block is serialised.
_POINTER_TAGS: frozenset[int] = frozenset(int(ifd) for ifd in ExifTags.IFD)

_JPEG_MODES: frozenset[str] = frozenset({"RGB", "L", "CMYK"})


class ImageCodec(Protocol):
    """Primitives the resize pipeline needs from an imaging backend."""

    def decode(self, data: bytes) -> Any: ...

    def size(self, image: Any) -> SourceImageInfo: ...

    def rotate(self, image: Any, degrees: int) -> Any: ...

    def scale(self, image: Any, x_scale: float, y_scale: float) -> Any: ...

    def encode(self, image: Any, fmt: str, quality: int) -> bytes: ...

    def release(self, image: Any) -> None: ...

    def read_properties(self, image: Any) -> ImageProperties: ...

    def write_properties(self, path: Path, properties: ImageProperties, quality: int) -> None: ...


def pil_format(fmt: str) -> str:
    """Map a format name such as ``jpg`` to Pillow's format identifier."""
    return FORMAT_ALIASES.get(fmt.lower(), fmt.upper())


class PillowCodec:
    """``ImageCodec`` backed by Pillow.

    Args:
        resample: Resampling filter name, one of ``RESAMPLE_FILTERS``.
    """

    def __init__(self, resample: str = "lanczos") -> None:
        self._resample = RESAMPLE_FILTERS[resample]

    def decode(self, data: bytes) -> Image.Image:
        """Decode image bytes into a fully loaded ``Image``.

        Raises:
            CodecError: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Exception as exc:
            msg = "Image data could not be decoded"
            raise CodecError(msg) from exc
        return image

    def size(self, image: Image.Image) -> SourceImageInfo:
        return SourceImageInfo(width=image.width, height=image.height)

    def rotate(self, image: Image.Image, degrees: int) -> Image.Image:
        """Rotate clockwise by ``degrees``, expanding the canvas to fit."""
        try:
            if degrees % 360 == 0:
                return image.copy()
            return image.rotate(-degrees, expand=True)
        except Exception as exc:
            msg = f"Rotation by {degrees} degrees failed"
            raise CodecError(msg) from exc

    def scale(self, image: Image.Image, x_scale: float, y_scale: float) -> Image.Image:
        """Resize by per-axis factors."""
        size = (round_half_up(image.width * x_scale), round_half_up(image.height * y_scale))
        try:
            return image.resize(size, resample=self._resample)
        except Exception as exc:
            msg = f"Scaling {image.width}x{image.height} to {size[0]}x{size[1]} failed"
            raise CodecError(msg) from exc

    def encode(self, image: Image.Image, fmt: str, quality: int) -> bytes:
        """Encode ``image`` as ``fmt``; ``quality`` is ignored by lossless formats.

        Raises:
            CodecError: For unknown formats or encoder failures.
        """
        target = pil_format(fmt)
        converted = image
        if target == "JPEG" and image.mode not in _JPEG_MODES:
            converted = image.convert("RGB")

        buffer = io.BytesIO()
        try:
            converted.save(buffer, format=target, quality=quality)
        except Exception as exc:
            msg = f"Encoding as '{fmt}' failed"
            raise CodecError(msg) from exc
        finally:
            if converted is not image:
                converted.close()
        return buffer.getvalue()

    def release(self, image: Image.Image) -> None:
        image.close()

    def read_properties(self, image: Image.Image) -> ImageProperties:
        """Collect every known EXIF tag present on ``image`` plus its ICC profile.

        Tags the image does not carry are skipped.
        """
        try:
            exif = image.getexif()
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
        except Exception as exc:
            msg = "Reading image properties failed"
            raise CodecError(msg) from exc

        tags: dict[str, Any] = {}
        exif_tags: dict[str, Any] = {}
        for tag in ExifTags.Base:
            if tag.value in _POINTER_TAGS:
                continue
            if tag.value in exif:
                tags[tag.name] = exif[tag.value]
            elif tag.value in exif_ifd:
                exif_tags[tag.name] = exif_ifd[tag.value]

        return ImageProperties(tags=tags, exif_tags=exif_tags, icc_profile=image.info.get("icc_profile"))

    def write_properties(self, path: Path, properties: ImageProperties, quality: int) -> None:
        """Rewrite the image at ``path`` with ``properties`` embedded.

        JPEG files keep their quantisation tables so the re-save does not
        degrade them further; other formats are re-saved at ``quality``,
        the value the file was first encoded with.

        Raises:
            CodecError: If the file cannot be decoded or re-encoded.
            OSError: If the file cannot be read or written.
        """
        if properties.is_empty:
            logger.debug("No properties to write to %s", path)
            return

        data = path.read_bytes()
        buffer = io.BytesIO()
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                exif = image.getexif()
                for name, value in properties.tags.items():
                    exif[ExifTags.Base[name].value] = value
                if properties.exif_tags:
                    exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
                    for name, value in properties.exif_tags.items():
                        exif_ifd[ExifTags.Base[name].value] = value

                save_kwargs: dict[str, Any] = {"exif": exif.tobytes()}
                if properties.icc_profile is not None:
                    save_kwargs["icc_profile"] = properties.icc_profile
                save_kwargs["quality"] = "keep" if image.format == "JPEG" else quality
                image.save(buffer, format=image.format, **save_kwargs)
        except Exception as exc:
            msg = f"Writing image properties to '{path}' failed"
            raise CodecError(msg) from exc

        with path.open("wb") as fh:
            fh.write(buffer.getvalue())
