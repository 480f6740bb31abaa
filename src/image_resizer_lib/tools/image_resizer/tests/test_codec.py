"""Tests for the Pillow-backed codec."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import ExifTags, Image

from image_resizer_lib.core.datatypes import ImageProperties, SourceImageInfo
from image_resizer_lib.core.exceptions import CodecError
from image_resizer_lib.tools.image_resizer.codec import PillowCodec, pil_format

# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def codec() -> PillowCodec:
    """Return a codec using the default filter."""
    return PillowCodec()


@pytest.fixture()
def image() -> Image.Image:
    """A 100x80 RGB image."""
    return Image.new("RGB", (100, 80), color=(255, 0, 0))


def _png_bytes(size: tuple[int, int] = (100, 80)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(0, 128, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


def _jpeg_with_exif(path: Path, make: str = "Acme", model: str = "Cam 1") -> Path:
    exif = Image.Exif()
    exif[ExifTags.Base.Make] = make
    exif[ExifTags.Base.Model] = model
    Image.new("RGB", (64, 48), color=(10, 20, 30)).save(str(path), format="JPEG", exif=exif)
    return path


# ── TestDecode ─────────────────────────────────────────────────────────────


class TestDecode:
    """Tests for ``decode`` and ``size``."""

    def test_decodes_png(self, codec: PillowCodec) -> None:
        """Valid bytes decode to an image of the right size."""
        decoded = codec.decode(_png_bytes((30, 20)))
        assert codec.size(decoded) == SourceImageInfo(30, 20)

    def test_invalid_bytes_raise(self, codec: PillowCodec) -> None:
        """Garbage input raises CodecError."""
        with pytest.raises(CodecError, match="could not be decoded"):
            codec.decode(b"not an image")

    def test_format_aliases(self) -> None:
        """Common names map to Pillow identifiers; unknown ones are upper-cased."""
        assert pil_format("jpg") == "JPEG"
        assert pil_format("JPEG") == "JPEG"
        assert pil_format("webp") == "WEBP"
        assert pil_format("heic") == "HEIC"


# ── TestTransforms ─────────────────────────────────────────────────────────


class TestTransforms:
    """Tests for ``rotate`` and ``scale``."""

    def test_rotate_quarter_turn_swaps_axes(self, codec: PillowCodec, image: Image.Image) -> None:
        """A 90-degree rotation swaps width and height."""
        rotated = codec.rotate(image, 90)
        assert rotated.size == (80, 100)

    def test_rotate_zero_returns_copy(self, codec: PillowCodec, image: Image.Image) -> None:
        """No rotation still yields an independent image."""
        rotated = codec.rotate(image, 360)
        assert rotated is not image
        assert rotated.size == image.size

    def test_rotate_is_clockwise(self, codec: PillowCodec) -> None:
        """The top-left pixel ends up top-right after a clockwise turn."""
        img = Image.new("RGB", (2, 2), color=(0, 0, 0))
        img.putpixel((0, 0), (255, 255, 255))

        rotated = codec.rotate(img, 90)

        assert rotated.getpixel((1, 0)) == (255, 255, 255)

    def test_scale_by_factors(self, codec: PillowCodec, image: Image.Image) -> None:
        """Per-axis factors are applied to each dimension."""
        scaled = codec.scale(image, 0.5, 0.25)
        assert scaled.size == (50, 20)

    def test_scale_to_nothing_raises(self, codec: PillowCodec, image: Image.Image) -> None:
        """A zero-sized target is a codec error."""
        with pytest.raises(CodecError, match="Scaling"):
            codec.scale(image, 0.0, 0.5)


# ── TestEncode ─────────────────────────────────────────────────────────────


class TestEncode:
    """Tests for ``encode``."""

    @pytest.mark.parametrize(("fmt", "expected"), [("png", "PNG"), ("jpeg", "JPEG"), ("jpg", "JPEG"), ("webp", "WEBP")])
    def test_encodes_supported_formats(
        self, codec: PillowCodec, image: Image.Image, fmt: str, expected: str
    ) -> None:
        """Encoded bytes decode back as the requested format and size."""
        data = codec.encode(image, fmt, 90)

        with Image.open(io.BytesIO(data)) as reopened:
            assert reopened.format == expected
            assert reopened.size == (100, 80)

    def test_jpeg_from_rgba(self, codec: PillowCodec) -> None:
        """Images with alpha are flattened for JPEG."""
        rgba = Image.new("RGBA", (10, 10), color=(1, 2, 3, 128))
        data = codec.encode(rgba, "jpeg", 80)

        with Image.open(io.BytesIO(data)) as reopened:
            assert reopened.mode == "RGB"

    def test_unknown_format_raises(self, codec: PillowCodec, image: Image.Image) -> None:
        """Formats Pillow cannot write raise CodecError."""
        with pytest.raises(CodecError, match="Encoding as 'bogus' failed"):
            codec.encode(image, "bogus", 80)


# ── TestProperties ─────────────────────────────────────────────────────────


class TestProperties:
    """Tests for metadata read and write."""

    def test_read_properties_from_exif(self, codec: PillowCodec, tmp_path: Path) -> None:
        """Known tags present on the image are collected by name."""
        data = _jpeg_with_exif(tmp_path / "src.jpg").read_bytes()
        props = codec.read_properties(codec.decode(data))

        assert props.tags["Make"] == "Acme"
        assert props.tags["Model"] == "Cam 1"
        assert "Orientation" not in props.tags

    def test_read_properties_without_metadata(self, codec: PillowCodec) -> None:
        """An image without EXIF or ICC yields empty properties."""
        props = codec.read_properties(codec.decode(_png_bytes()))
        assert props.is_empty

    def test_write_properties_round_trip(self, codec: PillowCodec, tmp_path: Path) -> None:
        """Written tags can be read back from the rewritten file."""
        target = tmp_path / "out.jpg"
        Image.new("RGB", (32, 24)).save(str(target), format="JPEG")

        codec.write_properties(target, ImageProperties(tags={"Make": "Acme", "Model": "Cam 2"}), quality=90)

        with Image.open(target) as reopened:
            exif = reopened.getexif()
            assert exif[ExifTags.Base.Make] == "Acme"
            assert exif[ExifTags.Base.Model] == "Cam 2"
            assert reopened.size == (32, 24)

    def test_write_properties_to_png(self, codec: PillowCodec, tmp_path: Path) -> None:
        """PNG outputs accept EXIF tags too."""
        target = tmp_path / "out.png"
        target.write_bytes(_png_bytes((8, 8)))

        codec.write_properties(target, ImageProperties(tags={"Make": "Acme"}), quality=90)

        with Image.open(target) as reopened:
            assert reopened.getexif()[ExifTags.Base.Make] == "Acme"

    def test_write_properties_keeps_webp_quality(self, codec: PillowCodec, tmp_path: Path) -> None:
        """WEBP outputs are re-saved at the quality they were requested with."""
        noise = Image.effect_noise((128, 128), 64).convert("RGB")
        payload = codec.encode(noise, "webp", 100)
        props = ImageProperties(tags={"Make": "Acme"})
        high = tmp_path / "high.webp"
        low = tmp_path / "low.webp"
        high.write_bytes(payload)
        low.write_bytes(payload)

        codec.write_properties(high, props, quality=100)
        codec.write_properties(low, props, quality=10)

        assert high.stat().st_size > low.stat().st_size
        assert high.stat().st_size >= 0.9 * len(payload)
        with Image.open(high) as reopened:
            assert reopened.getexif()[ExifTags.Base.Make] == "Acme"

    def test_write_empty_properties_is_noop(self, codec: PillowCodec, tmp_path: Path) -> None:
        """Nothing is rewritten when there is nothing to write."""
        target = tmp_path / "out.png"
        original = _png_bytes((8, 8))
        target.write_bytes(original)

        codec.write_properties(target, ImageProperties(), quality=90)

        assert target.read_bytes() == original

    def test_write_properties_to_garbage_raises(self, codec: PillowCodec, tmp_path: Path) -> None:
        """An unreadable output file raises CodecError."""
        target = tmp_path / "broken.png"
        target.write_bytes(b"")

        with pytest.raises(CodecError, match="Writing image properties"):
            codec.write_properties(target, ImageProperties(tags={"Make": "Acme"}), quality=90)
