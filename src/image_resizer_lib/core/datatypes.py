"""Shared value objects passed between the resizer stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

FILE_SCHEME = "file://"


class FitMode(enum.Enum):
    """How a source aspect ratio is reconciled with the requested box."""

    STRETCH = "stretch"
    CONTAIN = "contain"
    COVER = "cover"

    @classmethod
    def parse(cls, value: str | FitMode | None) -> FitMode:
        """Map a mode string to a ``FitMode``; unknown values fall back to ``CONTAIN``."""
        if isinstance(value, FitMode):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.CONTAIN


@dataclass(frozen=True)
class ResizeRequest:
    """Everything a single resize call needs."""

    source_ref: str
    width: int = 0
    height: int = 0
    format: str = "jpeg"
    quality: int = 100
    mode: str = "contain"
    only_scale_down: bool = False
    rotation: int = 0
    output_dir: Path | None = None
    keep_meta: bool = False

    @property
    def fit_mode(self) -> FitMode:
        """Return the parsed fit mode."""
        return FitMode.parse(self.mode)


@dataclass(frozen=True)
class SourceImageInfo:
    """Intrinsic pixel size of the decoded source."""

    width: int
    height: int


@dataclass(frozen=True)
class ResolvedGeometry:
    """Final output size and the scale factors handed to the codec."""

    final_width: int
    final_height: int
    x_scale: float
    y_scale: float


@dataclass(frozen=True)
class WorkingFile:
    """The file the codec decodes from: the source itself or its cache copy."""

    path: Path
    copied: bool


@dataclass(frozen=True)
class CacheLocation:
    """Output written inside the cache directory."""

    path: Path

    @property
    def uri(self) -> str:
        """Return the ``file://`` URI of the location."""
        return FILE_SCHEME + str(self.path)


@dataclass(frozen=True)
class RelocatedLocation:
    """Output copied to a caller-supplied directory."""

    path: Path
    cache_path: Path

    @property
    def uri(self) -> str:
        """Return the ``file://`` URI of the location."""
        return FILE_SCHEME + str(self.path)


Location = CacheLocation | RelocatedLocation


@dataclass(frozen=True)
class ImageProperties:
    """Embeddable metadata read from a decoded image.

    ``tags`` holds IFD0 entries and ``exif_tags`` entries of the Exif
    sub-IFD, both keyed by tag name (``"Make"``, ``"DateTimeOriginal"``).
    """

    tags: dict[str, Any] = field(default_factory=dict)
    exif_tags: dict[str, Any] = field(default_factory=dict)
    icc_profile: bytes | None = None

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when there is nothing to write back."""
        return not self.tags and not self.exif_tags and self.icc_profile is None


@dataclass(frozen=True)
class ResultRecord:
    """Metadata describing the produced file."""

    path: Path
    uri: str
    size: int
    name: str | None
    width: int
    height: int
    base64: str

    def to_dict(self) -> dict[str, Any]:
        """Return the record as a plain mapping with string paths."""
        return {
            "path": str(self.path),
            "uri": self.uri,
            "size": self.size,
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "base64": self.base64,
        }


@dataclass(frozen=True)
class StageFailure:
    """A pipeline stage that failed but did not abort the resize."""

    stage: str
    message: str


@dataclass(frozen=True)
class ResizeOutcome:
    """Result of a resize: the record plus any stages that failed along the way."""

    record: ResultRecord
    location: Location
    failures: tuple[StageFailure, ...] = ()

    @property
    def ok(self) -> bool:
        """Return ``True`` when every stage succeeded."""
        return not self.failures
