"""Working-file and output-file placement under the cache directory."""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from image_resizer_lib.core.datatypes import FILE_SCHEME, CacheLocation, RelocatedLocation, WorkingFile
from image_resizer_lib.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "rn_image_resizer_lib_temp_"


def temp_file_name(suffix: str) -> str:
    """Return a collision-resistant file name, e.g. ``rn_image_resizer_lib_temp_<uuid4>.png``."""
    return f"{TEMP_PREFIX}{uuid.uuid4()}{suffix}"


def extract_name(uri: str) -> str | None:
    """Return the last path segment of a ``file`` URI.

    Other schemes are not resolved and yield ``None``.
    """
    if not uri.startswith("file"):
        return None
    return uri[uri.rfind("/") + 1 :]


class CacheManager:
    """Owns the naming and placement of intermediate and output files.

    Every file lives beneath ``cache_root`` in a directory that mirrors the
    source's own directory: sources already inside the cache keep their
    relative directory, other sources have their absolute directory
    re-rooted under the cache.

    Args:
        cache_root: Process-private writable directory for temp files.
    """

    def __init__(self, cache_root: Path) -> None:
        self._root = Path(cache_root).expanduser().resolve()

    @property
    def root(self) -> Path:
        """Return the resolved cache root."""
        return self._root

    # ── Path derivation ──────────────────────────────────────────────────

    @staticmethod
    def to_path(source_ref: str) -> Path:
        """Convert a plain path or ``file://`` URI into a resolved ``Path``.

        Raises:
            ValidationError: For empty references or non-file schemes.
        """
        if not source_ref:
            msg = "Source reference must not be empty"
            raise ValidationError(msg)
        if source_ref.startswith(FILE_SCHEME):
            raw = source_ref[len(FILE_SCHEME) :]
        elif "://" in source_ref:
            msg = f"Unsupported URI scheme in '{source_ref}'"
            raise ValidationError(msg)
        else:
            raw = source_ref
        return Path(raw).expanduser().resolve()

    def is_cached(self, source_ref: str) -> bool:
        """Return ``True`` when the source's directory lies inside the cache root."""
        source_dir = self.to_path(source_ref).parent
        return source_dir.is_relative_to(self._root)

    def relative_dir(self, source_ref: str) -> Path:
        """Return the source's directory expressed beneath the cache root."""
        source_dir = self.to_path(source_ref).parent
        if source_dir.is_relative_to(self._root):
            return source_dir.relative_to(self._root)
        return Path(*source_dir.parts[1:])

    def _target_dir(self, source_ref: str) -> Path:
        target = self._root / self.relative_dir(source_ref)
        target.mkdir(parents=True, exist_ok=True)
        return target

    # ── File lifecycle ───────────────────────────────────────────────────

    def prepare_working_copy(self, source_ref: str) -> WorkingFile:
        """Return the file to decode from.

        Sources already in the cache are used in place.  Anything else is
        copied byte-for-byte into the cache first so the original is never
        touched.

        Raises:
            OSError: If the copy fails.
        """
        source = self.to_path(source_ref)
        if self.is_cached(source_ref):
            logger.debug("Source %s is already cached, using it in place", source)
            return WorkingFile(path=source, copied=False)

        destination = self._target_dir(source_ref) / temp_file_name(source.suffix)
        shutil.copyfile(source, destination)
        logger.debug("Copied %s to %s", source, destination)
        return WorkingFile(path=destination, copied=True)

    def allocate_output_path(self, fmt: str, source_ref: str) -> Path:
        """Return a fresh ``<cache>/<relative dir>/<temp name>.<fmt>`` path."""
        return self._target_dir(source_ref) / temp_file_name(f".{fmt}")

    def finalize(self, output_path: Path, data: bytes) -> CacheLocation:
        """Write ``data`` to ``output_path`` and return its cache location."""
        with output_path.open("wb") as fh:
            fh.write(data)
        return CacheLocation(path=output_path)

    def relocate(
        self,
        location: CacheLocation,
        output_dir: Path,
        fmt: str,
        *,
        remove_cache_copy: bool = False,
    ) -> RelocatedLocation:
        """Copy a written output into ``output_dir`` under a new temp name.

        Args:
            location: The cache location that was just written.
            output_dir: Caller-supplied destination directory (created if missing).
            fmt: Output format, used as the file extension.
            remove_cache_copy: Delete the cache file after copying.

        Raises:
            OSError: If the copy fails.
        """
        output_dir = Path(output_dir).expanduser()
        output_dir.mkdir(parents=True, exist_ok=True)
        destination = output_dir / temp_file_name(f".{fmt}")
        shutil.copyfile(location.path, destination)
        logger.info("Relocated %s to %s", location.path, destination)

        if remove_cache_copy:
            location.path.unlink()
        return RelocatedLocation(path=destination, cache_path=location.path)

    @staticmethod
    def file_size(path: Path) -> int:
        """Return the size of ``path`` in bytes."""
        return path.stat().st_size
