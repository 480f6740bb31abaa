"""ConfigManager — global and per-tool resize settings backed by TOML files."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "image-resizer-lib"
_DEFAULT_CACHE_DIR = Path.home() / ".cache" / "image-resizer-lib"

RESIZE_DEFAULTS: dict[str, Any] = {
    "format": "jpeg",
    "quality": 100,
    "mode": "contain",
    "cleanup_after_relocate": False,
}


class ConfigManager:
    """Hierarchical configuration for the resizer.

    Global values come from ``config.toml``; per-tool files in
    ``tools/<tool>.toml`` override them.  Nothing is read until
    :meth:`load` is called.

    Args:
        config_dir: Root directory for configuration files.
                    Defaults to ``~/.config/image-resizer-lib/``.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self._config_dir = config_dir or _DEFAULT_CONFIG_DIR
        self._global: dict[str, Any] = {}
        self._per_tool: dict[str, dict[str, Any]] = {}

    @property
    def config_dir(self) -> Path:
        """Return the configuration directory path."""
        return self._config_dir

    def load(self) -> None:
        """Load global and per-tool config from ``config_dir``.

        Missing files are silently skipped.
        """
        global_file = self._config_dir / "config.toml"
        if global_file.is_file():
            self._global = self._read_toml(global_file)
            logger.info("Loaded global config from %s", global_file)

        tools_dir = self._config_dir / "tools"
        if tools_dir.is_dir():
            for toml_file in sorted(tools_dir.glob("*.toml")):
                self._per_tool[toml_file.stem] = self._read_toml(toml_file)
                logger.info("Loaded config for tool '%s'", toml_file.stem)

    def get(self, key: str, *, tool: str | None = None, default: Any = None) -> Any:
        """Retrieve a config value with optional tool-level override.

        Args:
            key: The configuration key.
            tool: If given, check the tool-specific config first.
            default: Fallback value when the key is not found.

        Returns:
            The configuration value, or *default*.
        """
        if tool and tool in self._per_tool:
            value = self._per_tool[tool].get(key)
            if value is not None:
                return value
        return self._global.get(key, default)

    def set_global(self, key: str, value: Any) -> None:
        """Set a global configuration value (in-memory only)."""
        self._global[key] = value

    def cache_dir(self, *, tool: str | None = None) -> Path:
        """Return the root directory for intermediate files.

        ``~`` is expanded; falls back to ``~/.cache/image-resizer-lib``.
        """
        raw = self.get("cache_dir", tool=tool)
        if raw is None:
            return _DEFAULT_CACHE_DIR
        return Path(raw).expanduser()

    def resize_defaults(self, *, tool: str | None = None) -> dict[str, Any]:
        """Return resize defaults with configured values layered on top."""
        return {key: self.get(key, tool=tool, default=fallback) for key, fallback in RESIZE_DEFAULTS.items()}

    @staticmethod
    def _read_toml(path: Path) -> dict[str, Any]:
        with path.open("rb") as fh:
            return tomllib.load(fh)
