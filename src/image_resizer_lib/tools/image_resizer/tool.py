"""ImageResizerTool — BaseTool wrapper around the resize pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from image_resizer_lib.core.base_tool import BaseTool, ToolParameter
from image_resizer_lib.core.config import ConfigManager
from image_resizer_lib.core.datatypes import FitMode, ResizeOutcome, ResizeRequest
from image_resizer_lib.core.events import EventBus
from image_resizer_lib.core.exceptions import ValidationError
from image_resizer_lib.tools.image_resizer.cache import CacheManager
from image_resizer_lib.tools.image_resizer.codec import RESAMPLE_FILTERS, PillowCodec
from image_resizer_lib.tools.image_resizer.logic import TOOL_NAME, resize_image


class ImageResizerTool(BaseTool):
    """Resize one image into the cache directory, optionally copying it elsewhere."""

    name = TOOL_NAME
    display_name = "Image Resizer"
    description = "Resize an image with stretch, contain or cover fitting"
    version = "0.1.0"

    def __init__(
        self,
        cache_dir: Path | None = None,
        config: ConfigManager | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialise the image resizer tool.

        Args:
            cache_dir: Root for intermediate files.  Taken from ``config``
                       when omitted.
            config: Loaded configuration supplying defaults.
            event_bus: Shared event bus for stage and completion events.
        """
        super().__init__(event_bus=event_bus)
        self.config = config or ConfigManager()
        self.cache = CacheManager(cache_dir or self.config.cache_dir(tool=self.name))
        self._defaults = self.config.resize_defaults(tool=self.name)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for a resize call."""
        return [
            ToolParameter(
                name="source",
                label="Source",
                type=str,
                required=True,
                help="Path or file:// URI of the image to resize.",
            ),
            ToolParameter(
                name="width",
                label="Width",
                type=int,
                default=0,
                help="Target width in pixels; 0 keeps the source size.",
            ),
            ToolParameter(
                name="height",
                label="Height",
                type=int,
                default=0,
                help="Target height in pixels; 0 keeps the source size.",
            ),
            ToolParameter(
                name="format",
                label="Format",
                type=str,
                default=self._defaults["format"],
                help="Output format passed to the codec (png, jpeg, webp, ...).",
            ),
            ToolParameter(
                name="quality",
                label="Quality",
                type=int,
                default=self._defaults["quality"],
                min_value=0,
                max_value=100,
                help="Encoder quality 0-100.",
            ),
            ToolParameter(
                name="mode",
                label="Fit mode",
                type=str,
                default=self._defaults["mode"],
                help=f"One of {[m.value for m in FitMode]}; anything else means contain.",
            ),
            ToolParameter(
                name="only_scale_down",
                label="Only scale down",
                type=bool,
                default=False,
                help="Never make the image larger than the source.",
            ),
            ToolParameter(
                name="rotation",
                label="Rotation",
                type=int,
                default=0,
                help="Clockwise rotation in degrees, applied before scaling.",
            ),
            ToolParameter(
                name="output_dir",
                label="Output directory",
                type=Path,
                default=None,
                help="Directory the result is copied to. None keeps it in the cache.",
            ),
            ToolParameter(
                name="keep_meta",
                label="Keep metadata",
                type=bool,
                default=False,
                help="Copy EXIF tags and ICC profile from the source.",
            ),
            ToolParameter(
                name="resample",
                label="Resample filter",
                type=str,
                default="lanczos",
                choices=sorted(RESAMPLE_FILTERS),
                help="Resampling algorithm for interpolation.",
            ),
        ]

    def validate(self, params: dict[str, Any]) -> None:
        """Validate parameters, rejecting an empty format.

        Raises:
            ValidationError: If any parameter is invalid.
        """
        super().validate(params)
        if not params.get("format"):
            msg = "Parameter 'format' must not be empty"
            raise ValidationError(msg)

    def _do_execute(self, params: dict[str, Any]) -> ResizeOutcome:
        """Build the request and run the resize pipeline."""
        output_dir = params.get("output_dir")
        request = ResizeRequest(
            source_ref=str(params["source"]),
            width=params["width"],
            height=params["height"],
            format=params["format"],
            quality=params["quality"],
            mode=params["mode"],
            only_scale_down=params["only_scale_down"],
            rotation=params["rotation"],
            output_dir=Path(output_dir) if output_dir is not None else None,
            keep_meta=params["keep_meta"],
        )
        return resize_image(
            request,
            cache=self.cache,
            codec=PillowCodec(resample=params["resample"]),
            cleanup_after_relocate=bool(self._defaults["cleanup_after_relocate"]),
            event_bus=self.event_bus,
        )
