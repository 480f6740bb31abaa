"""Image Resizer tool — resizes one image with stretch, contain or cover fitting."""

from image_resizer_lib.tools.image_resizer.logic import resize, resize_image
from image_resizer_lib.tools.image_resizer.tool import ImageResizerTool

__all__ = ["ImageResizerTool", "resize", "resize_image"]
