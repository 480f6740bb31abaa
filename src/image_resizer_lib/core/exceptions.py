"""Exception hierarchy for image-resizer-lib."""


class ResizerError(Exception):
    """Base exception for all image-resizer-lib errors."""


class ToolError(ResizerError):
    """Raised when a resize cannot proceed, e.g. the source cannot be decoded."""


class ValidationError(ResizerError):
    """Raised when request or parameter validation fails."""


class GeometryError(ValidationError):
    """Raised when output geometry cannot be derived from the source dimensions."""


class CodecError(ResizerError):
    """Raised by an image codec when a rotate, scale, encode or metadata step fails."""
