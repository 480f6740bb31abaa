"""BaseTool ABC — parameter schema, validation and run lifecycle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from image_resizer_lib.core.events import EventBus
from image_resizer_lib.core.exceptions import ValidationError


@dataclass
class ToolParameter:
    """Declarative parameter definition — drives validation and CLI help."""

    name: str
    label: str
    type: type
    default: Any = None
    required: bool = False
    choices: list[Any] | None = None
    min_value: float | None = None
    max_value: float | None = None
    help: str = ""


class BaseTool(ABC):
    """Template Method base for resizer tools.

    Subclasses provide metadata, a parameter schema and ``_do_execute``;
    ``run`` fills in defaults, validates and executes.
    """

    name: str
    display_name: str
    description: str
    version: str = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the tool with an optional event bus.

        Args:
            event_bus: Event bus for emitting stage and completion events.
                       A default bus is created if none is provided.
        """
        self.event_bus = event_bus or EventBus()

    @abstractmethod
    def define_parameters(self) -> list[ToolParameter]:
        """Return the list of parameters this tool accepts."""
        ...

    def run(self, params: dict[str, Any]) -> Any:
        """Execute the tool — public entry point, do NOT override.

        Args:
            params: Parameter values keyed by parameter name.  Missing
                    optional parameters take their declared default.

        Returns:
            The result produced by ``_do_execute``.
        """
        resolved = self.apply_defaults(params)
        self.validate(resolved)
        return self._do_execute(resolved)

    def apply_defaults(self, params: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``params`` with declared defaults filled in."""
        resolved = dict(params)
        for param in self.define_parameters():
            if resolved.get(param.name) is None:
                resolved[param.name] = param.default
        return resolved

    def validate(self, params: dict[str, Any]) -> None:
        """Validate params against ``define_parameters()``.

        Checks required parameters, ``choices`` membership and numeric
        bounds.  Override to add tool-specific rules.

        Raises:
            ValidationError: If any parameter is invalid.
        """
        for param in self.define_parameters():
            value = params.get(param.name)
            if value is None:
                if param.required:
                    msg = f"Parameter '{param.name}' is required"
                    raise ValidationError(msg)
                continue
            if param.choices is not None and value not in param.choices:
                msg = f"Parameter '{param.name}' must be one of {param.choices}, got '{value}'"
                raise ValidationError(msg)
            if param.min_value is not None and value < param.min_value:
                msg = f"Parameter '{param.name}' must be >= {param.min_value}, got {value}"
                raise ValidationError(msg)
            if param.max_value is not None and value > param.max_value:
                msg = f"Parameter '{param.name}' must be <= {param.max_value}, got {value}"
                raise ValidationError(msg)

    @abstractmethod
    def _do_execute(self, params: dict[str, Any]) -> Any:
        """Core logic — MUST override.

        Args:
            params: Validated parameter dictionary.

        Returns:
            The tool's result.
        """
        ...
