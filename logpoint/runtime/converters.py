"""
Value conversion for logged arguments and return values.

Converters turn raw values into something worth putting in a log message. The
lookup walks the value's MRO, so a converter registered for a base class also
handles its subclasses.
"""
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from logpoint.logging import get_logger

logger = get_logger(__name__)

Converter = Callable[[Any], Any]


class Converters:
    """
    Registry of converters keyed by type.

    Values without a registered converter, and None, are logged unchanged.
    """

    def __init__(self, converters: Optional[Dict[type, Converter]] = None):
        """
        Initialize the registry.

        Args:
            converters: Optional initial mapping of type to converter
        """
        self._converters: Dict[type, Converter] = dict(converters or {})

    def register(self, value_type: type, converter: Optional[Converter] = None):
        """
        Register a converter for `value_type` and its subclasses.

        Can be called directly or used as a decorator:

            @converters.register(Money)
            def money(value):
                return f"{value.amount} {value.currency}"

        Args:
            value_type: Type the converter handles
            converter: The converter; omitted when used as a decorator

        Returns:
            The converter, or a decorator registering it
        """
        if converter is None:
            def decorator(fn: Converter) -> Converter:
                self._converters[value_type] = fn
                return fn
            return decorator
        self._converters[value_type] = converter
        return converter

    def find(self, value_type: type) -> Optional[Converter]:
        """Most specific converter for `value_type`, or None."""
        for klass in value_type.__mro__:
            converter = self._converters.get(klass)
            if converter is not None:
                return converter
        return None

    def convert(self, value: Any) -> Any:
        """
        Convert a value for logging.

        A failing converter never breaks the logged call: the value's repr is
        logged instead and the failure is reported as a warning.

        Args:
            value: Raw argument or return value

        Returns:
            The loggable representation
        """
        if value is None:
            return None
        converter = self.find(type(value))
        if converter is None:
            return value
        try:
            return converter(value)
        except Exception as e:
            logger.warning("converter_failed", value_type=type(value).__qualname__, error=str(e))
            return repr(value)


def _dump_model(value: BaseModel) -> Any:
    return value.model_dump(mode="json")


default_converters = Converters({BaseModel: _dump_model})
