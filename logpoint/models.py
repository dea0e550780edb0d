"""
Pydantic models describing a callable that should be logged.

These models are the read-only input of the plan compiler. They are produced by
the discovery module (see `logpoint.discovery`) and never mutated afterwards.
"""
from enum import Enum
from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    """
    Severity of a log point.

    DERIVED means "not set here": the level is inherited from the enclosing
    class or module.
    """

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DERIVED = "derived"

    @classmethod
    def parse(cls, value: Any) -> "LogLevel":
        """
        Parse a level name case-insensitively.

        Args:
            value: A LogLevel or a level name such as "info" or "WARNING"

        Returns:
            The matching LogLevel

        Raises:
            ValueError: If the name is not a known level
        """
        if isinstance(value, LogLevel):
            return value
        name = str(value).strip().lower()
        if name == "warning":
            name = "warn"
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"unknown log level: {value!r}") from None

    @property
    def levelno(self) -> int:
        """Numeric level as used by the stdlib and structlog."""
        return _LEVEL_NUMBERS[self]

    @property
    def method_name(self) -> str:
        """Name of the structlog method that emits this level."""
        return _METHOD_NAMES[self]


TRACE_LEVEL_NUM = 5

_LEVEL_NUMBERS = {
    LogLevel.TRACE: TRACE_LEVEL_NUM,
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
    LogLevel.DERIVED: 0,
}

# structlog has no trace method
_METHOD_NAMES = {
    LogLevel.TRACE: "debug",
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
    LogLevel.DERIVED: "debug",
}


class DontLog:
    """
    Marker excluding a parameter from the generated log message.

    Used as ``Annotated[str, DontLog]``. An explicit ``{n}`` reference in a
    message template still logs the parameter.
    """


class LoggedConfig(BaseModel):
    """
    Logging configuration attached to a callable, class or module.

    Fields:
        message: Message template; empty means "generate from the callable name"
        level: Explicit level, or DERIVED to inherit from the enclosing scope
        logger: Explicit logger name overriding the derived one
    """

    model_config = ConfigDict(frozen=True)

    message: str = ""
    level: LogLevel = LogLevel.DERIVED
    logger: Optional[str] = None


class ParameterInfo(BaseModel):
    """One declared parameter of a logged callable."""

    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    annotation: Any = Field(default=Any)
    dont_log: bool = False


class ScopeInfo(BaseModel):
    """An enclosing class or module of a logged callable."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: Literal["class", "module"]
    config: Optional[LoggedConfig] = None


class CallableMetadata(BaseModel):
    """
    Everything the plan compiler needs to know about a callable.

    Fields:
        name: The callable's own name (not qualified)
        parameters: Declared parameters in order, without self/cls
        scopes: Enclosing scopes, innermost first, the module last
        config: The callable's own logging configuration
        return_annotation: Declared return type, Any when undeclared
    """

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: Tuple[ParameterInfo, ...] = ()
    scopes: Tuple[ScopeInfo, ...] = ()
    config: LoggedConfig = Field(default_factory=LoggedConfig)
    return_annotation: Any = Field(default=Any)
