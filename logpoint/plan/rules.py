"""
Parameter rules and the compiled log plan.

A LogPlan is built once per callable and then only read, so every model here is
frozen and plans built from equal metadata compare equal.
"""
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from logpoint.models import LogLevel


class LiveParameter(BaseModel):
    """Takes the call argument at `index` and converts it for logging."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["live"] = "live"
    index: int
    name: str
    annotation: Any = Field(default=Any)


class StaticParameter(BaseModel):
    """Contributes fixed diagnostic text instead of an argument value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["static"] = "static"
    text: str


class ErrorParameter(BaseModel):
    """
    The trailing exception parameter, handed to the logger as exc_info.

    Fields:
        index: Position of the parameter in the call arguments
        name: Parameter name
        annotation: Declared exception type
        positions: Placeholders of an explicit template that render the error
            as text, counted over all {} of the message
    """

    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    annotation: Any = BaseException
    positions: Tuple[int, ...] = ()


ParameterRule = Annotated[Union[LiveParameter, StaticParameter], Field(discriminator="kind")]


class LogPlan(BaseModel):
    """
    Pre-resolved description of how to log calls to one callable.

    Fields:
        logger: Name of the logger to emit to
        level: Resolved level, never DERIVED
        message: Normalized template, every placeholder written as {}
        parameters: Rules filling the placeholders, in order, never the error parameter
        error_parameter: Rule for a trailing exception parameter, logged as exc_info
        log_result: Whether the return value is logged after the call
    """

    model_config = ConfigDict(frozen=True)

    logger: str
    level: LogLevel
    message: str
    parameters: Tuple[ParameterRule, ...] = ()
    error_parameter: Optional[ErrorParameter] = None
    log_result: bool = False
