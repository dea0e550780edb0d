"""
Context variables attached to every emitted log point.

Two sources feed the context of a log record:
- LogContextVariable providers registered here, evaluated on every log point
  (e.g. the service version or the current tenant).
- structlog contextvars bound with `log_context`, merged by the
  `merge_contextvars` processor (e.g. a request id for the current task).
"""
from typing import Any, Callable, Dict, Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict
from structlog.contextvars import bound_contextvars

from logpoint.logging import get_logger

logger = get_logger(__name__)


class LogContextVariable(BaseModel):
    """
    A named value provider.

    Fields:
        key: Key under which the value appears in the log record
        value: Callable returning the current value; None leaves the key out
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: Callable[[], Any]


_VARIABLES: List[LogContextVariable] = []


def add_context_variable(variable: LogContextVariable) -> None:
    """Register a provider for all log points."""
    _VARIABLES.append(variable)


def context_variables() -> Tuple[LogContextVariable, ...]:
    """The registered providers, in registration order."""
    return tuple(_VARIABLES)


def clear_context_variables() -> None:
    """Remove all registered providers."""
    _VARIABLES.clear()


def collect(variables: Iterable[LogContextVariable]) -> Dict[str, Any]:
    """
    Evaluate providers into a key/value mapping.

    Providers returning None are left out. A failing provider is skipped and
    reported as a warning; it never breaks the logged call.

    Args:
        variables: Providers to evaluate

    Returns:
        Dictionary of context keys to current values
    """
    context: Dict[str, Any] = {}
    for variable in variables:
        try:
            value = variable.value()
        except Exception as e:
            logger.warning("context_variable_failed", key=variable.key, error=str(e))
            continue
        if value is not None:
            context[variable.key] = value
    return context


def log_context(**values: Any):
    """
    Bind values to every log point emitted inside the `with` block.

    Thin wrapper over structlog's `bound_contextvars`, so the values follow the
    current thread or asyncio task.
    """
    return bound_contextvars(**values)
