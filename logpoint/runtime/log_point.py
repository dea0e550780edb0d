"""
Executes a compiled LogPlan for one call.

A LogPoint renders the plan's parameter rules against the actual arguments and
hands the template and values to the structlog logger. The template's {}
placeholders are translated once to %-style, which structlog's bound loggers
format from positional arguments.
"""
from typing import Any, Dict, Optional, Sequence

from logpoint.plan.rules import LiveParameter, LogPlan, ParameterRule
from logpoint.plan.template import PLACEHOLDER
from logpoint.runtime.context import LogContextVariable, collect, context_variables
from logpoint.runtime.converters import Converters, default_converters

RETURN_MESSAGE = "return %s"
FAILURE_MESSAGE = "failed with %s"


class LogPoint:
    """
    Runtime side of a LogPlan.

    Holds the plan plus the collaborators needed at call time: the converters
    for argument values and the context variable providers. All methods are
    no-ops when the logger does not have the plan's level enabled.
    """

    def __init__(
        self,
        plan: LogPlan,
        converters: Optional[Converters] = None,
        variables: Optional[Sequence[LogContextVariable]] = None,
    ):
        """
        Initialize the log point.

        Args:
            plan: The compiled plan
            converters: Converters for argument and return values (default registry if omitted)
            variables: Context variable providers (the global registry, read per call, if omitted)
        """
        self.plan = plan
        self.converters = converters if converters is not None else default_converters
        self._variables = variables
        self._event = to_percent_style(plan.message)

    def is_enabled(self, logger: Any) -> bool:
        is_enabled_for = getattr(logger, "is_enabled_for", None)
        if is_enabled_for is None:
            # Wrapper classes without level checks filter in their processors
            return True
        return is_enabled_for(self.plan.level.levelno)

    def log_call(self, logger: Any, arguments: Sequence[Any]) -> None:
        """
        Log a call with its arguments.

        Args:
            logger: structlog logger for the plan's logger name
            arguments: Argument values in parameter order (without self/cls)
        """
        if not self.is_enabled(logger):
            return
        values = [self._render(rule, arguments) for rule in self.plan.parameters]
        context = self._context()
        error_parameter = self.plan.error_parameter
        if error_parameter is not None:
            error = arguments[error_parameter.index]
            for position in error_parameter.positions:
                values.insert(position, self.converters.convert(error))
            if error is not None:
                context["exc_info"] = error
        if values:
            self._emit(logger, self._event, *values, **context)
        else:
            self._emit(logger, self.plan.message, **context)

    def log_result(self, logger: Any, result: Any) -> None:
        """Log the return value, if the plan asks for it."""
        if not self.plan.log_result or not self.is_enabled(logger):
            return
        self._emit(logger, RETURN_MESSAGE, self.converters.convert(result), **self._context())

    def log_failure(self, logger: Any, error: BaseException) -> None:
        """Log an exception raised by the call."""
        if not self.is_enabled(logger):
            return
        self._emit(logger, FAILURE_MESSAGE, type(error).__name__, exc_info=error, **self._context())

    def _render(self, rule: ParameterRule, arguments: Sequence[Any]) -> Any:
        if isinstance(rule, LiveParameter):
            return self.converters.convert(arguments[rule.index])
        return rule.text

    def _context(self) -> Dict[str, Any]:
        variables = self._variables if self._variables is not None else context_variables()
        return collect(variables)

    def _emit(self, logger: Any, event: str, *args: Any, **kw: Any) -> None:
        getattr(logger, self.plan.level.method_name)(event, *args, **kw)


def to_percent_style(message: str) -> str:
    """Translate {} placeholders to %s, escaping literal percent signs."""
    return message.replace("%", "%%").replace(PLACEHOLDER, "%s")
