"""
Plan builder.

Assembles a LogPlan from CallableMetadata: parameter rules and template (via
`logpoint.plan.template`), the effective level, the logger name, the trailing
error parameter and the return-value flag.

`build_plan` is a pure function. All per-build state is local to the call, so
builds for different callables can run concurrently without locking.
"""
import inspect
import types
import typing
from typing import Any, NoReturn, Optional, Sequence, Union

from logpoint.models import CallableMetadata, LogLevel, ParameterInfo
from logpoint.plan.rules import ErrorParameter, LiveParameter, LogPlan, ParameterRule
from logpoint.plan.template import resolve

DEFAULT_LEVEL = LogLevel.DEBUG

try:
    from typing import Never

    _NO_VALUE = (None, type(None), NoReturn, Never)
except ImportError:  # Python < 3.11
    _NO_VALUE = (None, type(None), NoReturn)


def build_plan(metadata: CallableMetadata) -> LogPlan:
    """
    Compile the log plan for one callable.

    Args:
        metadata: Description of the callable and its configuration

    Returns:
        Immutable LogPlan; equal metadata always yields an equal plan
    """
    parameters = metadata.parameters
    error_index = error_parameter_index(parameters)

    rules, message = resolve(metadata.name, parameters, metadata.config.message, error_index)

    error_parameter = None
    if error_index is not None and not parameters[error_index].dont_log:
        error = parameters[error_index]
        positions = ()
        if metadata.config.message:
            # Explicit references keep their placeholders, filled from the error parameter
            positions = tuple(
                position for position, rule in enumerate(rules) if _is_live_for(rule, error_index)
            )
        error_parameter = ErrorParameter(
            index=error.index, name=error.name, annotation=error.annotation, positions=positions
        )
        rules = tuple(rule for rule in rules if not _is_live_for(rule, error_index))

    return LogPlan(
        logger=resolve_logger(metadata),
        level=resolve_level(metadata),
        message=message,
        parameters=rules,
        error_parameter=error_parameter,
        log_result=returns_value(metadata.return_annotation),
    )


def error_parameter_index(parameters: Sequence[ParameterInfo]) -> Optional[int]:
    """
    Index of the last parameter if its declared type is an exception class.

    Optional[...] and unions of exception classes count too, e.g.
    ``error: Optional[Exception] = None``.
    """
    if not parameters:
        return None
    if _is_exception_type(parameters[-1].annotation):
        return len(parameters) - 1
    return None


def _is_exception_type(annotation: Any) -> bool:
    if typing.get_origin(annotation) in (Union, types.UnionType):
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        return bool(members) and all(_is_exception_type(member) for member in members)
    return inspect.isclass(annotation) and issubclass(annotation, BaseException)


def resolve_level(metadata: CallableMetadata) -> LogLevel:
    """
    First explicit level found walking outward from the callable.

    The callable's own config is checked first, then each enclosing scope from
    the innermost to the module. DEBUG if nothing sets a level.
    """
    if metadata.config.level is not LogLevel.DERIVED:
        return metadata.config.level
    for scope in metadata.scopes:
        if scope.config is not None and scope.config.level is not LogLevel.DERIVED:
            return scope.config.level
    return DEFAULT_LEVEL


def resolve_logger(metadata: CallableMetadata) -> str:
    """
    Name of the logger the plan emits to.

    An explicit logger wins. Otherwise the outermost enclosing class names the
    logger (the declaring class of an intercepted method may be a nested or
    generated one); functions outside any class log to their module.
    """
    if metadata.config.logger:
        return metadata.config.logger
    classes = [scope for scope in metadata.scopes if scope.kind == "class"]
    if classes:
        return classes[-1].name
    if metadata.scopes:
        return metadata.scopes[-1].name
    return metadata.name


def returns_value(annotation: Any) -> bool:
    """False only for callables declared to return None or never return."""
    return not any(annotation is no_value for no_value in _NO_VALUE)


def _is_live_for(rule: ParameterRule, index: int) -> bool:
    return isinstance(rule, LiveParameter) and rule.index == index
