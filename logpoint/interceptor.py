"""
The @logged decorator.

Decorating a function or method logs every call with its arguments, then the
return value or the raised exception. Decorating a class records the class
configuration (inherited by its methods, e.g. the level) and logs all of its
public methods.

    @logged(level=LogLevel.INFO)
    class AccountService:
        def fetchUserAccount(self, user_id, include_closed=False):
            ...  # logs "fetch user account 42 False" at INFO

        @logged("retry {1} of {0}")
        def retry(self, attempts, attempt):
            ...

The plan for each callable is built lazily on its first call and cached in
`logpoint.runtime.plan_cache`.
"""
import functools
import inspect
import types
from typing import Any, Optional, Sequence, Tuple, Union

from logpoint.discovery import LOGGED_ATTRIBUTE, describe, logger_name, unwrap
from logpoint.logging import get_logger
from logpoint.models import LoggedConfig, LogLevel
from logpoint.plan import build_plan
from logpoint.runtime.cache import PlanCache, plan_cache
from logpoint.runtime.context import LogContextVariable
from logpoint.runtime.converters import Converters
from logpoint.runtime.log_point import LogPoint


def logged(
    message: Any = "",
    *,
    level: Union[LogLevel, str] = LogLevel.DERIVED,
    logger: Any = None,
    converters: Optional[Converters] = None,
    variables: Optional[Sequence[LogContextVariable]] = None,
):
    """
    Log calls to a function, method or all public methods of a class.

    Usable bare (`@logged`) or with arguments (`@logged("saw {}")`).

    Args:
        message: Message template; empty generates one from the callable name
        level: Log level; DERIVED inherits from the enclosing class or module
        logger: Explicit logger, as a name, class or module
        converters: Value converters (default registry if omitted)
        variables: Context variable providers (global registry if omitted)

    Returns:
        The decorator, or the decorated object when used bare
    """
    if callable(message) or isinstance(message, (staticmethod, classmethod)):
        return logged()(message)

    config = LoggedConfig(
        message=message,
        level=LogLevel.parse(level),
        logger=logger_name(logger) if logger is not None else None,
    )

    def decorator(target):
        if inspect.isclass(target):
            return _instrument_class(target, config, converters, variables)
        return LoggedFunction(target, config, converters=converters, variables=variables)

    return decorator


class LoggedFunction:
    """
    Descriptor wrapping a logged callable.

    Behaves like the wrapped function, method, staticmethod or classmethod.
    The owning class is learned through __set_name__, which lets the plan
    inherit the class configuration and drop self/cls from the parameters.
    """

    def __init__(
        self,
        func: Any,
        config: LoggedConfig,
        converters: Optional[Converters] = None,
        variables: Optional[Sequence[LogContextVariable]] = None,
        cache: PlanCache = plan_cache,
    ):
        self._func = func
        self._target = unwrap(func)
        self._config = config
        self._converters = converters
        self._variables = variables
        self._cache = cache
        self._owner: Optional[type] = None
        self._signature = inspect.signature(self._target)
        self._is_coroutine = inspect.iscoroutinefunction(self._target)
        # (LogPoint, bound logger) for the current plan
        self._current: Optional[Tuple[LogPoint, Any]] = None
        functools.update_wrapper(self, self._target)
        if self._is_coroutine and hasattr(inspect, "markcoroutinefunction"):
            # Python 3.12+: lets inspect.iscoroutinefunction see through the wrapper
            inspect.markcoroutinefunction(self)

    def __set_name__(self, owner: type, name: str) -> None:
        self._owner = owner

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if isinstance(self._func, staticmethod):
            return self
        if isinstance(self._func, classmethod):
            return types.MethodType(self, owner if owner is not None else type(instance))
        if instance is None:
            return self
        return types.MethodType(self, instance)

    @property
    def plan(self):
        """The compiled plan, built on first access."""
        return self.log_point.plan

    @property
    def log_point(self) -> LogPoint:
        """The LogPoint executing the cached plan; rebuilt after the cache is cleared."""
        return self._bound()[0]

    def _bound(self) -> Tuple[LogPoint, Any]:
        plan = self._cache.get_or_build(self, self._build_plan)
        bound = self._current
        if bound is None or bound[0].plan is not plan:
            bound = (LogPoint(plan, self._converters, self._variables), get_logger(plan.logger))
            self._current = bound
        return bound

    def _build_plan(self):
        return build_plan(describe(self._func, self._config, self._owner))

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self._is_coroutine:
            return self._call_async(*args, **kwargs)

        point, log = self._bound()
        arguments = self._arguments(args, kwargs)
        if arguments is not None:
            point.log_call(log, arguments)
        try:
            result = self._target(*args, **kwargs)
        except Exception as e:
            point.log_failure(log, e)
            raise
        point.log_result(log, result)
        return result

    async def _call_async(self, *args: Any, **kwargs: Any) -> Any:
        point, log = self._bound()
        arguments = self._arguments(args, kwargs)
        if arguments is not None:
            point.log_call(log, arguments)
        try:
            result = await self._target(*args, **kwargs)
        except Exception as e:
            point.log_failure(log, e)
            raise
        point.log_result(log, result)
        return result

    def _arguments(self, args: Sequence[Any], kwargs: Any) -> Optional[list]:
        """Argument values in parameter order, without self/cls; None if they don't bind."""
        try:
            bound = self._signature.bind(*args, **kwargs)
        except TypeError:
            # The call itself raises the same error
            return None
        bound.apply_defaults()
        values = list(bound.arguments.values())
        if self._owner is not None and not isinstance(self._func, staticmethod):
            values = values[1:]
        return values

    def __repr__(self) -> str:
        return f"<logged {self._target!r}>"


def _instrument_class(cls: type, config: LoggedConfig, converters, variables) -> type:
    setattr(cls, LOGGED_ATTRIBUTE, config)
    method_config = LoggedConfig(logger=config.logger)
    for name, attribute in list(vars(cls).items()):
        if name.startswith("_") or isinstance(attribute, LoggedFunction):
            continue
        if not (inspect.isfunction(attribute) or isinstance(attribute, (staticmethod, classmethod))):
            continue
        wrapper = LoggedFunction(attribute, method_config, converters=converters, variables=variables)
        wrapper.__set_name__(cls, name)
        setattr(cls, name, wrapper)
    return cls
