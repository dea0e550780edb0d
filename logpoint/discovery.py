"""
Builds CallableMetadata from live Python callables.

This is the only place that introspects functions and classes; the plan
compiler works purely on the metadata produced here.
"""
import inspect
import sys
import typing
from types import ModuleType
from typing import Any, Annotated, Dict, List, Optional, Tuple, Union

from logpoint.logging import get_logger
from logpoint.models import CallableMetadata, DontLog, LoggedConfig, ParameterInfo, ScopeInfo

logger = get_logger(__name__)

LOGGED_ATTRIBUTE = "__logged__"


def describe(
    func: Any,
    config: Optional[LoggedConfig] = None,
    owner: Optional[type] = None,
) -> CallableMetadata:
    """
    Describe a callable for the plan compiler.

    Args:
        func: A function, staticmethod or classmethod
        config: The callable's own logging configuration
        owner: The class the callable was defined in, if known

    Returns:
        CallableMetadata for the callable

    Raises:
        TypeError: If `func` is not callable
    """
    target = unwrap(func)
    if not callable(target):
        raise TypeError(f"cannot log {func!r}: not callable")

    signature = inspect.signature(target)
    hints = _type_hints(target)
    skip_first = owner is not None and not isinstance(func, staticmethod)

    parameters: List[ParameterInfo] = []
    for position, parameter in enumerate(signature.parameters.values()):
        if skip_first and position == 0:
            continue
        annotation, dont_log = _unwrap_annotation(hints.get(parameter.name, parameter.annotation))
        parameters.append(
            ParameterInfo(index=len(parameters), name=parameter.name, annotation=annotation, dont_log=dont_log)
        )

    return_annotation, _ = _unwrap_annotation(hints.get("return", signature.return_annotation))

    return CallableMetadata(
        name=getattr(target, "__name__", type(target).__name__),
        parameters=tuple(parameters),
        scopes=scope_chain(target, owner),
        config=config or LoggedConfig(),
        return_annotation=return_annotation,
    )


def unwrap(func: Any) -> Any:
    """The plain function behind a staticmethod or classmethod."""
    if isinstance(func, (staticmethod, classmethod)):
        return func.__func__
    return func


def scope_chain(target: Any, owner: Optional[type] = None) -> Tuple[ScopeInfo, ...]:
    """
    Enclosing scopes of a callable, innermost first, the module last.

    Enclosing classes are found by resolving the qualified name through the
    module, which is only possible outside function bodies; for classes
    defined in a function only `owner` itself is known.
    """
    module_name = getattr(owner if owner is not None else target, "__module__", None) or "__main__"
    module = sys.modules.get(module_name)

    if owner is not None:
        classes = _enclosing_classes(module, owner.__qualname__.split("."), owner)
    else:
        qualname = getattr(target, "__qualname__", "")
        classes = _enclosing_classes(module, qualname.split(".")[:-1], None)

    scopes = [
        ScopeInfo(name=logger_name(klass), kind="class", config=_config_of(vars(klass)))
        for klass in classes
    ]
    module_config = _config_of(vars(module)) if module is not None else None
    scopes.append(ScopeInfo(name=module_name, kind="module", config=module_config))
    return tuple(scopes)


def logger_name(target: Union[str, type, ModuleType]) -> str:
    """
    Dotted logger name for a class, module or explicit name.

    Raises:
        TypeError: For anything else
    """
    if isinstance(target, str):
        return target
    if isinstance(target, ModuleType):
        return target.__name__
    if inspect.isclass(target):
        return f"{target.__module__}.{target.__qualname__}"
    raise TypeError(f"cannot derive a logger name from {target!r}")


def _enclosing_classes(
    module: Optional[ModuleType], path: List[str], owner: Optional[type]
) -> List[type]:
    fallback = [owner] if owner is not None else []
    if module is None or not path or "<locals>" in path:
        return fallback

    classes = []
    obj: Any = module
    for part in path:
        obj = getattr(obj, part, None)
        if not inspect.isclass(obj):
            return fallback
        classes.append(obj)
    classes.reverse()
    if owner is not None:
        classes[0] = owner
    return classes


def _config_of(namespace: Dict[str, Any]) -> Optional[LoggedConfig]:
    config = namespace.get(LOGGED_ATTRIBUTE)
    return config if isinstance(config, LoggedConfig) else None


def _type_hints(target: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(target, include_extras=True)
    except Exception as e:
        # Unresolvable forward references; fall back to the raw annotations
        logger.debug("annotations_unresolved", callable=getattr(target, "__qualname__", repr(target)), error=str(e))
        return {}


def _unwrap_annotation(annotation: Any) -> Tuple[Any, bool]:
    if annotation is inspect.Parameter.empty:
        return Any, False
    if typing.get_origin(annotation) is Annotated:
        base, *metadata = typing.get_args(annotation)
        dont_log = any(marker is DontLog or isinstance(marker, DontLog) for marker in metadata)
        return base, dont_log
    return annotation, False
