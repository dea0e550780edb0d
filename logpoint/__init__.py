"""
Declarative method logging.
Exports the @logged decorator and the plan compiler behind it.
"""

__all__ = [
    "logged",
    "DontLog",
    "LogLevel",
    "LoggedConfig",
    "LogPlan",
    "build_plan",
    "describe",
    "Converters",
    "LogContextVariable",
    "add_context_variable",
    "log_context",
]

_EXPORTS = {
    "logged": "logpoint.interceptor",
    "DontLog": "logpoint.models",
    "LogLevel": "logpoint.models",
    "LoggedConfig": "logpoint.models",
    "LogPlan": "logpoint.plan",
    "build_plan": "logpoint.plan",
    "describe": "logpoint.discovery",
    "Converters": "logpoint.runtime",
    "LogContextVariable": "logpoint.runtime",
    "add_context_variable": "logpoint.runtime",
    "log_context": "logpoint.runtime",
}


def __getattr__(name: str):
    """
    Lazy import of components so that using the plan compiler alone does
    not configure structlog.

    Args:
        name: Name of the attribute to import

    Returns:
        The requested attribute

    Raises:
        AttributeError: If the attribute doesn't exist
    """
    if name in _EXPORTS:
        import importlib

        return getattr(importlib.import_module(_EXPORTS[name]), name)

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
