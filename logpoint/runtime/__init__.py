"""Runtime module.

This module contains everything a compiled plan needs at call time.
"""
from logpoint.runtime.cache import PlanCache, plan_cache
from logpoint.runtime.context import (
    LogContextVariable,
    add_context_variable,
    clear_context_variables,
    collect,
    context_variables,
    log_context,
)
from logpoint.runtime.converters import Converters, default_converters
from logpoint.runtime.log_point import LogPoint

__all__ = [
    # Plan cache
    "PlanCache",
    "plan_cache",
    # Context variables
    "LogContextVariable",
    "add_context_variable",
    "context_variables",
    "clear_context_variables",
    "collect",
    "log_context",
    # Value conversion
    "Converters",
    "default_converters",
    # Execution
    "LogPoint",
]
