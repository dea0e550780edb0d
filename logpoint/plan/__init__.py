"""Plan compiler.

This module turns callable metadata into immutable log plans.
"""
from logpoint.plan.builder import build_plan
from logpoint.plan.rules import (
    ErrorParameter,
    LiveParameter,
    LogPlan,
    ParameterRule,
    StaticParameter,
)
from logpoint.plan.template import camel_to_spaces, resolve

__all__ = [
    "build_plan",
    "resolve",
    "camel_to_spaces",
    "LogPlan",
    "LiveParameter",
    "StaticParameter",
    "ErrorParameter",
    "ParameterRule",
]
