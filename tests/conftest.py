"""
Shared pytest fixtures for all tests.

This module provides reusable fixtures for building callable metadata, mocking
loggers, and resetting the global logging state between tests.
"""
from typing import Any, Callable, Iterator, Optional, Sequence
from unittest.mock import Mock

import pytest
import structlog

from logpoint.config import Settings
from logpoint.logging import configure_logging
from logpoint.models import CallableMetadata, LoggedConfig, LogLevel, ParameterInfo, ScopeInfo
from logpoint.runtime import clear_context_variables, plan_cache


@pytest.fixture(autouse=True)
def trace_logging() -> Iterator[None]:
    """Configure structlog to let every level through, and reset global state.

    Yields:
        None
    """
    configure_logging(Settings(log_level=LogLevel.TRACE))
    plan_cache.clear()
    clear_context_variables()
    yield
    plan_cache.clear()
    clear_context_variables()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def make_metadata() -> Callable[..., CallableMetadata]:
    """Factory for CallableMetadata with sensible defaults.

    Parameters are given as names or (name, annotation) / (name, annotation,
    dont_log) tuples.

    Returns:
        Factory function.
    """
    def factory(
        name: str = "fetchUserAccount",
        parameters: Sequence[Any] = (),
        message: str = "",
        level: LogLevel = LogLevel.DERIVED,
        logger: Optional[str] = None,
        scopes: Sequence[ScopeInfo] = (ScopeInfo(name="accounts.service", kind="module"),),
        return_annotation: Any = Any,
    ) -> CallableMetadata:
        infos = []
        for index, parameter in enumerate(parameters):
            if isinstance(parameter, str):
                parameter = (parameter,)
            infos.append(ParameterInfo(index=index, name=parameter[0], **_parameter_fields(parameter)))
        return CallableMetadata(
            name=name,
            parameters=tuple(infos),
            scopes=tuple(scopes),
            config=LoggedConfig(message=message, level=level, logger=logger),
            return_annotation=return_annotation,
        )

    return factory


def _parameter_fields(parameter: tuple) -> dict:
    fields = {}
    if len(parameter) > 1:
        fields["annotation"] = parameter[1]
    if len(parameter) > 2:
        fields["dont_log"] = parameter[2]
    return fields


@pytest.fixture
def mock_logger() -> Mock:
    """Create a mock structlog logger with every level enabled.

    Returns:
        Mock logger instance.
    """
    logger = Mock()
    logger.is_enabled_for.return_value = True
    return logger


@pytest.fixture
def disabled_logger() -> Mock:
    """Create a mock structlog logger with every level disabled.

    Returns:
        Mock logger instance.
    """
    logger = Mock()
    logger.is_enabled_for.return_value = False
    return logger
