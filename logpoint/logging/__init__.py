"""Logging module.

This module contains structured logging functionality.
"""
from logpoint.logging.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
