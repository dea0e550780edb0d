"""Configuration management module.

This module contains settings management for the library.
"""
from logpoint.config.settings import Settings

__all__ = ["Settings"]
