"""Utilities for the Kiro archiver."""

from .config_manager import ConfigurationManager

__all__ = [
    'ConfigurationManager',
]
