"""
Core module for the Print4me server.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    Print4meError,
    ConfigurationError,
    OrderValidationError,
    DispatchError,
)

__all__ = [
    "Print4meError",
    "ConfigurationError",
    "OrderValidationError",
    "DispatchError",
]
