"""
Error types raised by the masking engine.

- ConfigurationError: bad options, raised at construction before any masking
- ResourceExhaustedError: traversal went deeper than the configured ceiling
  (cyclic or pathologically deep input); the whole call fails
"""

from __future__ import annotations


class PiiMaskingError(Exception):
    pass


class ConfigurationError(PiiMaskingError, ValueError):
    pass


class ResourceExhaustedError(PiiMaskingError, RecursionError):
    def __init__(self, message: str, *, path: str = "", depth: int = 0) -> None:
        super().__init__(message)
        self.path = path
        self.depth = depth
