"""Errors raised while compiling protobuf declarations into a GraphQL schema.

Every failure is fatal: a partially mapped schema is never returned.
"""

from __future__ import annotations

from typing import List, Optional


class CompileError(Exception):
    """Base class for all compilation failures."""


class ParameterError(CompileError):
    """Raised when the parameter string is malformed."""


class OptionError(CompileError):
    """Raised when a declaration option has the wrong format."""


class GraphCycleError(CompileError):
    """Raised when messages cannot be put into a total order."""

    def __init__(self, cycles: List[List[str]], message: Optional[str] = None):
        self.cycles = cycles
        if message is None:
            message = f"messages contain unorderable cycles: {cycles}"
        super().__init__(message)


class MappingError(CompileError):
    """Raised when a declaration cannot be mapped to a GraphQL type."""
