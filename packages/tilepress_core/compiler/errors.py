"""Error taxonomy for the map compiler.

Every failure is fatal: the compiler either writes a fully consistent output
set or raises one of these.
"""

from __future__ import annotations


class MapCompilerError(RuntimeError):
    def __init__(self, message: str, *, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class ConfigurationError(MapCompilerError):
    """The source asset is wrong and must be fixed by hand."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="configuration")


class ResourceError(MapCompilerError):
    """A map, tileset, image or mission file could not be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="resource")


class InvariantViolationError(MapCompilerError):
    """Internal bug, never caused by bad input alone."""

    def __init__(self, message: str, *, error_code: str = "invariant") -> None:
        super().__init__(message, error_code=error_code)


class CompilerUsageError(InvariantViolationError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="usage")
