"""
ReBAR - Errors
===============
Every exception raised by the package derives from RebarError.
Resource stalls are normal operation and never raise.
"""

from typing import Optional


class RebarError(Exception):
    pass


class UnknownUnit(RebarError, KeyError):
    """Catalog lookup for a unit name that was never registered."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"Unknown unit: {self.name!r}"


class CannotBuild(RebarError):
    """Builder's build options do not include the requested unit."""

    def __init__(self, builder_idx: int, name: str, builder_name: str = ""):
        self.builder_idx = builder_idx
        self.name = name
        self.builder_name = builder_name
        label = f"{builder_name} (#{builder_idx})" if builder_name else f"#{builder_idx}"
        super().__init__(f"Unit {label} cannot build {name!r}")


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class LoaderError(RebarError):
    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(message)

    def __str__(self):
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class MissingRequiredField(LoaderError):
    def __init__(self, field: str, source: Optional[str] = None):
        self.field = field
        super().__init__(f"Required key {field} is missing.", source)


class InvalidFieldType(LoaderError):
    def __init__(self, field: str, expected: str, value=None, source: Optional[str] = None):
        self.field = field
        self.expected = expected
        self.value = value
        super().__init__(f"Attempted to parse invalid {expected} for {field}: {value!r}", source)


class LuaSyntaxError(LoaderError):
    def __init__(self, message: str, line: int, source: Optional[str] = None):
        self.line = line
        super().__init__(f"line {line}: {message}", source)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class ScenarioError(RebarError):
    pass
