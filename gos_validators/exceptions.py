"""
SNILS error types.

Parsing and formatting report bad input by returning None. The exceptions
below are raised only where a caller's contract is broken: an ORM column
given a value it cannot store, or a setter given a value it cannot parse.
"""

from typing import Any, Iterable, Optional

# Integers past this size are not repr'd (CPython caps int-to-str conversion)
_MAX_REPR_BITS = 1024


def _describe(value: Any) -> str:
    if isinstance(value, int) and value.bit_length() > _MAX_REPR_BITS:
        return f"<int of {value.bit_length()} bits>"
    return repr(value)


class SnilsError(Exception):
    """Base class for SNILS adapter errors."""


class SnilsConversionError(SnilsError, TypeError):
    """A value could not be converted to or from a SNILS column value."""

    def __init__(
        self,
        value: Any,
        to_type: str,
        possible_types: Optional[Iterable[str]] = None,
    ):
        self.value = value
        self.to_type = to_type
        self.possible_types = list(possible_types or [])
        message = f"Could not convert {_describe(value)} ({type(value).__name__}) to '{to_type}'"
        if self.possible_types:
            message += f". Expected one of: {', '.join(self.possible_types)}"
        super().__init__(message)


class InvalidSnilsError(SnilsError, ValueError):
    """A SNILS string or integer failed validation where one was required."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid SNILS: {_describe(value)}")
