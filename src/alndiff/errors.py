#!/usr/bin/env python3
"""Exceptions raised by the difference codec.

All of them derive from ValueError so callers that only guard against bad
input values keep working.
"""


class CodecError(ValueError):
    """Base class for failures converting between differences and reads."""


class BoundsError(CodecError):
    """A reference slice was requested outside the supplied buffer."""

    def __init__(self, start: int, end: int, available: int) -> None:
        self.start = start
        self.end = end
        self.available = available
        super().__init__(
            f"Reference slice [{start}, {end}) is outside the supplied "
            f"reference of length {available}"
        )


class InconsistentLengthError(CodecError):
    """Read, quality or CIGAR lengths disagree with each other."""


class MissingDataError(CodecError):
    """Bases needed to rebuild a read are neither stored nor derivable."""
