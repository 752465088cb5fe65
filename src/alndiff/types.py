#!/usr/bin/env python3
"""Value types shared by the codec and the alignment record.

This module defines:
- DifferenceOp: the kinds of edit a read can carry against its reference
- CigarOp: a single (length, opcode) CIGAR element
- AlignmentDifference: one edit, anchored at a reference offset
"""

from enum import Enum
from typing import NamedTuple, Optional, Union


class DifferenceOp(str, Enum):
    """Edit operations, valued by their CIGAR character."""

    INSERTION = "I"
    DELETION = "D"
    MISMATCH = "X"
    SKIPPED_REGION = "N"
    SOFT_CLIPPING = "S"
    HARD_CLIPPING = "H"
    PADDING = "P"

    @property
    def consumes_reference(self) -> bool:
        return self in (
            DifferenceOp.DELETION,
            DifferenceOp.MISMATCH,
            DifferenceOp.SKIPPED_REGION,
        )

    @property
    def consumes_read(self) -> bool:
        return self in (
            DifferenceOp.INSERTION,
            DifferenceOp.MISMATCH,
            DifferenceOp.SOFT_CLIPPING,
        )

    @property
    def is_clip(self) -> bool:
        return self in (DifferenceOp.SOFT_CLIPPING, DifferenceOp.HARD_CLIPPING)


class CigarOp(NamedTuple):
    """A run of ``length`` bases sharing one CIGAR opcode."""

    length: int
    op: str

    def __str__(self) -> str:
        return f"{self.length}{self.op}"


class AlignmentDifference:
    """One difference between a read and the reference it aligns to.

    ``pos`` is the offset into the reference window where the edit is
    anchored, ``length`` the true size of the edited span. ``seq`` may hold
    only a prefix of that span when storage was capped, so
    ``len(seq) <= length``. Only ``seq`` can change after construction.

    Equality ignores whether bases are stored: two differences with the same
    position, operation and length are equal unless both carry sequences
    that differ (case-insensitively).
    """

    __slots__ = ("_pos", "_op", "_length", "seq")

    def __init__(
        self,
        pos: int,
        op: Union[DifferenceOp, str],
        seq: Optional[str] = None,
        length: Optional[int] = None,
    ) -> None:
        if length is None:
            if seq is None:
                raise ValueError(
                    "AlignmentDifference needs a sequence or a length"
                )
            length = len(seq)
        if pos < 0:
            raise ValueError(f"pos must be >= 0; got {pos}")
        if length < 0:
            raise ValueError(f"length must be >= 0; got {length}")
        if seq is not None and len(seq) > length:
            raise ValueError(
                f"Stored sequence ({len(seq)} bases) is longer than the "
                f"difference length ({length})"
            )
        self._pos = pos
        self._op = DifferenceOp(op)
        self._length = length
        self.seq = seq

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def op(self) -> DifferenceOp:
        return self._op

    @property
    def length(self) -> int:
        return self._length

    @property
    def end(self) -> int:
        """Reference offset just past the span this difference consumes."""
        if self._op.consumes_reference:
            return self._pos + self._length
        return self._pos

    def is_sequence_stored(self) -> bool:
        return self.seq is not None

    def is_full_sequence_stored(self) -> bool:
        """Return True when ``seq`` covers the whole span, not a prefix."""
        return self.seq is not None and len(self.seq) == self._length

    def copy(self) -> "AlignmentDifference":
        return AlignmentDifference(self._pos, self._op, self.seq, self._length)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AlignmentDifference):
            return NotImplemented
        if (self._pos, self._op, self._length) != (
            other._pos,
            other._op,
            other._length,
        ):
            return False
        if self.seq is None or other.seq is None:
            return True
        return self.seq.upper() == other.seq.upper()

    def __hash__(self) -> int:
        return hash((self._pos, self._op, self._length))

    def __repr__(self) -> str:
        return f"{self._pos}: {self._length} {self._op.value} {self.seq}"
