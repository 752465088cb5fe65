#!/usr/bin/env python3
"""Conversion between CIGARs, difference lists and read sequences.

A read aligned to a reference window is described here by the list of its
differences from that window. Three conversions are provided:

1. CIGAR + read bases + reference -> differences
2. differences -> CIGAR
3. differences + reference -> read bases

Difference positions are offsets into the alignment's reference window,
starting at 0 for the first aligned base. ``offset`` maps them into the
reference buffer handed in by the caller: the base at window offset ``pos``
is ``reference[pos + offset]``.

Usage:
    diffs = differences_from_cigar("4M2I4M", "ACGTXXACGT", "ACGTACGTAC")
    cigar_from_differences(diffs, 10)  # [(4, "M"), (2, "I"), (4, "M")]
    sequence_from_differences(diffs, "ACGTACGTAC", length=10)  # "ACGTXXACGT"
"""

import logging
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, List, Optional, Sequence, Union

from alndiff import constants
from alndiff.cigar import merge_runs, parse_cigar, query_length
from alndiff.errors import (
    BoundsError,
    CodecError,
    InconsistentLengthError,
    MissingDataError,
)
from alndiff.types import AlignmentDifference, CigarOp, DifferenceOp

LOGGER = logging.getLogger(__name__)

# CIGAR opcodes that map one-to-one onto a difference
_OP_TO_DIFFERENCE = {
    "I": DifferenceOp.INSERTION,
    "D": DifferenceOp.DELETION,
    "N": DifferenceOp.SKIPPED_REGION,
    "S": DifferenceOp.SOFT_CLIPPING,
    "H": DifferenceOp.HARD_CLIPPING,
    "P": DifferenceOp.PADDING,
}


def reference_slice(reference: str, start: int, end: int) -> str:
    """Return ``reference[start:end]``, refusing to clamp out-of-range ends.

    Raises:
        BoundsError: If the slice does not lie entirely within ``reference``.
    """
    if start < 0 or start > end or end > len(reference):
        raise BoundsError(start, end, len(reference))
    return reference[start:end]


def _cap(bases: Optional[str], max_stored: Optional[int]) -> Optional[str]:
    if bases is None or max_stored is None:
        return bases
    return bases[:max_stored]


def _mismatches(
    read_bases: str,
    window: str,
    ref_pos: int,
    max_stored: Optional[int],
) -> List[AlignmentDifference]:
    """One MISMATCH difference per run of differing bases.

    Bases are compared exactly, so a read base that differs from a
    soft-masked reference base only in case is kept as a mismatch.
    """
    out = []
    i = 0
    pairs = zip(read_bases, window)
    for mismatched, group in groupby(pairs, key=lambda p: p[0] != p[1]):
        run = len(list(group))
        if mismatched:
            out.append(
                AlignmentDifference(
                    ref_pos + i,
                    DifferenceOp.MISMATCH,
                    _cap(read_bases[i : i + run], max_stored),
                    run,
                )
            )
        i += run
    return out


def differences_from_cigar(
    cigar: Union[str, Sequence[CigarOp], None],
    read_sequence: Union[str, bytes, None],
    reference: Optional[str],
    offset: int = 0,
    max_stored_sequence: Optional[int] = None,
) -> List[AlignmentDifference]:
    """Derive the difference list of an aligned read.

    Aligned ops (M, =, X) are compared base by base against the reference;
    each run of mismatching bases becomes one MISMATCH difference. Without a
    reference only explicit X ops are recorded as mismatches. Insertions and
    soft clips keep the read bases they cover; deletions, skipped regions,
    hard clips and padding keep no bases.

    Args:
        cigar: CIGAR text or parsed ops.
        read_sequence: Bases stored in the read (SEQ), or None if absent.
        reference: Reference buffer, or None if unavailable.
        offset: Index in ``reference`` of the first aligned base.
        max_stored_sequence: Keep at most this many bases per difference.
            The difference length still records the full span. None keeps
            everything.

    Returns:
        Differences in ascending position order.

    Raises:
        InconsistentLengthError: If the read length disagrees with the CIGAR.
        BoundsError: If an aligned span falls outside ``reference``.
    """
    if cigar is None or isinstance(cigar, str):
        ops = parse_cigar(cigar)
    else:
        ops = list(cigar)
    if max_stored_sequence is not None and max_stored_sequence < 0:
        raise ValueError(
            f"max_stored_sequence must be >= 0; got {max_stored_sequence}"
        )
    if isinstance(read_sequence, bytes):
        read_sequence = read_sequence.decode("ascii")
    if read_sequence == constants.MISSING_FIELD:
        read_sequence = None
    if read_sequence is not None and len(read_sequence) != query_length(ops):
        raise InconsistentLengthError(
            f"Read has {len(read_sequence)} bases but the CIGAR consumes "
            f"{query_length(ops)}"
        )

    def read_bases(start: int, length: int) -> Optional[str]:
        if read_sequence is None:
            return None
        return _cap(read_sequence[start : start + length], max_stored_sequence)

    differences: List[AlignmentDifference] = []
    ref_pos = 0
    read_pos = 0
    for length, op in ops:
        if op in constants.ALIGNED_OPS:
            if reference is not None and read_sequence is not None:
                window = reference_slice(
                    reference, ref_pos + offset, ref_pos + offset + length
                )
                differences.extend(
                    _mismatches(
                        read_sequence[read_pos : read_pos + length],
                        window,
                        ref_pos,
                        max_stored_sequence,
                    )
                )
            elif op == constants.SEQUENCE_MISMATCH_OP:
                differences.append(
                    AlignmentDifference(
                        ref_pos,
                        DifferenceOp.MISMATCH,
                        read_bases(read_pos, length),
                        length,
                    )
                )
            ref_pos += length
            read_pos += length
            continue

        diff_op = _OP_TO_DIFFERENCE[op]
        bases = read_bases(read_pos, length) if diff_op.consumes_read else None
        differences.append(AlignmentDifference(ref_pos, diff_op, bases, length))
        if diff_op.consumes_read:
            read_pos += length
        if diff_op.consumes_reference:
            ref_pos += length

    LOGGER.debug(
        f"Derived {len(differences)} differences from {len(ops)} CIGAR ops "
        f"spanning {ref_pos} reference bases"
    )
    return differences


@dataclass
class _Cursor:
    """Walks a difference list, tracking reference and read positions.

    Clips before any aligned base are leading clips; a clip after one closes
    the read, and nothing but further clips may follow it.
    """

    ref_pos: int = 0
    read_pos: int = 0
    aligned: bool = False
    closed: bool = False

    def gap_before(self, difference: AlignmentDifference) -> int:
        """Return the count of unedited bases preceding ``difference``."""
        if difference.pos < self.ref_pos:
            raise CodecError(
                f"Difference ({difference!r}) starts before the end of the "
                f"previous one at {self.ref_pos}; differences must be sorted "
                "and must not overlap"
            )
        gap = difference.pos - self.ref_pos
        if gap:
            self._extend()
            self.read_pos += gap
        if difference.op.is_clip:
            self.closed = self.closed or self.aligned
        else:
            self._extend()
        return gap

    def consume(self, difference: AlignmentDifference) -> None:
        if difference.op.consumes_read:
            self.read_pos += difference.length
        self.ref_pos = difference.end

    def remaining(self, length: int) -> int:
        """Unedited bases needed after the last difference to reach ``length``."""
        remaining = length - self.read_pos
        if remaining < 0:
            raise InconsistentLengthError(
                f"Differences consume {self.read_pos} read bases but the "
                f"read has only {length}"
            )
        if remaining and self.closed:
            raise InconsistentLengthError(
                f"{remaining} read bases left over after a trailing clip"
            )
        return remaining

    def _extend(self) -> None:
        if self.closed:
            raise InconsistentLengthError(
                f"Aligned bases at {self.ref_pos} follow a trailing clip"
            )
        self.aligned = True


def cigar_from_differences(
    differences: Iterable[AlignmentDifference],
    length: int,
    extended: bool = False,
) -> List[CigarOp]:
    """Rebuild the CIGAR described by a difference list.

    Unedited stretches become matches. With ``extended`` they are written as
    ``=`` and mismatches as ``X``; otherwise both fold into ``M``. Adjacent
    runs with the same opcode are merged.

    Args:
        differences: Differences in ascending position order.
        length: Read length (SEQ length, hard clips excluded).
        extended: Emit ``=``/``X`` instead of ``M``.

    Raises:
        CodecError: If differences overlap or are out of order.
        InconsistentLengthError: If they do not fit a read of ``length``.
    """
    match_op = constants.SEQUENCE_MATCH_OP if extended else constants.MATCH_OP
    mismatch_op = (
        constants.SEQUENCE_MISMATCH_OP if extended else constants.MATCH_OP
    )
    ops = []
    cursor = _Cursor()
    for difference in differences:
        gap = cursor.gap_before(difference)
        if gap:
            ops.append(CigarOp(gap, match_op))
        if difference.op is DifferenceOp.MISMATCH:
            ops.append(CigarOp(difference.length, mismatch_op))
        else:
            ops.append(CigarOp(difference.length, difference.op.value))
        cursor.consume(difference)
    remaining = cursor.remaining(length)
    if remaining:
        ops.append(CigarOp(remaining, match_op))
    return merge_runs(ops)


def sequence_from_differences(
    differences: Iterable[AlignmentDifference],
    reference: str,
    offset: int = 0,
    length: Optional[int] = None,
) -> str:
    """Rebuild the read bases from a difference list and its reference.

    Unedited stretches are copied from ``reference``; insertions, mismatches
    and soft clips contribute their stored bases; deletions and skipped
    regions contribute nothing.

    Args:
        differences: Differences in ascending position order.
        reference: Reference buffer covering the alignment.
        offset: Index in ``reference`` of the first aligned base.
        length: Read length. If None, copy reference bases after the last
            difference up to the end of ``reference``.

    Raises:
        BoundsError: If a reference span lies outside ``reference``.
        MissingDataError: If an insertion, mismatch or soft clip does not
            store all of its bases.
        InconsistentLengthError: If the differences do not fit ``length``.
        CodecError: If differences overlap or are out of order.
    """
    pieces = []
    cursor = _Cursor()
    for difference in differences:
        start = cursor.ref_pos
        gap = cursor.gap_before(difference)
        if gap:
            pieces.append(
                reference_slice(
                    reference, start + offset, difference.pos + offset
                )
            )
        if difference.op.consumes_reference:
            reference_slice(
                reference, difference.pos + offset, difference.end + offset
            )
        if difference.op.consumes_read:
            if not difference.is_full_sequence_stored():
                stored = len(difference.seq) if difference.seq else 0
                raise MissingDataError(
                    f"{difference.op.name} at {difference.pos} stores "
                    f"{stored} of its {difference.length} bases"
                )
            pieces.append(difference.seq)
        cursor.consume(difference)

    tail_start = cursor.ref_pos + offset
    if length is None:
        if not cursor.closed:
            pieces.append(
                reference_slice(reference, tail_start, len(reference))
            )
    else:
        remaining = cursor.remaining(length)
        if remaining:
            pieces.append(
                reference_slice(reference, tail_start, tail_start + remaining)
            )
    return "".join(pieces)
