#!/usr/bin/env python3
"""CIGAR string helpers.

A CIGAR is handled as a list of CigarOp tuples. These helpers parse and
format the SAM text form, normalise runs, and total how many reference and
read bases a CIGAR consumes.
"""

import re
from typing import Iterable, List, Optional

from alndiff import constants
from alndiff.types import CigarOp

_CIGAR_ELEMENT = re.compile(r"(\d+)([MIDNSHP=X])")


def parse_cigar(text: Optional[str]) -> List[CigarOp]:
    """Parse a SAM CIGAR string.

    ``None``, ``""`` and ``"*"`` all mean "no CIGAR" and give an empty list.

    Raises:
        ValueError: If the string is not a sequence of <length><op> pairs.
    """
    if not text or text == constants.MISSING_FIELD:
        return []
    ops = []
    position = 0
    for match in _CIGAR_ELEMENT.finditer(text):
        if match.start() != position:
            raise ValueError(f"Bad CIGAR: {text}")
        ops.append(CigarOp(int(match.group(1)), match.group(2)))
        position = match.end()
    if position != len(text):
        raise ValueError(f"Bad CIGAR: {text}")
    return ops


def format_cigar(ops: Iterable[CigarOp]) -> str:
    """Format CIGAR ops as SAM text, ``"*"`` when there are none."""
    text = "".join(f"{length}{op}" for length, op in ops)
    return text or constants.MISSING_FIELD


def merge_runs(ops: Iterable[CigarOp]) -> List[CigarOp]:
    """Merge adjacent ops with the same code and drop zero-length ones."""
    merged: List[CigarOp] = []
    for length, op in ops:
        if length == 0:
            continue
        if merged and merged[-1].op == op:
            merged[-1] = CigarOp(merged[-1].length + length, op)
        else:
            merged.append(CigarOp(length, op))
    return merged


def fold_matches(ops: Iterable[CigarOp]) -> List[CigarOp]:
    """Rewrite ``=`` and ``X`` as ``M`` and merge the resulting runs."""
    return merge_runs(
        CigarOp(length, constants.MATCH_OP)
        if op in constants.ALIGNED_OPS
        else CigarOp(length, op)
        for length, op in ops
    )


def reference_length(ops: Iterable[CigarOp]) -> int:
    """Number of reference bases the alignment spans."""
    return sum(
        length for length, op in ops if op in constants.REFERENCE_CONSUMING_OPS
    )


def query_length(ops: Iterable[CigarOp]) -> int:
    """Number of read bases stored in SEQ (hard clips excluded)."""
    return sum(
        length for length, op in ops if op in constants.READ_CONSUMING_OPS
    )


def clipped_bases(ops: List[CigarOp], leading: bool = True) -> int:
    """Count soft- and hard-clipped bases at one end of the read.

    Args:
        ops: Parsed CIGAR.
        leading: Count at the start of the read when True, else at the end.
    """
    total = 0
    for length, op in ops if leading else reversed(ops):
        if op not in constants.CLIP_OPS:
            break
        total += length
    return total
