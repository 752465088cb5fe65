from pathlib import Path

from alndiff.codec import (
    cigar_from_differences,
    differences_from_cigar,
    sequence_from_differences,
)
from alndiff.errors import (
    BoundsError,
    CodecError,
    InconsistentLengthError,
    MissingDataError,
)
from alndiff.record import AlignmentFlag, AlignmentRecord
from alndiff.types import AlignmentDifference, CigarOp, DifferenceOp

# Load README as module docstring for the documentation homepage
_readme = Path(__file__).resolve().parent.parent.parent / "README.md"
if _readme.exists():
    __doc__ = _readme.read_text(encoding="utf-8")
else:
    __doc__ = """Alignment records and their reference difference codec."""

__all__ = [
    "AlignmentDifference",
    "AlignmentFlag",
    "AlignmentRecord",
    "BoundsError",
    "CigarOp",
    "CodecError",
    "DifferenceOp",
    "InconsistentLengthError",
    "MissingDataError",
    "cigar_from_differences",
    "differences_from_cigar",
    "sequence_from_differences",
]
