#!/usr/bin/env python3
"""In-memory representation of a single read alignment.

An AlignmentRecord keeps the metadata of a SAM/BAM record (coordinates,
qualities, mate fields, flags, optional tags) together with the list of
differences between the read and the reference. The read bases themselves
are optional: given the reference they can be rebuilt from the differences.
"""

import logging
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from alndiff import cigar as cigar_utils
from alndiff import codec, constants
from alndiff.errors import BoundsError, InconsistentLengthError, MissingDataError
from alndiff.types import AlignmentDifference, CigarOp

LOGGER = logging.getLogger(__name__)


def _order_key(difference: AlignmentDifference) -> Tuple[int, bool]:
    # At a shared position, edits that consume no reference bases (clips,
    # insertions, padding) precede those that do
    return difference.pos, difference.op.consumes_reference


def _in_codec_order(
    differences: Iterable[AlignmentDifference],
) -> Tuple[AlignmentDifference, ...]:
    return tuple(sorted((d.copy() for d in differences), key=_order_key))


class AlignmentFlag(IntFlag):
    """SAM FLAG bits."""

    ALIGNMENT_MULTIPLE_SEGMENTS = constants.ALIGNMENT_MULTIPLE_SEGMENTS
    SEGMENTS_PROPERLY_ALIGNED = constants.SEGMENTS_PROPERLY_ALIGNED
    SEGMENT_UNMAPPED = constants.SEGMENT_UNMAPPED
    NEXT_SEGMENT_UNMAPPED = constants.NEXT_SEGMENT_UNMAPPED
    SEQUENCE_REVERSE_COMPLEMENTED = constants.SEQUENCE_REVERSE_COMPLEMENTED
    SEQUENCE_NEXT_SEGMENT_REVERSED = constants.SEQUENCE_NEXT_SEGMENT_REVERSED
    FIRST_SEGMENT = constants.FIRST_SEGMENT
    LAST_SEGMENT = constants.LAST_SEGMENT
    SECONDARY_ALIGNMENT = constants.SECONDARY_ALIGNMENT
    NOT_PASSING_QC = constants.NOT_PASSING_QC
    PCR_OR_OPTICAL_DUPLICATE = constants.PCR_OR_OPTICAL_DUPLICATE
    SUPPLEMENTARY_ALIGNMENT = constants.SUPPLEMENTARY_ALIGNMENT


@dataclass
class AlignmentRecord:
    """A read aligned against a reference, described by its differences.

    Coordinates are 1-based and inclusive. ``length`` is the number of bases
    in the read as stored (hard clips excluded). Differences are kept as a
    tuple sorted by position, with clips, insertions and padding ahead of
    reference-consuming edits at the same position. Whatever is assigned to
    ``differences``, at construction or later, is copied and put in that
    order, so the record never shares difference objects with the caller.
    ``attributes`` is copied on construction.

    Coordinate checks are skipped for unmapped reads, whose coordinates
    carry no meaning.
    """

    name: str
    reference_name: Optional[str]
    start: int
    end: int
    unclipped_start: int
    unclipped_end: int
    length: int
    mapping_quality: int = 0
    qualities: Optional[str] = None
    mate_reference_name: Optional[str] = None
    mate_alignment_start: int = constants.MISSING_POSITION
    inferred_insert_size: int = 0
    flags: int = 0
    differences: Tuple[AlignmentDifference, ...] = ()
    attributes: Dict[str, str] = field(default_factory=dict)
    read_sequence: Optional[bytes] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "differences":
            value = _in_codec_order(value)
        super().__setattr__(name, value)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Alignment name must not be empty")
        if not 0 <= self.mapping_quality <= constants.MAX_MAPPING_QUALITY:
            raise ValueError(
                f"mapping_quality must be within 0-"
                f"{constants.MAX_MAPPING_QUALITY}; got {self.mapping_quality} "
                f"for {self.name}"
            )
        if self.length < 0:
            raise ValueError(
                f"length must be >= 0; got {self.length} for {self.name}"
            )
        self.flags = int(self.flags)
        if not self.is_unmapped:
            if self.start > self.end:
                raise ValueError(
                    f"start ({self.start}) must not exceed end ({self.end}) "
                    f"for {self.name}"
                )
            if self.unclipped_start > self.start or self.end > self.unclipped_end:
                raise ValueError(
                    f"Unclipped span [{self.unclipped_start}, "
                    f"{self.unclipped_end}] must contain [{self.start}, "
                    f"{self.end}] for {self.name}"
                )

        if self.qualities == constants.MISSING_FIELD:
            self.qualities = None
        if self.qualities is not None and len(self.qualities) != self.length:
            raise InconsistentLengthError(
                f"qualities length ({len(self.qualities)}) must match "
                f"length ({self.length}) for {self.name}"
            )
        if isinstance(self.read_sequence, str):
            self.read_sequence = self.read_sequence.encode("ascii")
        elif self.read_sequence is not None:
            self.read_sequence = bytes(self.read_sequence)
        if self.read_sequence is not None and len(self.read_sequence) != self.length:
            raise InconsistentLengthError(
                f"read_sequence length ({len(self.read_sequence)}) must match "
                f"length ({self.length}) for {self.name}"
            )

        self.attributes = dict(self.attributes)
        LOGGER.debug(
            f"Initialized AlignmentRecord {self.name} at "
            f"{self.reference_name}:{self.start}-{self.end} with "
            f"{len(self.differences)} differences"
        )

    @classmethod
    def from_cigar(
        cls,
        name: str,
        reference_name: Optional[str],
        start: int,
        cigar: Union[str, Sequence[CigarOp], None],
        read_sequence: Union[str, bytes, None] = None,
        reference: Optional[str] = None,
        offset: int = 0,
        *,
        mapping_quality: int = 0,
        qualities: Optional[str] = None,
        mate_reference_name: Optional[str] = None,
        mate_alignment_start: int = constants.MISSING_POSITION,
        inferred_insert_size: int = 0,
        flags: int = 0,
        attributes: Optional[Dict[str, str]] = None,
        max_stored_sequence: Optional[int] = None,
    ) -> "AlignmentRecord":
        """Build a record from the raw fields of an alignment file.

        End and unclipped coordinates and the read length are derived from
        the CIGAR; the differences are derived from the CIGAR, the read bases
        and the reference (see ``codec.differences_from_cigar``).

        Args:
            start: 1-based position of the first aligned base.
            reference: Reference buffer; ``reference[offset]`` must be the
                base at ``start``.
        """
        if cigar is None or isinstance(cigar, str):
            ops = cigar_utils.parse_cigar(cigar)
        else:
            ops = list(cigar)
        if read_sequence == constants.MISSING_FIELD:
            read_sequence = None
        span = cigar_utils.reference_length(ops)
        end = start + span - 1 if span else start
        if read_sequence is not None:
            length = len(read_sequence)
        else:
            length = cigar_utils.query_length(ops)
        differences = codec.differences_from_cigar(
            ops, read_sequence, reference, offset, max_stored_sequence
        )
        return cls(
            name=name,
            reference_name=reference_name,
            start=start,
            end=end,
            unclipped_start=start - cigar_utils.clipped_bases(ops, leading=True),
            unclipped_end=end + cigar_utils.clipped_bases(ops, leading=False),
            length=length,
            mapping_quality=mapping_quality,
            qualities=qualities,
            mate_reference_name=mate_reference_name,
            mate_alignment_start=mate_alignment_start,
            inferred_insert_size=inferred_insert_size,
            flags=flags,
            differences=tuple(differences),
            attributes=attributes or {},
            read_sequence=read_sequence,
        )

    # Differences

    def add_difference(self, difference: AlignmentDifference) -> None:
        """Insert a copy of ``difference`` in position order.

        It goes after every entry at an earlier position and, at its own
        position, after entries of the same kind. A clip, insertion or
        padding goes before a mismatch, deletion or skipped region sharing
        its position. Appending in ascending position order behaves as a
        plain append.
        """
        key = _order_key(difference)
        index = len(self.differences)
        while index and _order_key(self.differences[index - 1]) > key:
            index -= 1
        self.differences = (
            self.differences[:index] + (difference,) + self.differences[index:]
        )

    def remove_difference(self, pos: int) -> bool:
        """Remove the first difference at ``pos``; return whether one was found."""
        for index, difference in enumerate(self.differences):
            if difference.pos == pos:
                self.differences = (
                    self.differences[:index] + self.differences[index + 1 :]
                )
                return True
        return False

    def complete_differences(self, reference: str, offset: int = 0) -> bool:
        """Fill in missing difference bases from the reference.

        Every difference without its full sequence gets
        ``reference[pos + offset : pos + offset + length]``. Stops at the
        first slice outside ``reference`` and returns False; differences
        filled before that point keep their new bases.
        """
        for difference in self.differences:
            if difference.is_full_sequence_stored():
                continue
            start = difference.pos + offset
            try:
                difference.seq = codec.reference_slice(
                    reference, start, start + difference.length
                )
            except BoundsError as err:
                LOGGER.warning(
                    f"Could not complete differences of {self.name}: {err}"
                )
                return False
        return True

    # Flags

    @property
    def is_unmapped(self) -> bool:
        return self.has_flag(AlignmentFlag.SEGMENT_UNMAPPED)

    @property
    def is_reverse(self) -> bool:
        return self.has_flag(AlignmentFlag.SEQUENCE_REVERSE_COMPLEMENTED)

    @property
    def flag_set(self) -> AlignmentFlag:
        return AlignmentFlag(self.flags)

    def has_flag(self, flag: int) -> bool:
        return self.flags & int(flag) == int(flag)

    def add_flag(self, flag: int) -> None:
        self.flags |= int(flag)

    def remove_flag(self, flag: int) -> None:
        self.flags &= ~int(flag)

    # Attributes

    def add_attribute(self, key: str, value: str) -> bool:
        """Set ``key`` to ``value``; return whether an old value was replaced."""
        replaced = key in self.attributes
        self.attributes[key] = value
        return replaced

    def remove_attribute(self, key: str) -> Optional[str]:
        return self.attributes.pop(key, None)

    def get_attribute(
        self, key: str, default: Optional[str] = None
    ) -> Optional[str]:
        return self.attributes.get(key, default)

    # Derived representations

    def cigar(self, extended: bool = False) -> List[CigarOp]:
        """CIGAR ops rebuilt from the differences (empty for unmapped reads)."""
        if self.is_unmapped and not self.differences:
            return []
        return codec.cigar_from_differences(
            self.differences, self.length, extended=extended
        )

    def cigar_string(self, extended: bool = False) -> str:
        return cigar_utils.format_cigar(self.cigar(extended=extended))

    def reconstruct_sequence(self, reference: str, offset: int = 0) -> str:
        """Rebuild the read bases from the differences and ``reference``."""
        return codec.sequence_from_differences(
            self.differences, reference, offset, self.length
        )

    def read_bases(
        self, reference: Optional[str] = None, offset: int = 0
    ) -> str:
        """Return the read bases, rebuilding them when a reference is given.

        Falls back to the stored ``read_sequence`` when the differences lack
        bases needed for the rebuild, or when no reference is supplied.

        Raises:
            MissingDataError: If neither route yields the bases.
        """
        if reference is not None and not self.is_unmapped:
            try:
                return self.reconstruct_sequence(reference, offset)
            except MissingDataError:
                if self.read_sequence is None:
                    raise
                LOGGER.debug(
                    f"Differences of {self.name} are incomplete; using the "
                    "stored read sequence"
                )
        if self.read_sequence is None:
            raise MissingDataError(
                f"{self.name} has no stored read sequence and no reference "
                "to rebuild it from"
            )
        return self.read_sequence.decode("ascii")

    def phred_qualities(self) -> np.ndarray:
        """Per-base phred scores decoded from ``qualities``.

        Raises:
            ValueError: If a quality character lies below the phred+33 range.
        """
        if self.qualities is None:
            return np.zeros(0, dtype=np.uint8)
        raw = np.frombuffer(self.qualities.encode("ascii"), dtype=np.uint8)
        scores = raw.astype(np.int16) - constants.PHRED_OFFSET
        if (scores < 0).any():
            position = int(np.argmax(scores < 0))
            raise ValueError(
                f"Quality character {self.qualities[position]!r} at "
                f"{position} of {self.name} is below the phred+33 range"
            )
        return scores.astype(np.uint8)
