#!/usr/bin/env python3
"""Conversion between pysam alignments and AlignmentRecord.

``from_pysam`` turns a ``pysam.AlignedSegment`` read from a SAM/BAM file
into an AlignmentRecord; ``to_pysam`` turns a record back into a segment
ready to be written. Both take the reference buffer the alignment is
compared against and the 1-based coordinate of its first base
(``reference_start``). When ``reference_start`` is omitted the buffer is
assumed to start at the alignment start.

Tag values are kept as strings and written back as ``Z`` tags.
"""

import logging
from typing import Optional

import pysam

from alndiff import cigar as cigar_utils
from alndiff import constants
from alndiff.record import AlignmentRecord

LOGGER = logging.getLogger(__name__)

# Mate reference shorthand for "same as the read's reference"
SAME_REFERENCE = "="


def reference_offset(start: int, reference_start: Optional[int]) -> int:
    """Index of the base at ``start`` in a buffer beginning at ``reference_start``."""
    if reference_start is None:
        return 0
    return start - reference_start


def from_pysam(
    segment: pysam.AlignedSegment,
    reference: Optional[str] = None,
    reference_start: Optional[int] = None,
    max_stored_sequence: Optional[int] = None,
) -> AlignmentRecord:
    """Build an AlignmentRecord from a pysam segment.

    Args:
        segment: Alignment read by pysam.
        reference: Reference buffer for the segment's contig, if available.
        reference_start: 1-based coordinate of ``reference[0]``.
        max_stored_sequence: Cap on bases stored per difference.
    """
    # pysam positions are 0-based, -1 when unset
    start = segment.reference_start + 1
    qualities = None
    if segment.query_qualities is not None:
        qualities = pysam.qualities_to_qualitystring(segment.query_qualities)
    attributes = {tag: str(value) for tag, value in segment.get_tags()}
    record = AlignmentRecord.from_cigar(
        name=segment.query_name,
        reference_name=segment.reference_name,
        start=start,
        cigar=segment.cigarstring,
        read_sequence=segment.query_sequence,
        reference=reference,
        offset=reference_offset(start, reference_start),
        mapping_quality=segment.mapping_quality,
        qualities=qualities,
        mate_reference_name=segment.next_reference_name,
        mate_alignment_start=segment.next_reference_start + 1,
        inferred_insert_size=segment.template_length,
        flags=segment.flag,
        attributes=attributes,
        max_stored_sequence=max_stored_sequence,
    )
    LOGGER.debug(
        f"Converted {segment.query_name} ({segment.cigarstring}) into "
        f"{len(record.differences)} differences"
    )
    return record


def _reference_id(header: pysam.AlignmentHeader, name: Optional[str]) -> int:
    if name is None or name == constants.MISSING_FIELD:
        return -1
    tid = header.get_tid(name)
    if tid < 0:
        raise ValueError(f"Reference {name} is not declared in the header")
    return tid


def to_pysam(
    record: AlignmentRecord,
    header: pysam.AlignmentHeader,
    reference: Optional[str] = None,
    reference_start: Optional[int] = None,
    extended: bool = False,
) -> pysam.AlignedSegment:
    """Build a pysam segment from an AlignmentRecord.

    The CIGAR is regenerated from the differences. With a reference the read
    bases are rebuilt from the differences too; without one the stored read
    sequence is used, and a record with neither is written without bases.

    Args:
        record: Alignment to convert.
        header: Header declaring the record's reference names.
        reference: Reference buffer for the record's contig.
        reference_start: 1-based coordinate of ``reference[0]``.
        extended: Write ``=``/``X`` instead of ``M``.

    Raises:
        CodecError: If the differences cannot be turned into a CIGAR or bases.
        ValueError: If a reference name is missing from ``header``.
    """
    segment = pysam.AlignedSegment(header)
    segment.query_name = record.name
    segment.flag = record.flags
    segment.reference_id = _reference_id(header, record.reference_name)
    segment.reference_start = record.start - 1
    segment.mapping_quality = record.mapping_quality

    ops = record.cigar(extended=extended)
    if ops:
        segment.cigarstring = cigar_utils.format_cigar(ops)

    if reference is None and record.read_sequence is None:
        bases = None
    else:
        bases = record.read_bases(
            reference, reference_offset(record.start, reference_start)
        )
    if bases:
        segment.query_sequence = bases
        # Setting the sequence resets the qualities, so they go second
        if record.qualities is not None:
            segment.query_qualities = pysam.qualitystring_to_array(
                record.qualities
            )

    mate_name = record.mate_reference_name
    if mate_name == SAME_REFERENCE:
        mate_name = record.reference_name
    segment.next_reference_id = _reference_id(header, mate_name)
    segment.next_reference_start = record.mate_alignment_start - 1
    segment.template_length = record.inferred_insert_size
    for tag, value in record.attributes.items():
        segment.set_tag(tag, value, value_type="Z")
    return segment
