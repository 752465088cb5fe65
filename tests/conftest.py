"""Shared test fixtures and utilities for alndiff tests."""

from pathlib import Path
from typing import Dict, List, Optional

import pysam

from alndiff.cigar import parse_cigar

# 30 bases, used as the reference window in most tests
REFERENCE = "ACGTACGTACGTACGTACGTACGTACGTAC"

# A base guaranteed to differ from each reference base
SUBSTITUTE = {"A": "C", "C": "G", "G": "T", "T": "A"}


def read_from_cigar(reference: str, cigar: str, offset: int = 0) -> str:
    """Simulate the read bases an aligner would report for ``cigar``.

    Aligned M/= bases copy the reference, X bases are substituted,
    insertions are filled with T and soft clips with G.
    """
    bases = []
    ref_pos = offset
    for length, op in parse_cigar(cigar):
        if op in "M=":
            bases.append(reference[ref_pos : ref_pos + length])
            ref_pos += length
        elif op == "X":
            bases.extend(
                SUBSTITUTE[base] for base in reference[ref_pos : ref_pos + length]
            )
            ref_pos += length
        elif op == "I":
            bases.append("T" * length)
        elif op == "S":
            bases.append("G" * length)
        elif op in "DN":
            ref_pos += length
    return "".join(bases)


def make_header(references: Optional[Dict[str, int]] = None) -> pysam.AlignmentHeader:
    """Create a pysam header declaring ``references`` (name -> length)."""
    if references is None:
        references = {"chr1": len(REFERENCE)}
    return pysam.AlignmentHeader.from_dict(
        {
            "HD": {"VN": "1.6", "SO": "unsorted"},
            "SQ": [{"SN": name, "LN": length} for name, length in references.items()],
        }
    )


def make_segment(
    header: pysam.AlignmentHeader,
    name: str = "read1",
    reference_id: int = 0,
    reference_start: int = 0,
    cigar: Optional[str] = "4M2I4M",
    sequence: Optional[str] = "ACGTGGACGT",
    qualities: Optional[str] = None,
    flag: int = 0,
    mapping_quality: int = 60,
) -> pysam.AlignedSegment:
    """Create a pysam segment; coordinates are 0-based as in pysam."""
    segment = pysam.AlignedSegment(header)
    segment.query_name = name
    segment.flag = flag
    segment.reference_id = reference_id
    segment.reference_start = reference_start
    segment.mapping_quality = mapping_quality
    if cigar is not None:
        segment.cigarstring = cigar
    if sequence is not None:
        segment.query_sequence = sequence
        if qualities is None:
            qualities = "I" * len(sequence)
        segment.query_qualities = pysam.qualitystring_to_array(qualities)
    segment.next_reference_id = -1
    segment.next_reference_start = -1
    segment.template_length = 0
    return segment


def write_fasta(path: Path, sequences: Dict[str, str]) -> Path:
    path.write_text(
        "".join(f">{name}\n{seq}\n" for name, seq in sequences.items())
    )
    return path


def write_sam(path: Path, header_lines: List[str], records: List[List[str]]) -> Path:
    """Write a SAM file from header lines and tab-separated record fields."""
    lines = header_lines + ["\t".join(fields) for fields in records]
    path.write_text("\n".join(lines) + "\n")
    return path
