#!/usr/bin/env python3
"""Constants used throughout alndiff.

This module defines:
- SAM flag bit values
- CIGAR opcode groups by what they consume
- Sentinels used for absent SAM fields
"""

# SAM flag bits
ALIGNMENT_MULTIPLE_SEGMENTS = 0x01
SEGMENTS_PROPERLY_ALIGNED = 0x02
SEGMENT_UNMAPPED = 0x04
NEXT_SEGMENT_UNMAPPED = 0x08
SEQUENCE_REVERSE_COMPLEMENTED = 0x10
SEQUENCE_NEXT_SEGMENT_REVERSED = 0x20
FIRST_SEGMENT = 0x40
LAST_SEGMENT = 0x80
SECONDARY_ALIGNMENT = 0x100
NOT_PASSING_QC = 0x200
PCR_OR_OPTICAL_DUPLICATE = 0x400
SUPPLEMENTARY_ALIGNMENT = 0x800

# CIGAR opcodes, in BAM numeric order (0:M, 1:I, ..., 8:X)
CIGAR_OPS = "MIDNSHP=X"
ALIGNED_OPS = frozenset("M=X")
REFERENCE_CONSUMING_OPS = frozenset("MDN=X")
READ_CONSUMING_OPS = frozenset("MIS=X")
CLIP_OPS = frozenset("SH")

# Plain and extended match opcodes emitted when rebuilding a CIGAR
MATCH_OP = "M"
SEQUENCE_MATCH_OP = "="
SEQUENCE_MISMATCH_OP = "X"

# SAM sentinels
MISSING_FIELD = "*"
MISSING_POSITION = 0
MAX_MAPPING_QUALITY = 255

# Quality strings are phred+33
PHRED_OFFSET = 33
