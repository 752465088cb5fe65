#!/usr/bin/env python3
"""Reference sequence loading.

This module provides functions for reading reference sequences from FASTA
files using BioPython and for cutting 1-based windows out of them.
"""

import logging
from typing import Dict

from Bio import SeqIO

from alndiff import codec

LOGGER = logging.getLogger(__name__)


def load_reference(file_path: str) -> Dict[str, str]:
    """Read every record of a FASTA file.

    Args:
        file_path: Path to a FASTA file.

    Returns:
        Mapping from record identifier to its sequence.

    Raises:
        ValueError: If the file contains no records.
    """
    sequences = {
        record.id: str(record.seq) for record in SeqIO.parse(file_path, "fasta")
    }
    if not sequences:
        raise ValueError(f"No FASTA records found in {file_path}")
    LOGGER.info(f"Loaded {len(sequences)} reference sequences from {file_path}")
    return sequences


def reference_window(sequence: str, start: int, end: int) -> str:
    """Return the bases at 1-based inclusive positions ``start``..``end``.

    Raises:
        BoundsError: If the window is not contained in ``sequence``.
    """
    return codec.reference_slice(sequence, start - 1, end)
