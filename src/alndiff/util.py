#!/usr/bin/env python3
"""Utility functions for alndiff."""

import logging

from alndiff.types import AlignmentDifference


def configure_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag.

    Args:
        verbose: If True, set logging level to INFO. Otherwise, set to WARNING.
    """
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, force=True)


def format_difference(difference: AlignmentDifference) -> str:
    """Render a difference as ``pos:lengthOP[:seq]`` for tabular output."""
    text = f"{difference.pos}:{difference.length}{difference.op.value}"
    if difference.seq:
        text += f":{difference.seq}"
    return text
