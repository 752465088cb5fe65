#!/usr/bin/env python3
"""Configuration dataclasses for the alndiff pipeline.

This module provides configuration dataclasses that consolidate
pipeline parameters, making it easier to manage and pass configuration
throughout the application.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CodecConfig:
    """Configuration for converting alignments into differences and back.

    Attributes:
        max_stored_sequence: Maximum bases stored per difference
            (None = unlimited). Longer spans keep only a prefix.
        extended_cigar: Write ``=``/``X`` instead of ``M`` when
            regenerating CIGARs.
    """

    max_stored_sequence: Optional[int] = None
    extended_cigar: bool = False

    def __post_init__(self) -> None:
        if self.max_stored_sequence is not None and self.max_stored_sequence < 0:
            raise ValueError(
                "max_stored_sequence must be >= 0; got "
                f"{self.max_stored_sequence}"
            )


@dataclass(frozen=True)
class IOConfig:
    """Configuration for input/output operations.

    Attributes:
        input_alignments: Path to the input SAM/BAM file.
        reference_fasta: Path to the reference FASTA file.
        output_file: Path to the TSV of differences.
        bam_output: Optional path for regenerated alignments
            (.bam for BAM, anything else for SAM).
        overwrite: Whether to overwrite existing outputs.
    """

    input_alignments: str
    reference_fasta: str
    output_file: str
    bam_output: Optional[str] = None
    overwrite: bool = False


@dataclass(frozen=True)
class PipelineConfig:
    """Complete configuration for the alndiff pipeline.

    Example:
        config = PipelineConfig(
            io=IOConfig(
                input_alignments="reads.bam",
                reference_fasta="genome.fa",
                output_file="differences.tsv",
            ),
            codec=CodecConfig(max_stored_sequence=32),
        )
    """

    io: IOConfig
    codec: CodecConfig = field(default_factory=CodecConfig)
    verbose: bool = False

    @classmethod
    def from_cli_args(
        cls,
        input_alignments: str,
        reference_fasta: str,
        output_file: str,
        bam_output: Optional[str] = None,
        max_stored_sequence: Optional[int] = None,
        extended_cigar: bool = False,
        overwrite: bool = False,
        verbose: bool = False,
    ) -> "PipelineConfig":
        """Create a PipelineConfig from CLI arguments."""
        return cls(
            io=IOConfig(
                input_alignments=input_alignments,
                reference_fasta=reference_fasta,
                output_file=output_file,
                bam_output=bam_output,
                overwrite=overwrite,
            ),
            codec=CodecConfig(
                max_stored_sequence=max_stored_sequence,
                extended_cigar=extended_cigar,
            ),
            verbose=verbose,
        )
