#!/usr/bin/env python3
"""Command-line interface for alndiff.

This module provides the CLI entry point. For every alignment in a SAM/BAM
file it:

1. Loads the reference sequence of the alignment's contig
2. Derives the difference list from the CIGAR, read bases and reference
3. Writes the regenerated CIGAR and the differences to a TSV file
4. Optionally rebuilds the read from the differences and writes it to a
   new SAM/BAM file

Usage:
    alndiff -i reads.bam -r genome.fa -o differences.tsv
    alndiff -i reads.sam -r genome.fa -o differences.tsv -b rebuilt.bam
"""

import contextlib
import csv
import logging
import os
from typing import Dict, Optional, Set, Tuple

import click
import pysam

from alndiff import reference, sam, util
from alndiff.config import PipelineConfig
from alndiff.errors import CodecError

LOGGER = logging.getLogger(__name__)

TSV_COLUMNS = ("name", "reference", "start", "end", "cigar", "differences")


def _contig(
    references: Dict[str, str], name: str, missing: Set[str]
) -> Optional[str]:
    sequence = references.get(name)
    if sequence is None and name not in missing:
        missing.add(name)
        LOGGER.warning(
            f"Reference {name} not found in FASTA; mismatches on it will "
            "not be detected"
        )
    return sequence


def process_alignments(config: PipelineConfig) -> Tuple[int, int]:
    """Convert every alignment in the input and write the outputs.

    Alignments whose conversion fails are logged and skipped.

    Returns:
        Number of alignments written and number skipped.
    """
    references = reference.load_reference(config.io.reference_fasta)
    codec_config = config.codec
    missing: Set[str] = set()
    written = 0
    skipped = 0
    with contextlib.ExitStack() as stack:
        alignments = stack.enter_context(
            pysam.AlignmentFile(
                config.io.input_alignments, "r", check_sq=False
            )
        )
        handle = stack.enter_context(
            open(config.io.output_file, "w", newline="")
        )
        writer = csv.writer(handle, delimiter="\t", lineterminator="\n")
        writer.writerow(TSV_COLUMNS)
        rebuilt = None
        if config.io.bam_output:
            mode = "wb" if config.io.bam_output.endswith(".bam") else "w"
            rebuilt = stack.enter_context(
                pysam.AlignmentFile(
                    config.io.bam_output, mode, header=alignments.header
                )
            )

        for segment in alignments:
            contig = None
            if segment.reference_name is not None:
                contig = _contig(references, segment.reference_name, missing)
            try:
                record = sam.from_pysam(
                    segment,
                    contig,
                    reference_start=1,
                    max_stored_sequence=codec_config.max_stored_sequence,
                )
                cigar = record.cigar_string(extended=codec_config.extended_cigar)
                if rebuilt is not None:
                    rebuilt_segment = sam.to_pysam(
                        record,
                        alignments.header,
                        contig,
                        reference_start=1,
                        extended=codec_config.extended_cigar,
                    )
            except CodecError as err:
                LOGGER.warning(f"Skipping {segment.query_name}: {err}")
                skipped += 1
                continue

            differences = ";".join(
                util.format_difference(d) for d in record.differences
            )
            writer.writerow(
                (
                    record.name,
                    record.reference_name or "*",
                    record.start,
                    record.end,
                    cigar,
                    differences or "*",
                )
            )
            if rebuilt is not None:
                rebuilt.write(rebuilt_segment)
            written += 1

    LOGGER.info(f"Wrote {written} alignments, skipped {skipped}")
    return written, skipped


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    help=(
        "Describe aligned reads by their differences from the reference, "
        "and optionally rebuild the alignments from those differences."
    ),
)
@click.option(
    "-i",
    "--input",
    "input_alignments",
    required=True,
    type=click.Path(exists=True, dir_okay=False, readable=True, path_type=str),
    help="Input alignment file (SAM or BAM).",
)
@click.option(
    "-r",
    "--reference",
    "reference_fasta",
    required=True,
    type=click.Path(exists=True, dir_okay=False, readable=True, path_type=str),
    help="Reference FASTA the reads were aligned against.",
)
@click.option(
    "-o",
    "--output",
    "output_file",
    required=True,
    type=click.Path(dir_okay=False, writable=True, path_type=str),
    help="Destination TSV with one row of differences per alignment.",
)
@click.option(
    "-b",
    "--bam-output",
    "bam_output",
    default=None,
    type=click.Path(dir_okay=False, writable=True, path_type=str),
    help=(
        "Write alignments rebuilt from their differences to this file. "
        "Use a .bam extension for BAM, anything else for SAM."
    ),
)
@click.option(
    "--max-stored-sequence",
    "max_stored_sequence",
    type=click.IntRange(min=0),
    default=None,
    help=(
        "Store at most this many bases per difference. Reads whose "
        "differences are truncated fall back to their stored bases when "
        "rebuilt."
    ),
)
@click.option(
    "--extended-cigar",
    "extended_cigar",
    is_flag=True,
    help="Write '=' and 'X' instead of 'M' in regenerated CIGARs.",
)
@click.option(
    "--overwrite",
    is_flag=True,
    help="Overwrite the outputs if they already exist.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging.",
)
def main(
    input_alignments: str,
    reference_fasta: str,
    output_file: str,
    bam_output: str,
    max_stored_sequence: int,
    extended_cigar: bool,
    overwrite: bool,
    verbose: bool,
) -> None:
    """Run the command-line workflow for describing alignments."""
    util.configure_logging(verbose)
    config = PipelineConfig.from_cli_args(
        input_alignments=input_alignments,
        reference_fasta=reference_fasta,
        output_file=output_file,
        bam_output=bam_output,
        max_stored_sequence=max_stored_sequence,
        extended_cigar=extended_cigar,
        overwrite=overwrite,
        verbose=verbose,
    )

    for path in (output_file, bam_output):
        if path and os.path.exists(path) and not overwrite:
            raise click.ClickException(
                f"{path} exists, rerun with --overwrite to replace it"
            )

    LOGGER.info(
        f"Starting alndiff with input={input_alignments} "
        f"reference={reference_fasta} output={output_file}"
    )
    written, skipped = process_alignments(config)
    click.echo(f"{written} alignments written, {skipped} skipped")


if __name__ == "__main__":
    main()
