import logging
from pathlib import Path

import pysam
import pytest
from click.testing import CliRunner

from alndiff import cli
from alndiff.config import PipelineConfig
from tests.conftest import REFERENCE, write_fasta, write_sam

HEADER = [
    "@HD\tVN:1.6\tSO:unsorted",
    "@SQ\tSN:chr1\tLN:40",
    "@SQ\tSN:chr2\tLN:10",
]

RECORDS = [
    ["read1", "0", "chr1", "1", "60", "4M2I4M", "*", "0", "0",
     "ACGTGGACGT", "IIIIIIIIII", "NM:i:2"],
    ["read2", "16", "chr1", "5", "60", "2S6M", "*", "0", "0",
     "TTACGTAC", "IIIIIIII"],
    ["read3", "4", "*", "0", "0", "*", "*", "0", "0", "ACGT", "IIII"],
    # runs past the 30 reference bases in the FASTA
    ["read4", "0", "chr1", "28", "60", "5M", "*", "0", "0", "ACGTA", "IIIII"],
    ["read5", "0", "chr2", "1", "60", "4M", "*", "0", "0", "ACGT", "IIII"],
    ["read6", "0", "chr1", "3", "60", "4M", "*", "0", "0", "GTTC", "IIII"],
]


@pytest.fixture
def inputs(tmp_path):
    alignments = write_sam(tmp_path / "reads.sam", HEADER, RECORDS)
    fasta = write_fasta(tmp_path / "genome.fa", {"chr1": REFERENCE})
    return alignments, fasta


def read_rows(path: Path):
    return [line.split("\t") for line in path.read_text().splitlines()]


def read_rebuilt(path: Path):
    with pysam.AlignmentFile(str(path), "r", check_sq=False) as handle:
        return {
            segment.query_name: (segment.cigarstring, segment.query_sequence)
            for segment in handle
        }


def test_cli_writes_differences_and_rebuilt_alignments(inputs, tmp_path):
    alignments, fasta = inputs
    output = tmp_path / "differences.tsv"
    rebuilt = tmp_path / "rebuilt.sam"

    runner = CliRunner()
    result = runner.invoke(
        cli.main,
        [
            "-i",
            str(alignments),
            "-r",
            str(fasta),
            "-o",
            str(output),
            "-b",
            str(rebuilt),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "5 alignments written, 1 skipped" in result.output

    assert read_rows(output) == [
        list(cli.TSV_COLUMNS),
        ["read1", "chr1", "1", "8", "4M2I4M", "4:2I:GG"],
        ["read2", "chr1", "5", "10", "2S6M", "0:2S:TT"],
        ["read3", "*", "0", "0", "*", "*"],
        ["read5", "chr2", "1", "4", "4M", "*"],
        ["read6", "chr1", "3", "6", "4M", "2:1X:T"],
    ]

    assert read_rebuilt(rebuilt) == {
        "read1": ("4M2I4M", "ACGTGGACGT"),
        "read2": ("2S6M", "TTACGTAC"),
        "read3": (None, "ACGT"),
        "read5": ("4M", "ACGT"),
        "read6": ("4M", "GTTC"),
    }


def test_cli_extended_cigar(inputs, tmp_path):
    alignments, fasta = inputs
    output = tmp_path / "differences.tsv"

    result = CliRunner().invoke(
        cli.main,
        ["-i", str(alignments), "-r", str(fasta), "-o", str(output),
         "--extended-cigar"],
    )
    assert result.exit_code == 0, result.output

    cigars = {row[0]: row[4] for row in read_rows(output)[1:]}
    assert cigars["read1"] == "4=2I4="
    assert cigars["read6"] == "2=1X1="


def test_cli_max_stored_sequence_truncates_differences(inputs, tmp_path):
    alignments, fasta = inputs
    output = tmp_path / "differences.tsv"
    rebuilt = tmp_path / "rebuilt.sam"

    result = CliRunner().invoke(
        cli.main,
        ["-i", str(alignments), "-r", str(fasta), "-o", str(output),
         "-b", str(rebuilt), "--max-stored-sequence", "1"],
    )
    assert result.exit_code == 0, result.output

    differences = {row[0]: row[5] for row in read_rows(output)[1:]}
    assert differences["read1"] == "4:2I:G"
    assert read_rebuilt(rebuilt)["read1"] == ("4M2I4M", "ACGTGGACGT")


def test_cli_refuses_to_overwrite(inputs, tmp_path):
    alignments, fasta = inputs
    output = tmp_path / "differences.tsv"
    output.write_text("keep me\n")
    args = ["-i", str(alignments), "-r", str(fasta), "-o", str(output)]

    result = CliRunner().invoke(cli.main, args)

    assert result.exit_code != 0
    assert "rerun with --overwrite" in result.output
    assert output.read_text() == "keep me\n"

    result = CliRunner().invoke(cli.main, args + ["--overwrite"])
    assert result.exit_code == 0, result.output
    assert output.read_text().startswith("name\t")


def test_cli_rejects_negative_max_stored_sequence(inputs, tmp_path):
    alignments, fasta = inputs
    result = CliRunner().invoke(
        cli.main,
        ["-i", str(alignments), "-r", str(fasta),
         "-o", str(tmp_path / "out.tsv"), "--max-stored-sequence", "-1"],
    )
    assert result.exit_code != 0


def test_process_alignments_logs_skips_and_missing_contigs(
    inputs, tmp_path, caplog
):
    alignments, fasta = inputs
    config = PipelineConfig.from_cli_args(
        input_alignments=str(alignments),
        reference_fasta=str(fasta),
        output_file=str(tmp_path / "differences.tsv"),
    )

    with caplog.at_level(logging.WARNING):
        written, skipped = cli.process_alignments(config)

    assert (written, skipped) == (5, 1)
    assert "Skipping read4" in caplog.text
    assert "Reference chr2 not found in FASTA" in caplog.text
