import dataclasses

import pytest

from alndiff.config import CodecConfig, IOConfig, PipelineConfig


def test_codec_config_defaults():
    config = CodecConfig()
    assert config.max_stored_sequence is None
    assert config.extended_cigar is False


def test_codec_config_rejects_negative_cap():
    with pytest.raises(ValueError, match="max_stored_sequence"):
        CodecConfig(max_stored_sequence=-1)


def test_codec_config_allows_zero_cap():
    assert CodecConfig(max_stored_sequence=0).max_stored_sequence == 0


def test_configs_are_frozen():
    config = IOConfig("reads.bam", "genome.fa", "out.tsv")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.overwrite = True


def test_pipeline_config_from_cli_args():
    config = PipelineConfig.from_cli_args(
        input_alignments="reads.bam",
        reference_fasta="genome.fa",
        output_file="out.tsv",
        bam_output="rebuilt.bam",
        max_stored_sequence=8,
        extended_cigar=True,
        overwrite=True,
        verbose=True,
    )

    assert config.io == IOConfig(
        input_alignments="reads.bam",
        reference_fasta="genome.fa",
        output_file="out.tsv",
        bam_output="rebuilt.bam",
        overwrite=True,
    )
    assert config.codec == CodecConfig(max_stored_sequence=8, extended_cigar=True)
    assert config.verbose


def test_pipeline_config_default_codec():
    config = PipelineConfig(io=IOConfig("reads.bam", "genome.fa", "out.tsv"))
    assert config.codec == CodecConfig()
    assert config.io.bam_output is None
