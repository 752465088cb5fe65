from alndiff import constants


def test_flag_bits_are_distinct_powers_of_two():
    flags = [
        constants.ALIGNMENT_MULTIPLE_SEGMENTS,
        constants.SEGMENTS_PROPERLY_ALIGNED,
        constants.SEGMENT_UNMAPPED,
        constants.NEXT_SEGMENT_UNMAPPED,
        constants.SEQUENCE_REVERSE_COMPLEMENTED,
        constants.SEQUENCE_NEXT_SEGMENT_REVERSED,
        constants.FIRST_SEGMENT,
        constants.LAST_SEGMENT,
        constants.SECONDARY_ALIGNMENT,
        constants.NOT_PASSING_QC,
        constants.PCR_OR_OPTICAL_DUPLICATE,
        constants.SUPPLEMENTARY_ALIGNMENT,
    ]
    assert flags == [1 << bit for bit in range(12)]


def test_op_groups_are_drawn_from_cigar_ops():
    groups = (
        constants.ALIGNED_OPS,
        constants.REFERENCE_CONSUMING_OPS,
        constants.READ_CONSUMING_OPS,
        constants.CLIP_OPS,
    )
    for group in groups:
        assert group <= set(constants.CIGAR_OPS)


def test_aligned_ops_consume_both_sequences():
    assert constants.ALIGNED_OPS <= constants.REFERENCE_CONSUMING_OPS
    assert constants.ALIGNED_OPS <= constants.READ_CONSUMING_OPS


def test_match_ops_are_aligned():
    assert {
        constants.MATCH_OP,
        constants.SEQUENCE_MATCH_OP,
        constants.SEQUENCE_MISMATCH_OP,
    } == constants.ALIGNED_OPS
