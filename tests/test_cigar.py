import pytest

from alndiff import cigar
from alndiff.types import CigarOp


def test_parse_cigar():
    assert cigar.parse_cigar("3S10M2I5M1D4M2H") == [
        CigarOp(3, "S"),
        CigarOp(10, "M"),
        CigarOp(2, "I"),
        CigarOp(5, "M"),
        CigarOp(1, "D"),
        CigarOp(4, "M"),
        CigarOp(2, "H"),
    ]


@pytest.mark.parametrize("text", [None, "", "*"])
def test_parse_missing_cigar(text):
    assert cigar.parse_cigar(text) == []


@pytest.mark.parametrize("text", ["4M2", "M4", "4Q", "4M 2I", "-4M"])
def test_parse_bad_cigar(text):
    with pytest.raises(ValueError, match="Bad CIGAR"):
        cigar.parse_cigar(text)


def test_format_cigar():
    assert cigar.format_cigar([CigarOp(4, "M"), CigarOp(2, "I")]) == "4M2I"
    assert cigar.format_cigar([]) == "*"


def test_merge_runs_joins_adjacent_ops_and_drops_empty_ones():
    ops = [
        CigarOp(2, "M"),
        CigarOp(3, "M"),
        CigarOp(0, "I"),
        CigarOp(1, "M"),
        CigarOp(2, "D"),
    ]
    assert cigar.merge_runs(ops) == [CigarOp(6, "M"), CigarOp(2, "D")]


def test_fold_matches():
    ops = cigar.parse_cigar("3=1X4=2I2=")
    assert cigar.fold_matches(ops) == cigar.parse_cigar("8M2I2M")


def test_consumption_totals():
    ops = cigar.parse_cigar("2H3S4M2I3D1N2=1X2S")
    assert cigar.reference_length(ops) == 4 + 3 + 1 + 2 + 1
    assert cigar.query_length(ops) == 3 + 4 + 2 + 2 + 1 + 2


def test_clipped_bases():
    ops = cigar.parse_cigar("2H3S4M2S")
    assert cigar.clipped_bases(ops, leading=True) == 5
    assert cigar.clipped_bases(ops, leading=False) == 2
    assert cigar.clipped_bases(cigar.parse_cigar("4M"), leading=True) == 0
