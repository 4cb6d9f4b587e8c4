import pytest

from seqtagfinder.informatics.match_table import FuzzyMatchTable, MatchKind
from seqtagfinder.informatics.metrics import RunMetrics
from seqtagfinder.informatics.sequence import Sequence
from seqtagfinder.informatics.tagger import TagAttachError, Tagger
from tests.conftest import FakeRead


@pytest.fixture
def table():
    return FuzzyMatchTable.from_markers(
        [
            ("bc1", Sequence.from_string("ACGT")),
            ("bc2", Sequence.from_string("TTTT")),
        ]
    )


def test_tag_batch_counts_and_tags(table, fake_reads, tmp_path):
    reads = fake_reads(
        [
            "GGACGTGG",  # exact bc1 at 2
            "GGTTTAGG",  # one mismatch of bc2 at 2
            "GGCCCCGG",  # no match
            "GGAC",  # too short for the window at 2
            None,  # no sequence
        ]
    )
    metrics = RunMetrics(input_bam=tmp_path / "x.bam")
    tagger = Tagger(table, target_position=2, out_tag="SP")
    out = tagger.tag_batch(reads, metrics)

    assert out is reads
    assert reads[0].get_tag("SP") == "bc1"
    assert reads[1].get_tag("SP") == "bc2"
    assert not reads[2].has_tag("SP")
    assert not reads[3].has_tag("SP")
    assert not reads[4].has_tag("SP")
    assert (metrics.read_count, metrics.exact_count, metrics.mismatch_count) == (5, 1, 1)


def test_ambiguous_window_is_not_tagged(tmp_path):
    table = FuzzyMatchTable.from_markers(
        [("t1", Sequence.from_string("AAAA")), ("t2", Sequence.from_string("AAAC"))]
    )
    read = FakeRead("r1", "AAAG")
    metrics = RunMetrics(input_bam=tmp_path / "x.bam")
    match = Tagger(table, 0, "SP").tag_record(read, metrics)
    assert match.kind is MatchKind.AMBIGUOUS
    assert not read.has_tag("SP")
    assert metrics.read_count == 1
    assert metrics.exact_count == metrics.mismatch_count == 0


def test_read_exactly_reaching_window_end_is_tagged(table, tmp_path):
    read = FakeRead("r1", "GGACGT")
    metrics = RunMetrics(input_bam=tmp_path / "x.bam")
    Tagger(table, 2, "SP").tag_record(read, metrics)
    assert read.get_tag("SP") == "bc1"


def test_tag_failure_is_raised(table, tmp_path):
    class BrokenRead(FakeRead):
        def set_tag(self, tag, value, value_type=None):
            raise ValueError("invalid tag")

    metrics = RunMetrics(input_bam=tmp_path / "x.bam")
    with pytest.raises(TagAttachError):
        Tagger(table, 0, "SP").tag_record(BrokenRead("r1", "ACGT"), metrics)


def test_negative_position_rejected(table):
    with pytest.raises(ValueError):
        Tagger(table, -1, "SP")
