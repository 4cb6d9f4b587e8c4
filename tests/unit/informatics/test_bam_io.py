import threading

import pytest

from seqtagfinder.informatics.bam_io import (
    BamIOError,
    RecordSink,
    RecordSource,
    open_record_sink,
    open_record_source,
    read_sequence_bytes,
)
from tests.conftest import FakeRead, read_bam


def _reused_buffer_reads(sequences):
    """Yield one FakeRead object mutated in place, like a codec reusing its record."""
    record = FakeRead("", None)
    for i, seq in enumerate(sequences):
        record.query_name = f"read{i + 1}"
        record.query_sequence = seq
        yield record


class ListWriter:
    def __init__(self, fail_after=None):
        self.written = []
        self.closed = False
        self.fail_after = fail_after

    def write(self, record):
        if self.fail_after is not None and len(self.written) >= self.fail_after:
            raise OSError("disk full")
        self.written.append(record)

    def close(self):
        self.closed = True


@pytest.mark.parametrize("n_records,batch_size", [(0, 3), (1, 3), (9, 3), (10, 3), (7, 1), (5, 100)])
def test_batches_neither_drop_nor_duplicate(fake_reads, n_records, batch_size):
    reads = fake_reads(["ACGT"] * n_records)
    with RecordSource(reads, batch_size, buffer_size=2) as source:
        batches = list(source)
    assert sum(len(b) for b in batches) == n_records
    assert all(len(b) == batch_size for b in batches[:-1])
    assert [r.query_name for b in batches for r in b] == [r.query_name for r in reads]
    assert source.records_read == n_records


def test_records_are_copied_out_of_reused_buffer():
    sequences = ["AAAA", "CCCC", "GGGG", "TTTT"]
    with RecordSource(_reused_buffer_reads(sequences), batch_size=2, buffer_size=1) as source:
        batches = list(source)
    assert [r.query_sequence for b in batches for r in b] == sequences


def test_consumer_can_stop_early(fake_reads):
    closed = []
    reads = fake_reads(["ACGT"] * 1000)
    source = RecordSource(reads, batch_size=10, buffer_size=1, on_close=lambda: closed.append(True))
    first = source.next_batch()
    assert len(first) == 10
    source.finish()
    assert closed == [True]
    assert source.records_read < 1000


def test_reader_stops_at_next_record_after_close():
    resume = threading.Event()
    pulled = []

    def gated_reads():
        for i in range(100):
            if i == 3:
                assert resume.wait(timeout=5)
            pulled.append(i)
            yield FakeRead(f"read{i + 1}", "ACGT")

    source = RecordSource(gated_reads(), batch_size=3, buffer_size=1)
    assert len(source.next_batch()) == 3
    source.channel.close()
    resume.set()
    source.finish()
    assert source.records_read == 3
    assert pulled == [0, 1, 2, 3]


def test_reader_error_is_raised_on_finish():
    def broken():
        yield FakeRead("read1", "ACGT")
        raise ValueError("truncated record")

    source = RecordSource(broken(), batch_size=1, buffer_size=4)
    batches = list(source)
    assert len(batches) == 1
    with pytest.raises(BamIOError) as excinfo:
        source.finish()
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_sink_writes_in_order_and_closes(fake_reads):
    writer = ListWriter()
    reads = fake_reads(["A", "C", "G", "T", "N"])
    with RecordSink(writer, buffer_size=1, on_close=writer.close) as sink:
        sink.write(reads[:2])
        sink.write(reads[2:4])
        sink.write(reads[4:])
    assert writer.written == reads
    assert writer.closed
    assert sink.records_written == 5


def test_sink_failure_surfaces_instead_of_hanging(fake_reads):
    writer = ListWriter(fail_after=1)
    sink = RecordSink(writer, buffer_size=1)
    with pytest.raises(BamIOError):
        for _ in range(50):
            sink.write(fake_reads(["ACGT", "ACGT"]))
        sink.finish()


def test_read_sequence_bytes():
    assert read_sequence_bytes(FakeRead("r", "acgt")) == b"ACGT"
    assert read_sequence_bytes(FakeRead("r", None)) == b""


def test_bam_round_trip_through_source_and_sink(make_bam, tmp_path):
    sequences = [f"ACGT{'A' * i}" for i in range(1, 8)]
    in_bam = make_bam(sequences)
    out_bam = tmp_path / "copy.bam"

    with open_record_source(in_bam, batch_size=3, buffer_size=2) as source:
        with open_record_sink(out_bam, source.header, buffer_size=2) as sink:
            for batch in source:
                sink.write(batch)

    assert [(n, s) for n, s, _ in read_bam(out_bam)] == [
        (f"read{i + 1}", seq) for i, seq in enumerate(sequences)
    ]


def test_open_missing_bam_raises(tmp_path):
    pytest.importorskip("pysam")
    with pytest.raises(BamIOError):
        open_record_source(tmp_path / "missing.bam")
