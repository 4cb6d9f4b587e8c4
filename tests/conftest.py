from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pytest

try:
    import pysam as _pysam

    HAS_PYSAM = True
except ImportError:
    _pysam = None
    HAS_PYSAM = False


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Mark all tests under tests/unit as unit tests."""
    for item in items:
        path = Path(str(item.fspath)).as_posix()
        if "/tests/unit/" in f"/{path}":
            item.add_marker(pytest.mark.unit)


class FakeRead:
    """Minimal stand-in for ``pysam.AlignedSegment``."""

    def __init__(self, name: str, sequence: Optional[str]):
        self.query_name = name
        self.query_sequence = sequence
        self._tags: Dict[str, object] = {}

    def set_tag(self, tag, value, value_type=None):
        self._tags[tag] = value

    def has_tag(self, tag) -> bool:
        return tag in self._tags

    def get_tag(self, tag):
        return self._tags[tag]

    def __repr__(self) -> str:
        return f"FakeRead({self.query_name!r}, {self.query_sequence!r})"


@pytest.fixture
def fake_reads():
    def _make(sequences: List[Optional[str]]) -> List[FakeRead]:
        return [FakeRead(f"read{i + 1}", seq) for i, seq in enumerate(sequences)]

    return _make


def write_unaligned_bam(bam_path: Path, sequences: List[str]) -> Path:
    """Create an unaligned BAM with one read per sequence (``read1``, ``read2``, ...)."""
    header = {"HD": {"VN": "1.6", "SO": "unknown"}, "CO": ["test"]}
    with _pysam.AlignmentFile(str(bam_path), "wb", header=header) as outf:
        for i, seq in enumerate(sequences):
            a = _pysam.AlignedSegment(outf.header)
            a.query_name = f"read{i + 1}"
            a.query_sequence = seq
            a.flag = 4
            a.reference_id = -1
            a.reference_start = -1
            a.next_reference_id = -1
            a.next_reference_start = -1
            a.query_qualities = _pysam.qualitystring_to_array("I" * len(seq))
            outf.write(a)
    return bam_path


def read_bam(bam_path: Path) -> List[tuple]:
    """Return ``[(name, sequence, tags)]`` for every read in file order."""
    with _pysam.AlignmentFile(str(bam_path), "rb", check_sq=False) as fh:
        return [
            (read.query_name, read.query_sequence, dict(read.get_tags()))
            for read in fh.fetch(until_eof=True)
        ]


@pytest.fixture
def make_bam(tmp_path):
    if not HAS_PYSAM:
        pytest.skip("pysam not installed")

    def _make(sequences: List[str], name: str = "sample.bam") -> Path:
        return write_unaligned_bam(tmp_path / name, sequences)

    return _make


@pytest.fixture
def isolated_package_logger():
    """Restore the ``seqtagfinder`` logger after a test that calls ``setup_logging``."""
    logger = logging.getLogger("seqtagfinder")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    saved_propagate = logger.propagate
    yield logger
    for handler in list(logger.handlers):
        if handler not in saved_handlers:
            handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate
