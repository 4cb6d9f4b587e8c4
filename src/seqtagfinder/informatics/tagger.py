from __future__ import annotations

from typing import Any, List

from seqtagfinder.logging_utils import get_logger

from .bam_io import read_sequence_bytes
from .match_table import NO_MATCH, FuzzyMatchTable, MatchClass, MatchKind
from .metrics import RunMetrics

logger = get_logger(__name__)


class TagAttachError(RuntimeError):
    """Raised when a tag cannot be attached to a record."""


class Tagger:
    """Classify the window at a fixed offset of each read and tag matches.

    Exact and unambiguous one-mismatch windows get the matched label stored as
    a string tag under ``out_tag``; other reads pass through unchanged. Every
    read is counted in ``RunMetrics.read_count``.

    Parameters
    ----------
    table : FuzzyMatchTable
        Shared, read-only lookup table.
    target_position : int
        Offset selected from the frequency pass.
    out_tag : str
        Two-character tag key.
    """

    def __init__(self, table: FuzzyMatchTable, target_position: int, out_tag: str):
        if target_position < 0:
            raise ValueError(f"target_position must be non-negative, got {target_position}")
        self.table = table
        self.target_position = target_position
        self.out_tag = out_tag

    def classify(self, sequence: bytes) -> MatchClass:
        end = self.target_position + self.table.min_length
        if len(sequence) < end:
            return NO_MATCH
        return self.table.lookup(sequence[self.target_position : end])

    def tag_record(self, record: Any, metrics: RunMetrics) -> MatchClass:
        metrics.read_count += 1
        match = self.classify(read_sequence_bytes(record))
        if not match.is_match:
            return match
        try:
            record.set_tag(self.out_tag, match.label, value_type="Z")
        except Exception as exc:
            raise TagAttachError(
                f"Failed to add tag {self.out_tag}:{match.label} to read "
                f"{getattr(record, 'query_name', '?')}: {exc}"
            ) from exc
        if match.kind is MatchKind.EXACT:
            metrics.exact_count += 1
        else:
            metrics.mismatch_count += 1
        return match

    def tag_batch(self, batch: List[Any], metrics: RunMetrics) -> List[Any]:
        """Tag records of ``batch`` in place and return the same batch."""
        for record in batch:
            self.tag_record(record, metrics)
        return batch
