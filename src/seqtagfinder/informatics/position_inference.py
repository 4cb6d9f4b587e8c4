from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from seqtagfinder.constants import EXACT_MATCH_SCORE, MISMATCH_MATCH_SCORE
from seqtagfinder.logging_utils import get_logger

from .bam_io import read_sequence_bytes
from .match_table import FuzzyMatchTable, MatchKind

logger = get_logger(__name__)

# start offset -> accumulated window score
OffsetHistogram = Dict[int, int]

_WINDOW_SCORES = {
    MatchKind.EXACT: EXACT_MATCH_SCORE,
    MatchKind.ERROR_OF: MISMATCH_MATCH_SCORE,
}


def increment_offset_score(histogram: OffsetHistogram, offset: int, score: int) -> None:
    histogram[offset] = histogram.get(offset, 0) + score


def score_read_windows(
    sequence: bytes, table: FuzzyMatchTable, histogram: OffsetHistogram
) -> None:
    """Score every window of ``sequence`` into ``histogram``.

    Exact windows add 3, unambiguous one-mismatch windows add 1, anything else
    adds nothing. Reads shorter than the window length contribute nothing.
    """
    window_length = table.min_length
    for start in range(len(sequence) - window_length + 1):
        match = table.lookup(sequence[start : start + window_length])
        score = _WINDOW_SCORES.get(match.kind)
        if score:
            increment_offset_score(histogram, start, score)


class FrequencyScanner:
    """Accumulate the offset histogram over the first reads of a file.

    Parameters
    ----------
    table : FuzzyMatchTable
        Shared, read-only lookup table.
    num_reads_to_find_start_pos : int
        Maximum number of reads to scan. Fewer are scanned if the input ends first.
    """

    def __init__(self, table: FuzzyMatchTable, num_reads_to_find_start_pos: int):
        if num_reads_to_find_start_pos <= 0:
            raise ValueError(
                f"num_reads_to_find_start_pos must be positive, got {num_reads_to_find_start_pos}"
            )
        self.table = table
        self.num_reads_to_find_start_pos = num_reads_to_find_start_pos
        self.reads_scanned = 0

    def scan(self, batches: Iterable[List[Any]]) -> OffsetHistogram:
        """Consume batches until the read cap is reached or input ends.

        The caller owns the source and is responsible for stopping it when this
        returns early.
        """
        histogram: OffsetHistogram = {}
        self.reads_scanned = 0
        for batch in batches:
            for record in batch:
                score_read_windows(read_sequence_bytes(record), self.table, histogram)
                self.reads_scanned += 1
                if self.reads_scanned >= self.num_reads_to_find_start_pos:
                    return histogram
        # input held fewer reads than the cap
        return histogram


def select_target_position(histogram: OffsetHistogram) -> Optional[int]:
    """Return the offset with the highest score, or ``None`` for an empty histogram.

    Ties are broken towards the lowest offset.
    """
    if not histogram:
        return None
    return max(histogram.items(), key=lambda item: (item[1], -item[0]))[0]


def top_offsets(histogram: OffsetHistogram, n: int = 3) -> List[tuple]:
    """Highest scoring ``(offset, score)`` pairs, for logging."""
    return Counter(histogram).most_common(n)
