from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Tuple, Union

from seqtagfinder.logging_utils import get_logger

from .match_table import FuzzyMatchTable
from .sequence import Sequence

logger = get_logger(__name__)


def parse_whitelist_lines(lines: Iterable[str]) -> List[Tuple[str, Sequence]]:
    """
    Parse whitelist lines into ``(label, Sequence)`` pairs.

    Each line is whitespace-split into a label followed by one or more target
    sequences. Blank lines and lines with a single token are ignored.
    """
    markers: List[Tuple[str, Sequence]] = []
    for line in lines:
        words = line.split()
        if len(words) < 2:
            continue
        label = words[0]
        for word in words[1:]:
            markers.append((label, Sequence.from_string(word)))
    return markers


def read_target_whitelist(whitelist_path: Union[str, Path]) -> List[Tuple[str, Sequence]]:
    """Read and validate every target in a whitelist file."""
    path = Path(whitelist_path)
    if not path.is_file():
        raise FileNotFoundError(f"Target whitelist file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        return parse_whitelist_lines(fh)


def load_match_table(whitelist_path: Union[str, Path]) -> FuzzyMatchTable:
    """
    Build the one-mismatch lookup table from a whitelist file.

    Raises
    ------
    FileNotFoundError
        If the whitelist does not exist.
    InvalidSequenceError
        If any target contains characters outside ``ACGTN``.
    EmptyWhitelistError
        If no targets were found.
    """
    markers = read_target_whitelist(whitelist_path)
    table = FuzzyMatchTable.from_markers(markers)
    labels = {label for label, _ in markers}
    logger.info(
        "Loaded %d target sequences (%d labels) from %s; window length %d, %d lookup entries",
        len(markers),
        len(labels),
        whitelist_path,
        table.min_length,
        len(table),
    )
    return table
