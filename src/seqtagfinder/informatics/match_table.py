from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from seqtagfinder.logging_utils import get_logger

from .sequence import Sequence

logger = get_logger(__name__)


class EmptyWhitelistError(ValueError):
    """Raised when a match table is requested from a whitelist with no markers."""


class MatchKind(Enum):
    EXACT = "exact"
    ERROR_OF = "error_of"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class MatchClass:
    """Classification of a window against the whitelist.

    ``label`` is set for ``EXACT`` and ``ERROR_OF`` only.
    """

    kind: MatchKind
    label: Optional[str] = None

    @classmethod
    def exact(cls, label: str) -> "MatchClass":
        return cls(MatchKind.EXACT, label)

    @classmethod
    def error_of(cls, label: str) -> "MatchClass":
        return cls(MatchKind.ERROR_OF, label)

    @property
    def is_match(self) -> bool:
        """True for exact or unambiguous one-mismatch classifications."""
        return self.kind in (MatchKind.EXACT, MatchKind.ERROR_OF)


AMBIGUOUS = MatchClass(MatchKind.AMBIGUOUS)
NO_MATCH = MatchClass(MatchKind.NO_MATCH)

WindowLike = Union[bytes, bytearray, memoryview, str, Sequence]


class FuzzyMatchTable:
    """Lookup table from fixed-length windows to a :class:`MatchClass`.

    Every key has length ``min_length``. Markers are truncated to that length
    before insertion, and one-mismatch neighbors are expanded from the truncated
    marker. The table is read-only once built and can be shared across threads.

    Parameters
    ----------
    min_length : int
        Key length of the table.
    """

    def __init__(self, min_length: int):
        if min_length <= 0:
            raise ValueError(f"min_length must be positive, got {min_length}")
        self.min_length = min_length
        self._entries: Dict[bytes, MatchClass] = {}
        # ERROR_OF key -> (label, marker bytes) it was expanded from
        self._neighbor_sources: Dict[bytes, Tuple[str, bytes]] = {}

    @classmethod
    def from_markers(cls, markers: Iterable[Tuple[str, Sequence]]) -> "FuzzyMatchTable":
        """Build a table from ``(label, Sequence)`` pairs.

        Exact entries are inserted for all markers first, then neighbors are
        expanded, so the result does not depend on marker order.

        Raises
        ------
        EmptyWhitelistError
            If ``markers`` is empty.
        """
        markers = list(markers)
        if not markers:
            raise EmptyWhitelistError("Whitelist contains no target sequences")

        min_length = min(len(seq) for _, seq in markers)
        table = cls(min_length)

        trimmed: List[Tuple[str, Sequence]] = []
        for label, seq in markers:
            if len(seq) > min_length:
                logger.debug(
                    "Truncating target %s (%s) from %d to %d bases", label, seq, len(seq), min_length
                )
            trimmed.append((label, seq.truncated(min_length)))

        for label, seq in trimmed:
            table.add_exact(label, seq)
        for label, seq in trimmed:
            table.add_neighbors(label, seq)

        logger.debug(
            "Built match table: %d targets, %d entries, min_length=%d",
            len(trimmed),
            len(table),
            min_length,
        )
        return table

    def _check_length(self, seq: Sequence) -> None:
        if len(seq) != self.min_length:
            raise ValueError(
                f"Sequence '{seq}' has length {len(seq)}; table keys must have length {self.min_length}"
            )

    def add_exact(self, label: str, seq: Sequence) -> None:
        """Insert an exact entry, overwriting whatever was stored at the key."""
        self._check_length(seq)
        self._entries[seq.seq] = MatchClass.exact(label)

    def add_neighbors(self, label: str, seq: Sequence) -> None:
        """Insert every one-mismatch neighbor of ``seq`` for ``label``.

        Vacant keys become ``ERROR_OF(label)``. A key already holding an
        ``ERROR_OF`` reached from a different marker (other bases or other
        label) becomes ``AMBIGUOUS``, so two targets under one label still
        make their shared neighbors ambiguous. Re-adding the same marker is a
        no-op. Exact and ambiguous entries are left untouched.
        """
        self._check_length(seq)
        marker = (label, seq.seq)
        for neighbor in seq.one_mismatch_neighbors():
            key = neighbor.seq
            current = self._entries.get(key)
            if current is None:
                self._entries[key] = MatchClass.error_of(label)
                self._neighbor_sources[key] = marker
            elif current.kind is MatchKind.ERROR_OF and self._neighbor_sources.get(key) != marker:
                self._entries[key] = AMBIGUOUS
                del self._neighbor_sources[key]

    def _key(self, window: WindowLike) -> bytes:
        if isinstance(window, Sequence):
            return window.seq
        if isinstance(window, str):
            return window.upper().encode("ascii", errors="replace")
        return bytes(window)

    def lookup(self, window: WindowLike) -> MatchClass:
        """Classify ``window``; windows of the wrong length are ``NO_MATCH``."""
        key = self._key(window)
        if len(key) != self.min_length:
            return NO_MATCH
        return self._entries.get(key, NO_MATCH)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, window: object) -> bool:
        if not isinstance(window, (bytes, bytearray, memoryview, str, Sequence)):
            return False
        return self._key(window) in self._entries

    def items(self) -> Iterator[Tuple[bytes, MatchClass]]:
        return iter(self._entries.items())

    def __repr__(self) -> str:
        return f"<FuzzyMatchTable min_length={self.min_length} entries={len(self)}>"
