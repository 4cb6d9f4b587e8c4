from __future__ import annotations

from dataclasses import dataclass

from seqtagfinder.constants import SEQUENCE_ALPHABET

_VALID_BASES = frozenset(SEQUENCE_ALPHABET.decode("ascii"))


class InvalidSequenceError(ValueError):
    """Raised when a marker contains characters outside A, C, G, T, N."""


@dataclass(frozen=True)
class Sequence:
    """Immutable, uppercase nucleotide sequence over ``ACGTN``.

    Equality and hashing are by byte content, so a ``Sequence`` can be used
    directly as a lookup key.
    """

    seq: bytes

    @classmethod
    def from_string(cls, raw: str) -> "Sequence":
        """Validate and normalize a raw marker string.

        Parameters
        ----------
        raw : str
            Marker as read from the whitelist; case-insensitive.

        Returns
        -------
        Sequence
            Uppercased sequence.

        Raises
        ------
        InvalidSequenceError
            If ``raw`` contains non-ASCII characters or bases outside ``ACGTN``.
        """
        if not raw:
            raise InvalidSequenceError("Empty sequence")
        if not raw.isascii():
            raise InvalidSequenceError(f"Invalid characters in sequence '{raw}'")
        upper = raw.upper()
        invalid_chars = set(upper) - _VALID_BASES
        if invalid_chars:
            raise InvalidSequenceError(
                f"Unknown base(s) {sorted(invalid_chars)} in sequence '{raw}'"
            )
        return cls(upper.encode("ascii"))

    def truncated(self, length: int) -> "Sequence":
        """Return the first ``length`` bases."""
        if length >= len(self.seq):
            return self
        return Sequence(self.seq[:length])

    def one_mismatch_neighbors(self):
        """Yield every sequence exactly one substitution away from this one."""
        for i, base in enumerate(self.seq):
            for alt in SEQUENCE_ALPHABET:
                if alt == base:
                    continue
                yield Sequence(self.seq[:i] + bytes((alt,)) + self.seq[i + 1 :])

    def __len__(self) -> int:
        return len(self.seq)

    def __str__(self) -> str:
        return self.seq.decode("ascii")
