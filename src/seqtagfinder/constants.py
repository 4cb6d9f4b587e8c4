from __future__ import annotations
from typing import Final


## Constants ##
BAM_SUFFIX: Final[str] = ".bam"
TAGGED_INFIX: Final[str] = ".tagged"
METRICS_FILENAME: Final[str] = "metrics.json"

# Alphabet accepted in whitelist markers; also the substitution alphabet for neighbors
SEQUENCE_ALPHABET: Final[bytes] = b"ACGTN"

# Window scores accumulated while inferring the target position
EXACT_MATCH_SCORE: Final[int] = 3
MISMATCH_MATCH_SCORE: Final[int] = 1

## Run defaults ##
DEFAULT_OUT_DIR: Final[str] = "taggedBams"
DEFAULT_OUT_TAG: Final[str] = "SP"
DEFAULT_NUM_READS: Final[int] = 100_000
DEFAULT_BATCH_SIZE: Final[int] = 100
DEFAULT_BUFFER_SIZE: Final[int] = 10
DEFAULT_COMPRESSION_THREADS: Final[int] = 4
