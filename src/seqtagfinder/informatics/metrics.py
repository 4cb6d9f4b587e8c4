from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from seqtagfinder.constants import METRICS_FILENAME
from seqtagfinder.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class RunMetrics:
    """Per-file counters from the tagging pass plus the pass-1 offset histogram."""

    input_bam: Path
    target_position_frequency: Dict[int, int] = field(default_factory=dict)
    target_position: Optional[int] = None
    read_count: int = 0
    exact_count: int = 0
    mismatch_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "read": self.read_count,
            "exact": self.exact_count,
            "mismatch": self.mismatch_count,
            "target_position_frequency": {
                str(offset): score
                for offset, score in sorted(self.target_position_frequency.items())
            },
        }

    def log_summary(self) -> None:
        total = max(1, self.read_count)
        logger.info(
            "Tagging complete for %s:\n"
            "  target_position=%s\n"
            "  total_reads=%d\n"
            "  exact=%d (%.1f%%)\n"
            "  mismatch=%d (%.1f%%)\n"
            "  untagged=%d (%.1f%%)",
            self.input_bam,
            self.target_position,
            self.read_count,
            self.exact_count,
            100 * self.exact_count / total,
            self.mismatch_count,
            100 * self.mismatch_count / total,
            self.read_count - self.exact_count - self.mismatch_count,
            100 * (self.read_count - self.exact_count - self.mismatch_count) / total,
        )


def metrics_path(out_dir: Union[str, Path]) -> Path:
    """Return canonical metrics report path for an output directory."""
    return Path(out_dir) / METRICS_FILENAME


def write_metrics(metrics: Iterable[RunMetrics], out_dir: Union[str, Path]) -> Path:
    """Write one JSON object keyed by input BAM path to ``<out_dir>/metrics.json``."""
    report = {str(m.input_bam): m.to_dict() for m in metrics}
    path = metrics_path(out_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(report, fh, indent=4)
    logger.info("Wrote metrics for %d BAM file(s) to %s", len(report), path)
    return path
