import json
from pathlib import Path

from seqtagfinder.informatics.metrics import RunMetrics, metrics_path, write_metrics


def test_to_dict_shape():
    m = RunMetrics(
        input_bam=Path("in/a.bam"),
        target_position_frequency={10: 4, 2: 9},
        target_position=2,
        read_count=5,
        exact_count=3,
        mismatch_count=1,
    )
    assert m.to_dict() == {
        "read": 5,
        "exact": 3,
        "mismatch": 1,
        "target_position_frequency": {"2": 9, "10": 4},
    }


def test_write_metrics_keyed_by_input_path(tmp_path):
    metrics = [
        RunMetrics(input_bam=Path("a.bam"), target_position_frequency={0: 6}, read_count=2, exact_count=2),
        RunMetrics(input_bam=Path("b.bam")),
    ]
    path = write_metrics(metrics, tmp_path / "out")
    assert path == metrics_path(tmp_path / "out")

    report = json.loads(path.read_text())
    assert set(report) == {"a.bam", "b.bam"}
    assert report["a.bam"]["read"] == 2
    assert report["a.bam"]["exact"] == 2
    assert report["a.bam"]["mismatch"] == 0
    assert report["a.bam"]["target_position_frequency"] == {"0": 6}
    assert report["b.bam"]["target_position_frequency"] == {}
