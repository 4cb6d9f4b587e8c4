from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from tqdm import tqdm

from seqtagfinder.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_BUFFER_SIZE,
    DEFAULT_COMPRESSION_THREADS,
    DEFAULT_NUM_READS,
    DEFAULT_OUT_TAG,
    TAGGED_INFIX,
)
from seqtagfinder.logging_utils import get_logger

from .bam_io import open_record_sink, open_record_source
from .match_table import FuzzyMatchTable
from .metrics import RunMetrics, write_metrics
from .position_inference import (
    FrequencyScanner,
    OffsetHistogram,
    select_target_position,
    top_offsets,
)
from .tagger import Tagger

logger = get_logger(__name__)


def tagged_bam_path(bam_path: Union[str, Path], out_dir: Union[str, Path]) -> Path:
    """``<out_dir>/<stem>.tagged<suffix>``, e.g. ``sample.bam`` -> ``sample.tagged.bam``."""
    bam_path = Path(bam_path)
    return Path(out_dir) / f"{bam_path.stem}{TAGGED_INFIX}{bam_path.suffix}"


def find_target_position(
    bam_path: Union[str, Path],
    table: FuzzyMatchTable,
    num_reads: int = DEFAULT_NUM_READS,
    batch_size: int = DEFAULT_BATCH_SIZE,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> Tuple[OffsetHistogram, Optional[int]]:
    """
    Frequency pass: score window offsets over the first ``num_reads`` reads.

    Returns
    -------
    tuple
        ``(histogram, target_position)``; ``target_position`` is ``None`` when
        no window in the sampled reads matched the whitelist.
    """
    scanner = FrequencyScanner(table, num_reads)
    logger.info("Pass 1: scanning up to %d reads of %s for the target position", num_reads, bam_path)
    with open_record_source(bam_path, batch_size, buffer_size) as source:
        histogram = scanner.scan(source)

    target_position = select_target_position(histogram)
    if target_position is None:
        logger.info("No target sequence found in %d reads of %s", scanner.reads_scanned, bam_path)
    else:
        logger.info(
            "Selected target position %d (score %d) from %d reads of %s; top offsets: %s",
            target_position,
            histogram[target_position],
            scanner.reads_scanned,
            bam_path,
            top_offsets(histogram),
        )
    return histogram, target_position


def write_tagged_bam(
    bam_path: Union[str, Path],
    out_path: Union[str, Path],
    table: FuzzyMatchTable,
    target_position: int,
    metrics: RunMetrics,
    out_tag: str = DEFAULT_OUT_TAG,
    batch_size: int = DEFAULT_BATCH_SIZE,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    compression_threads: int = DEFAULT_COMPRESSION_THREADS,
    show_progress: bool = False,
) -> Path:
    """
    Tagging pass: stream ``bam_path`` through a :class:`Tagger` into ``out_path``.

    A partially written output is removed if anything fails.
    """
    out_path = Path(out_path)
    tagger = Tagger(table, target_position, out_tag)
    logger.info("Pass 2: tagging %s at position %d -> %s", bam_path, target_position, out_path)
    try:
        with open_record_source(bam_path, batch_size, buffer_size) as source:
            with open_record_sink(out_path, source.header, buffer_size, compression_threads) as sink:
                with tqdm(
                    desc=Path(bam_path).name, unit="reads", disable=not show_progress
                ) as progress:
                    for batch in source:
                        n_records = len(batch)
                        sink.write(tagger.tag_batch(batch, metrics))
                        progress.update(n_records)
    except BaseException:
        if out_path.exists():
            logger.warning("Removing incomplete output %s", out_path)
            out_path.unlink()
        raise
    return out_path


def copy_untagged_bam(bam_path: Union[str, Path], out_dir: Union[str, Path]) -> Path:
    """Copy a BAM without targets to ``out_dir`` under its own name."""
    bam_path = Path(bam_path)
    dest = Path(out_dir) / bam_path.name
    if dest.exists() and dest.resolve() == bam_path.resolve():
        logger.warning("%s is already in the output directory; not copying", bam_path)
        return dest
    shutil.copyfile(bam_path, dest)
    logger.info("Copied %s unmodified to %s", bam_path, dest)
    return dest


def process_bam(
    bam_path: Union[str, Path],
    table: FuzzyMatchTable,
    out_dir: Union[str, Path],
    *,
    out_tag: str = DEFAULT_OUT_TAG,
    num_reads: int = DEFAULT_NUM_READS,
    batch_size: int = DEFAULT_BATCH_SIZE,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    compression_threads: int = DEFAULT_COMPRESSION_THREADS,
    show_progress: bool = False,
) -> RunMetrics:
    """Run both passes over one BAM file and return its metrics."""
    bam_path = Path(bam_path)
    histogram, target_position = find_target_position(
        bam_path, table, num_reads=num_reads, batch_size=batch_size, buffer_size=buffer_size
    )
    metrics = RunMetrics(
        input_bam=bam_path,
        target_position_frequency=histogram,
        target_position=target_position,
    )
    if target_position is None:
        copy_untagged_bam(bam_path, out_dir)
        return metrics

    write_tagged_bam(
        bam_path,
        tagged_bam_path(bam_path, out_dir),
        table,
        target_position,
        metrics,
        out_tag=out_tag,
        batch_size=batch_size,
        buffer_size=buffer_size,
        compression_threads=compression_threads,
        show_progress=show_progress,
    )
    metrics.log_summary()
    return metrics


def tag_bams(
    bam_paths: Sequence[Union[str, Path]],
    table: FuzzyMatchTable,
    out_dir: Union[str, Path],
    **kwargs,
) -> Tuple[List[RunMetrics], Path]:
    """
    Process BAM files one after another and write ``metrics.json``.

    The match table is built once by the caller and shared read-only across
    files. Additional keyword arguments are passed to :func:`process_bam`.
    The metrics report is written only after every file succeeded.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    all_metrics: List[RunMetrics] = []
    for i, bam_path in enumerate(bam_paths, start=1):
        logger.info("Processing BAM %d/%d: %s", i, len(bam_paths), bam_path)
        all_metrics.append(process_bam(bam_path, table, out_dir, **kwargs))
    report = write_metrics(all_metrics, out_dir)
    return all_metrics, report
