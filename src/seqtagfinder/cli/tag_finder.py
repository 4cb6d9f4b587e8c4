from __future__ import annotations

from pathlib import Path
from typing import List, Tuple, Union

from seqtagfinder.config import TagFinderConfig
from seqtagfinder.informatics.bam_tagging import tag_bams
from seqtagfinder.informatics.metrics import RunMetrics
from seqtagfinder.informatics.whitelist import load_match_table
from seqtagfinder.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)


def run_tag_finder(cfg: TagFinderConfig) -> Tuple[List[RunMetrics], Path]:
    """
    Validate ``cfg``, build the match table once and tag every input BAM.

    Whitelist and config errors are raised before any BAM is opened.

    Returns:
        (per-file metrics, path to metrics.json)
    """
    cfg.validate()
    setup_logging(level=cfg.log_level_value, log_file=cfg.log_file)

    bam_paths = cfg.resolve_bams()
    if not bam_paths:
        raise ValueError(f"No BAM files found in inputs: {cfg.bams}")

    table = load_match_table(cfg.whitelist)
    logger.info("Tagging %d BAM file(s) into %s with tag %s", len(bam_paths), cfg.out_dir, cfg.out_tag)

    return tag_bams(
        bam_paths,
        table,
        cfg.out_dir,
        out_tag=cfg.out_tag,
        num_reads=cfg.num_reads,
        batch_size=cfg.batch_size,
        buffer_size=cfg.buffer_size,
        compression_threads=cfg.compression_threads,
        show_progress=cfg.show_progress,
    )


def tag_finder(config_path: Union[str, Path]) -> Tuple[List[RunMetrics], Path]:
    """
    Run the tagger from a ``variable,value`` config CSV.
    Command line accesses this through seqtagfinder tag-config <config_path>

    Parameters:
        config_path (str): Path to the config CSV.
    """
    cfg = TagFinderConfig.from_csv(config_path)
    return run_tag_finder(cfg)
