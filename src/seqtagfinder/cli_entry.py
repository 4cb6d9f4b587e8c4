import click
from pathlib import Path
from typing import Optional, Sequence

from .cli.tag_finder import run_tag_finder, tag_finder
from .config import TagFinderConfig
from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_BUFFER_SIZE,
    DEFAULT_COMPRESSION_THREADS,
    DEFAULT_NUM_READS,
    DEFAULT_OUT_DIR,
    DEFAULT_OUT_TAG,
)


@click.group()
@click.version_option(package_name="seqtagfinder")
def cli():
    """Detect whitelisted target sequences in BAM reads and tag them."""
    pass


####### Tag BAMs from command line options ###########
@cli.command("tag")
@click.option(
    "--bams",
    "-b",
    multiple=True,
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="BAM file (or directory of BAMs) to search. Repeatable.",
)
@click.option(
    "--whitelist",
    "-w",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Whitelist file: label followed by one or more target sequences per line.",
)
@click.option("--out-dir", "-o", default=DEFAULT_OUT_DIR, show_default=True, help="Output directory.")
@click.option(
    "--num-reads",
    default=DEFAULT_NUM_READS,
    show_default=True,
    type=int,
    help="Reads per BAM to scan while determining the target position.",
)
@click.option(
    "--tag",
    "out_tag",
    default=DEFAULT_OUT_TAG,
    show_default=True,
    help="Two-character tag that will hold the detected target label.",
)
@click.option(
    "--batch-size",
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    type=int,
    help="Reads per batch handed between reader, tagger and writer.",
)
@click.option(
    "--buffer-size",
    default=DEFAULT_BUFFER_SIZE,
    show_default=True,
    type=int,
    help="Batches a reader/writer queue holds before blocking.",
)
@click.option(
    "--threads",
    "compression_threads",
    default=DEFAULT_COMPRESSION_THREADS,
    show_default=True,
    type=int,
    help="BGZF compression threads for output BAMs.",
)
@click.option("--recursive", is_flag=True, help="Search BAM directories recursively.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--verbose", "-v", is_flag=True, help="Enable DEBUG logging.")
@click.option("--progress", is_flag=True, help="Show a progress bar during tagging.")
def tag(
    bams: Sequence[Path],
    whitelist: Path,
    out_dir: str,
    num_reads: int,
    out_tag: str,
    batch_size: int,
    buffer_size: int,
    compression_threads: int,
    recursive: bool,
    log_file: Optional[Path],
    verbose: bool,
    progress: bool,
):
    """Tag reads in BAMS with the whitelist label found at the inferred position."""
    cfg = TagFinderConfig(
        bams=[str(b) for b in bams],
        whitelist=str(whitelist),
        out_dir=out_dir,
        out_tag=out_tag,
        num_reads=num_reads,
        batch_size=batch_size,
        buffer_size=buffer_size,
        compression_threads=compression_threads,
        recursive_input_search=recursive,
        log_file=None if log_file is None else str(log_file),
        log_level="DEBUG" if verbose else "INFO",
        show_progress=progress,
    )
    try:
        _, report = run_tag_finder(cfg)
    except (ValueError, OSError, RuntimeError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Metrics written to: {report}")
##########################################


####### Tag BAMs from a config CSV ###########
@cli.command("tag-config")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
def tag_config(config_path):
    """Tag BAMs using settings from CONFIG_PATH (variable,value CSV)."""
    try:
        _, report = tag_finder(config_path)
    except (ValueError, OSError, RuntimeError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Metrics written to: {report}")
##########################################
