from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Union

from seqtagfinder.constants import BAM_SUFFIX, TAGGED_INFIX
from seqtagfinder.logging_utils import get_logger

logger = get_logger(__name__)


def discover_bam_files(
    input_paths: Iterable[Union[str, Path]],
    bam_suffix: str = BAM_SUFFIX,
    recursive: bool = False,
) -> List[Path]:
    """
    Expand input paths into a list of BAM files.

    Behavior:
      - A file path is kept as given, whatever its suffix.
      - A directory contributes its files ending in `bam_suffix` (case-insensitive),
        sorted, from immediate children (recursive=False) or the whole tree.
      - Files that are already tagged outputs (`*.tagged.bam`) are skipped in directories.
      - Order of the inputs is preserved; duplicates are dropped.
    """
    if not bam_suffix.startswith("."):
        bam_suffix = "." + bam_suffix
    bam_suffix = bam_suffix.lower()
    tagged_suffix = TAGGED_INFIX + bam_suffix

    found: List[Path] = []
    seen = set()

    def add(fp: Path) -> None:
        key = fp.resolve()
        if key not in seen:
            seen.add(key)
            found.append(fp)

    for raw in input_paths:
        p = Path(raw).expanduser()
        if not p.exists():
            raise FileNotFoundError(f"Input BAM path does not exist: {raw}")
        if p.is_file():
            add(p)
            continue

        iterator = p.rglob("*") if recursive else p.iterdir()
        matches = sorted(
            fp
            for fp in iterator
            if fp.is_file()
            and fp.name.lower().endswith(bam_suffix)
            and not fp.name.lower().endswith(tagged_suffix)
        )
        if not matches:
            logger.warning("No %s files found in directory %s", bam_suffix, p)
        for fp in matches:
            add(fp)

    return found
