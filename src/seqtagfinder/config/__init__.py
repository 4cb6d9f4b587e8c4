from .discover_input_files import discover_bam_files
from .tag_config import LoadTagConfig, TagFinderConfig

__all__ = [
    "discover_bam_files",
    "LoadTagConfig",
    "TagFinderConfig",
]
