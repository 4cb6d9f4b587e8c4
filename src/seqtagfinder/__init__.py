"""seqtagfinder"""

from . import config, informatics
from .informatics import tag_bams

from importlib.metadata import version

package_name = "seqtagfinder"
__version__ = version(package_name)

__all__ = [
    "config",
    "informatics",
    "tag_bams",
]
