from .tag_finder import run_tag_finder, tag_finder

__all__ = ["run_tag_finder", "tag_finder"]
