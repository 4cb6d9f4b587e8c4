"""Deferred imports of third-party codecs."""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Optional


def require(module_name: str, *, purpose: Optional[str] = None) -> ModuleType:
    """Import ``module_name`` or fail with an install hint.

    Args:
        module_name: Importable module name (e.g. ``"pysam"``).
        purpose: What the caller needs the module for; added to the message.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
    """
    try:
        return import_module(module_name)
    except ModuleNotFoundError as exc:
        needed_for = f" for {purpose}" if purpose else ""
        raise ModuleNotFoundError(
            f"seqtagfinder needs '{module_name}'{needed_for}; install it with `pip install {module_name}`"
        ) from exc
