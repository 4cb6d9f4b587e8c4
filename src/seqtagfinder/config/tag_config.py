# tag_config.py
from __future__ import annotations

import ast
import json
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Union

import pandas as pd
import yaml

from seqtagfinder.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_BUFFER_SIZE,
    DEFAULT_COMPRESSION_THREADS,
    DEFAULT_NUM_READS,
    DEFAULT_OUT_DIR,
    DEFAULT_OUT_TAG,
)
from seqtagfinder.logging_utils import resolve_log_level

from .discover_input_files import discover_bam_files

# SAM optional-field tag key
_TAG_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]$")


# -------------------------
# Utility parsing functions
# -------------------------
def _parse_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    s = str(v).strip().lower()
    if s in ("1", "true", "t", "yes", "y", "on"):
        return True
    if s in ("0", "false", "f", "no", "n", "off", ""):
        return False
    raise ValueError(f"Cannot interpret {v!r} as a boolean")


def _parse_list(v: Any) -> List:
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        return list(v)
    s = str(v).strip()
    if s == "" or s.lower() == "none":
        return []
    # try JSON
    try:
        parsed = json.loads(s)
        if isinstance(parsed, list):
            return parsed
    except ValueError:
        pass
    # try python literal eval
    try:
        lit = ast.literal_eval(s)
        if isinstance(lit, (list, tuple)):
            return list(lit)
    except (ValueError, SyntaxError):
        pass
    # fallback whitespace / comma separated
    s2 = s.strip("[]() ")
    return [p.strip() for p in re.split(r"[,\s]+", s2) if p.strip() != ""]


def _parse_int(v: Any, name: str) -> int:
    if isinstance(v, bool):
        raise ValueError(f"{name} must be an integer, got {v!r}")
    if isinstance(v, int):
        return v
    s = str(v).strip().replace("_", "")
    try:
        return int(s)
    except ValueError:
        pass
    try:
        f = float(s)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}") from None
    if not f.is_integer():
        raise ValueError(f"{name} must be an integer, got {v!r}")
    return int(f)


def _parse_optional_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    if s == "" or s.lower() == "none":
        return None
    return s


_INT_FIELDS = ("num_reads", "batch_size", "buffer_size", "compression_threads")


@dataclass
class TagFinderConfig:
    # Inputs
    bams: List[str] = field(default_factory=list)
    whitelist: Optional[str] = None

    # Outputs
    out_dir: str = DEFAULT_OUT_DIR
    out_tag: str = DEFAULT_OUT_TAG

    # Target position inference
    num_reads: int = DEFAULT_NUM_READS

    # Pipeline sizing
    batch_size: int = DEFAULT_BATCH_SIZE
    buffer_size: int = DEFAULT_BUFFER_SIZE
    compression_threads: int = DEFAULT_COMPRESSION_THREADS

    # BAM discovery when a directory is given
    recursive_input_search: bool = False

    # Logging / UI
    log_file: Optional[str] = None
    log_level: str = "INFO"
    show_progress: bool = False

    config_source: Optional[str] = None

    @classmethod
    def from_var_dict(cls, var_dict: Dict[str, Any], config_source: Optional[str] = None) -> "TagFinderConfig":
        """
        Build a config from a flat ``{variable: value}`` mapping.

        Values may be strings (as read from CSV) or already typed. Unknown
        variables raise ``ValueError`` so typos are not silently ignored.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(var_dict) - known)
        if unknown:
            raise ValueError(f"Unknown config variable(s): {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key, value in var_dict.items():
            if key == "bams":
                kwargs[key] = [str(p) for p in _parse_list(value)]
            elif key in _INT_FIELDS:
                if _parse_optional_str(value) is not None:
                    kwargs[key] = _parse_int(value, key)
            elif key in ("recursive_input_search", "show_progress"):
                kwargs[key] = _parse_bool(value)
            elif key in ("whitelist", "log_file", "config_source"):
                kwargs[key] = _parse_optional_str(value)
            elif key in ("out_dir", "out_tag", "log_level"):
                parsed = _parse_optional_str(value)
                if parsed is not None:
                    kwargs[key] = parsed
        if config_source is not None:
            kwargs["config_source"] = config_source
        return cls(**kwargs)

    @classmethod
    def from_csv(cls, csv_input: Union[str, Path, IO, pd.DataFrame]) -> "TagFinderConfig":
        """Load a ``variable,value`` CSV (or DataFrame) via :class:`LoadTagConfig`."""
        loader = LoadTagConfig(csv_input)
        source = str(csv_input) if isinstance(csv_input, (str, Path)) else None
        return cls.from_var_dict(loader.var_dict, config_source=source)

    # -------------------------
    # validation & serialization
    # -------------------------
    def resolve_bams(self) -> List[Path]:
        """Expand ``bams`` (files or directories) into BAM file paths."""
        return discover_bam_files(self.bams, recursive=self.recursive_input_search)

    def validate(self, require_paths: bool = True, raise_on_error: bool = True) -> List[str]:
        """
        Validate the config. If require_paths True, check that input paths exist
        and create out_dir if missing.
        Returns a list of error messages (empty if none). Raises ValueError if raise_on_error True.
        """
        errors: List[str] = []
        if not self.bams:
            errors.append("bams is required but missing.")
        if not self.whitelist:
            errors.append("whitelist is required but missing.")
        if not self.out_dir:
            errors.append("out_dir is required but missing.")
        if not _TAG_KEY_RE.match(self.out_tag or ""):
            errors.append(
                f"out_tag must be two characters ([A-Za-z][A-Za-z0-9]), got {self.out_tag!r}."
            )
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                errors.append(f"{name} must be a positive integer, got {value!r}.")
        try:
            resolve_log_level(self.log_level)
        except ValueError:
            errors.append(f"log_level is not a valid logging level: {self.log_level!r}.")

        if require_paths:
            if self.whitelist and not Path(self.whitelist).is_file():
                errors.append(f"whitelist does not exist: {self.whitelist}")
            for bam in self.bams:
                if not Path(bam).exists():
                    errors.append(f"BAM input does not exist: {bam}")
            outp = Path(self.out_dir) if self.out_dir else None
            if outp and not outp.exists():
                try:
                    outp.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    errors.append(f"Could not create out_dir {self.out_dir}: {e}")

        if raise_on_error and errors:
            raise ValueError("TagFinderConfig validation failed:\n  " + "\n  ".join(errors))
        return errors

    @property
    def log_level_value(self) -> int:
        return resolve_log_level(self.log_level)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self, path: Optional[Union[str, Path]] = None) -> str:
        """Dump config to YAML (string if path None) or save to file at path."""
        text = yaml.safe_dump(self.to_dict(), sort_keys=False)
        if path is None:
            return text
        p = Path(path)
        p.write_text(text, encoding="utf8")
        return str(p)

    def __repr__(self) -> str:
        return (
            f"<TagFinderConfig bams={len(self.bams)} whitelist={self.whitelist} "
            f"out_dir={self.out_dir} source={self.config_source}>"
        )


class LoadTagConfig:
    """
    Load a config CSV (or DataFrame / file-like) into a var_dict.

    CSV expected columns: 'variable', 'value'. Rows whose variable starts with
    '#' are ignored, and a variable given on several rows (e.g. ``bams``) has
    its values collected into a list.

    Example
    -------
    loader = LoadTagConfig("tag_config.csv")
    var_dict = loader.var_dict
    """

    def __init__(self, tag_config: Union[str, Path, IO, pd.DataFrame]):
        self.source = tag_config
        self.df = self._load_df(tag_config)
        self.var_dict = self._parse_df(self.df)

    @staticmethod
    def _load_df(source: Union[str, Path, IO, pd.DataFrame]) -> pd.DataFrame:
        """Load a pandas DataFrame from path, file-like, or accept if already DataFrame."""
        if isinstance(source, pd.DataFrame):
            df = source.copy()
        else:
            if isinstance(source, (str, Path)):
                p = Path(source)
                if not p.exists():
                    raise FileNotFoundError(f"Config file not found: {source}")
                df = pd.read_csv(p, dtype=str, keep_default_na=False)
            else:
                # file-like
                df = pd.read_csv(source, dtype=str, keep_default_na=False)
        df.columns = [str(c).strip() for c in df.columns]
        if "variable" not in df.columns:
            raise ValueError("Config CSV must contain a 'variable' column.")
        if "value" not in df.columns:
            df["value"] = ""
        return df

    @staticmethod
    def _parse_df(df: pd.DataFrame) -> Dict[str, Any]:
        var_dict: Dict[str, Any] = {}
        for variable, value in zip(df["variable"], df["value"]):
            name = str(variable).strip()
            if not name or name.startswith("#"):
                continue
            value = "" if value is None else str(value).strip()
            if name == "bams":
                var_dict.setdefault("bams", []).extend(_parse_list(value))
            else:
                var_dict[name] = value
        return var_dict
