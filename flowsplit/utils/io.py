# utils/io.py
from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Union

import yaml

from flowsplit.errors import ParseError

# -------- Path helpers --------
PathLike = Union[str, Path]


def to_path(p: PathLike) -> Path:
    """Convert string-like to pathlib.Path."""
    return p if isinstance(p, Path) else Path(p)


def ensure_dir(p: PathLike) -> Path:
    """Ensure a directory exists and return it."""
    d = to_path(p)
    d.mkdir(parents=True, exist_ok=True)
    return d


def ensure_parent(path: PathLike) -> Path:
    """Ensure parent directory exists for a file path."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def list_files(folder: PathLike, pattern: str = "*") -> list[Path]:
    """List files matching a glob pattern (non-recursive), sorted by name."""
    return sorted(p for p in to_path(folder).glob(pattern) if p.is_file())


def remove_tree(folder: PathLike) -> None:
    """Recursively delete a directory if it exists."""
    d = to_path(folder)
    if d.exists():
        shutil.rmtree(d)


# -------- Text / JSON / YAML --------
def read_text(path: PathLike, encoding: str = "utf-8") -> str:
    """Read a whole text file; undecodable bytes raise ParseError."""
    p = to_path(path)
    try:
        return p.read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise ParseError(p, str(e)) from e


def write_text(path: PathLike, text: str, encoding: str = "utf-8") -> Path:
    """Write text atomically (via temp file then replace)."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(text, encoding=encoding)
    tmp.replace(p)
    return p


def read_json(path: PathLike) -> Any:
    """Load a UTF-8 JSON file; malformed JSON or bytes raise ParseError."""
    p = to_path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(p, str(e)) from e


def loads_json(text: str, source: PathLike = "<input>") -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(source, str(e)) from e


def dumps_json(data: Any, indent: int = 2) -> str:
    return json.dumps(data, ensure_ascii=False, indent=indent)


def write_json(path: PathLike, data: Any, indent: int = 2) -> Path:
    """Write JSON atomically, pretty-formatted."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
        f.write("\n")
    tmp.replace(p)
    return p


def read_yaml(path: PathLike) -> Any:
    with to_path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_yaml(path: PathLike, data: Any) -> Path:
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
    tmp.replace(p)
    return p
