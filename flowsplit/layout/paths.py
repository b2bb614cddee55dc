# flowsplit/layout/paths.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

MANIFEST_NAME = "workflow.json"
NODES_DIR = "nodes"
NODE_SUFFIX = ".json"
CODE_SUFFIX = ".js"
README_SUFFIX = "_README.txt"


@dataclass
class Layout:
    """On-disk projection of one workflow: manifest, nodes dir, node files in order."""

    root: Path
    node_files: List[Path] = field(default_factory=list)

    @property
    def manifest(self) -> Path:
        return self.root / MANIFEST_NAME

    @property
    def nodes_dir(self) -> Path:
        return self.root / NODES_DIR

    @classmethod
    def at(cls, root) -> "Layout":
        return cls(root=Path(root))


def sidecar_path(node_file: Path) -> Path:
    """`<stem>.js` next to the node file."""
    return node_file.with_name(node_file.stem + CODE_SUFFIX)


def readme_path(node_file: Path) -> Path:
    return node_file.with_name(node_file.stem + README_SUFFIX)
