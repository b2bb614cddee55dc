# flowsplit/layout/codec.py
"""
Identifier codec: filesystem-safe, order-preserving names for workflows and nodes.

All functions here are total; they never raise on odd input.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Optional

_UNSAFE = re.compile(r"[^A-Za-z0-9]")
_INDEX_PREFIX = re.compile(r"^([0-9]+)_")


def sanitize(name: Any, fallback_prefix: str, index: Any) -> str:
    """
    Replace every character outside [A-Za-z0-9] with '_'.
    An empty result becomes f"{fallback_prefix}_{index}".
    """
    text = "" if name is None else str(name)
    cleaned = _UNSAFE.sub("_", text)
    if not cleaned:
        return _UNSAFE.sub("_", f"{fallback_prefix}_{index}")
    return cleaned


def node_file_stem(index: int, node: Dict[str, Any]) -> str:
    """`<index>_<sanitized name>`; only the index prefix is ever parsed back."""
    name = node.get("name") if isinstance(node, dict) else None
    return f"{index}_{sanitize(name, 'node', index)}"


def parse_index(file_stem: str) -> Optional[int]:
    m = _INDEX_PREFIX.match(file_stem or "")
    if not m:
        return None
    return int(m.group(1))


def workflow_folder_name(workflow: Dict[str, Any]) -> str:
    """Folder name for a workflow layout; the store id keeps same-named workflows apart."""
    wf_id = workflow.get("id")
    base = sanitize(workflow.get("name"), "workflow", wf_id if wf_id is not None else 0)
    if wf_id is None or str(wf_id) == "":
        return base
    return f"{base}_{sanitize(wf_id, 'id', 0)}"
