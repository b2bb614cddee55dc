# flowsplit/grouping/index.py
"""
Category view over the nodes of the currently loaded workflow.

The grouping is rebuilt from scratch on every change; workflows hold tens
of nodes, not thousands.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

UNKNOWN_TYPE = "Unknown"
OTHER_CATEGORY = "Other"


@dataclass(frozen=True)
class NodeSummary:
    identifier: str
    name: str
    type: str
    category: str
    node_index: int


def category_of(node_type: Optional[str]) -> str:
    """Trailing `.` segment of a node type: "n8n-nodes-base.httpRequest" -> "httpRequest"."""
    t = node_type or UNKNOWN_TYPE
    return t.split(".")[-1] or OTHER_CATEGORY


def group_nodes(workflow: Optional[Dict[str, Any]]) -> Dict[str, List[NodeSummary]]:
    grouped: Dict[str, List[NodeSummary]] = OrderedDict()
    nodes = (workflow or {}).get("nodes")
    if not isinstance(nodes, list):
        return grouped

    for idx, node in enumerate(nodes):
        if not isinstance(node, dict):
            continue
        node_type = node.get("type") or UNKNOWN_TYPE
        category = category_of(node_type)
        grouped.setdefault(category, []).append(NodeSummary(
            identifier=f"node-{idx}",
            name=node.get("name") or f"Node {idx}",
            type=node_type,
            category=category,
            node_index=idx,
        ))
    return grouped


class GroupingIndex:
    """Holds the loaded workflow and its per-category node summaries."""

    def __init__(self, workflow: Optional[Dict[str, Any]] = None):
        self._workflow: Optional[Dict[str, Any]] = None
        self._groups: Dict[str, List[NodeSummary]] = {}
        self._observers: List[Callable[["GroupingIndex"], None]] = []
        if workflow is not None:
            self.rebuild(workflow)

    @property
    def workflow(self) -> Optional[Dict[str, Any]]:
        return self._workflow

    def subscribe(self, callback: Callable[["GroupingIndex"], None]) -> Callable[[], None]:
        """Register a change callback; returns a function that unregisters it."""
        self._observers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        for cb in list(self._observers):
            cb(self)

    def rebuild(self, workflow: Optional[Dict[str, Any]]) -> "GroupingIndex":
        groups = group_nodes(workflow)
        # swap both in one step so observers never see a half-built grouping
        self._workflow, self._groups = workflow, groups
        self._notify()
        return self

    def update_one(self, index: int, node: Dict[str, Any]) -> "GroupingIndex":
        """Replace node `index` in the loaded workflow and regroup; out of range is a no-op."""
        nodes = (self._workflow or {}).get("nodes")
        if not isinstance(nodes, list) or not 0 <= index < len(nodes):
            return self
        nodes[index] = node
        return self.rebuild(self._workflow)

    def get_node(self, index: int) -> Optional[Dict[str, Any]]:
        nodes = (self._workflow or {}).get("nodes")
        if not isinstance(nodes, list) or not 0 <= index < len(nodes):
            return None
        return nodes[index]

    def categories(self) -> List[str]:
        return sorted(self._groups)

    def nodes_in(self, category: str) -> List[NodeSummary]:
        return list(self._groups.get(category, []))

    def groups(self) -> Dict[str, List[NodeSummary]]:
        """Categories in lexicographic order, each with its summaries in document order."""
        return {c: list(self._groups[c]) for c in self.categories()}

    def summaries(self) -> List[NodeSummary]:
        return [s for c in self.categories() for s in self._groups[c]]

    def __len__(self) -> int:
        return sum(len(v) for v in self._groups.values())
