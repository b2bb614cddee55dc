# flowsplit/structural/references.py
"""
Connection graph helpers.

Connections reference nodes by `name`, while the file layout tracks nodes by
position. These helpers keep the two consistent: renames are detected through
the optional stable node `id` and applied to every edge endpoint.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterator, List, Tuple

import networkx as nx


def iter_edges(connections: Dict[str, Any]) -> Iterator[Tuple[str, str, str]]:
    """
    Yield (source_name, port, target_name) for an n8n-style connections dict:
      connections[src]["main"] = [ [ {"node": "B", "type": "main", "index": 0} ], ... ]
    A single hop dict in place of a list is tolerated.
    """
    for src_name, ports in (connections or {}).items():
        if not isinstance(ports, dict):
            continue
        for port, paths in ports.items():
            if not isinstance(paths, list):
                continue
            for path in paths:
                hops = [path] if isinstance(path, dict) else path
                if not isinstance(hops, list):
                    continue
                for hop in hops:
                    if isinstance(hop, dict) and hop.get("node") is not None:
                        yield str(src_name), str(port), str(hop["node"])


def build_graph(workflow: Dict[str, Any]) -> nx.DiGraph:
    """DiGraph keyed by node name; edge endpoints missing from `nodes` get `known=False`."""
    G = nx.DiGraph()
    for idx, n in enumerate(workflow.get("nodes") or []):
        if not isinstance(n, dict) or n.get("name") is None:
            continue
        G.add_node(str(n["name"]), known=True, index=idx, type=n.get("type"))

    for src, port, dst in iter_edges(workflow.get("connections") or {}):
        for endpoint in (src, dst):
            if endpoint not in G:
                G.add_node(endpoint, known=False)
        if G.has_edge(src, dst):
            G.edges[src, dst]["ports"].append(port)
        else:
            G.add_edge(src, dst, ports=[port])
    return G


def dangling_connections(workflow: Dict[str, Any]) -> List[Tuple[str, str]]:
    """Edges whose source or target does not name a node in the workflow."""
    G = build_graph(workflow)
    return sorted(
        (u, v) for u, v in G.edges
        if not G.nodes[u].get("known") or not G.nodes[v].get("known")
    )


def orphan_nodes(workflow: Dict[str, Any]) -> List[str]:
    """Known nodes with no incoming and no outgoing edges."""
    G = build_graph(workflow)
    return [
        n for n, data in G.nodes(data=True)
        if data.get("known") and G.degree(n) == 0
    ]


def find_renames(before: List[Dict[str, Any]], after: List[Dict[str, Any]]) -> Dict[str, str]:
    """
    Map old name -> new name for nodes whose stable `id` is unchanged but whose name moved.

    A name change only counts when the old name no longer belongs to any node
    and the `id` is carried by exactly one node.
    Nodes without an `id` cannot be tracked and are ignored.
    """
    old_by_id = {
        str(n["id"]): n.get("name")
        for n in before
        if isinstance(n, dict) and n.get("id") is not None
    }
    tracked = [n for n in after if isinstance(n, dict) and n.get("id") is not None]
    id_counts = Counter(str(n["id"]) for n in tracked)
    current_names = {
        str(n["name"]) for n in after
        if isinstance(n, dict) and n.get("name") is not None
    }

    renames: Dict[str, str] = {}
    for n in tracked:
        node_id = str(n["id"])
        old = old_by_id.get(node_id)
        new = n.get("name")
        if old is None or new is None or old == new:
            continue
        if id_counts[node_id] > 1 or str(old) in current_names:
            continue
        renames[str(old)] = str(new)
    return renames


def rename_in_connections(connections: Dict[str, Any], renames: Dict[str, str]) -> Dict[str, Any]:
    """
    Return a copy of `connections` with source keys and hop targets renamed.
    A source is never renamed onto a key that already holds other edges.
    """
    if not renames or not isinstance(connections, dict):
        return connections

    def _hop(hop: Any) -> Any:
        if isinstance(hop, dict) and hop.get("node") in renames:
            return {**hop, "node": renames[hop["node"]]}
        return hop

    # keys that stay where they are
    kept = {src for src in connections if src not in renames}

    out: Dict[str, Any] = {}
    for src_name, ports in connections.items():
        new_src = renames.get(src_name, src_name)
        if new_src != src_name and (new_src in kept or new_src in out):
            new_src = src_name
        if not isinstance(ports, dict):
            out[new_src] = ports
            continue
        new_ports: Dict[str, Any] = {}
        for port, paths in ports.items():
            if not isinstance(paths, list):
                new_ports[port] = paths
                continue
            new_ports[port] = [
                [_hop(h) for h in path] if isinstance(path, list) else _hop(path)
                for path in paths
            ]
        out[new_src] = new_ports
    return out
