# flowsplit/layout/recompose.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

from flowsplit.errors import DuplicateNodeIndex, InvalidWorkflow, MissingManifest
from flowsplit.layout.code import find_code_field, reinsert
from flowsplit.layout.codec import parse_index
from flowsplit.layout.paths import NODE_SUFFIX, Layout, sidecar_path
from flowsplit.structural.references import find_renames, rename_in_connections
from flowsplit.structural.schema import check_node
from flowsplit.utils.io import PathLike, list_files, read_json, read_text
from flowsplit.utils.logger import get_logger

log = get_logger("layout.recompose")


def scan_node_files(nodes_dir: PathLike) -> List[Tuple[int, Path]]:
    """
    (index, path) for every node file, sorted by index.
    Files whose stem carries no `<digits>_` prefix are not node files and are skipped.
    Two files claiming the same index raise DuplicateNodeIndex.
    """
    found: Dict[int, Path] = {}
    nodes_dir = Path(nodes_dir)
    if not nodes_dir.is_dir():
        return []

    for path in list_files(nodes_dir, f"*{NODE_SUFFIX}"):
        idx = parse_index(path.stem)
        if idx is None:
            log.debug("Skipping %s: no index prefix", path.name)
            continue
        if idx in found:
            raise DuplicateNodeIndex(idx, found[idx], path)
        found[idx] = path
    return sorted(found.items())


def load_node(path: Path) -> Dict[str, Any]:
    """Read one node file and fold its code sidecar (if any) back in."""
    node = read_json(path)
    check_node(node, source=path.name)

    code_file = sidecar_path(path)
    if not code_file.exists():
        return node

    field = find_code_field(node)
    if field is None:
        log.warning("Ignoring %s: node in %s has no code parameter to receive it",
                    code_file.name, path.name)
        return node
    return reinsert(node, field, read_text(code_file))


def recompose(target_dir: PathLike) -> Dict[str, Any]:
    """
    Reassemble one workflow document from a decomposed layout.

    Node order comes only from the index prefix of each node file name; gaps
    left by deleted node files are compacted away, so deleting a node file is
    how a node is removed. Nodes whose `name` changed while their `id` stayed
    the same have their connection references renamed to match.
    """
    layout = Layout.at(target_dir)
    if not layout.manifest.is_file():
        raise MissingManifest(layout.root)
    manifest = read_json(layout.manifest)

    if not isinstance(manifest, dict):
        raise InvalidWorkflow(f"Manifest {layout.manifest} is not a JSON object")

    # sorted by index; indices left free by deleted files simply do not appear
    nodes: List[Dict[str, Any]] = []
    for _idx, path in scan_node_files(layout.nodes_dir):
        nodes.append(load_node(path))
        layout.node_files.append(path)

    snapshot = manifest.get("nodes") if isinstance(manifest.get("nodes"), list) else None
    renames = find_renames(snapshot or [], nodes)
    if renames:
        log.info("Renamed nodes: %s", ", ".join(f"{a!r} -> {b!r}" for a, b in renames.items()))

    workflow = dict(manifest)
    workflow["nodes"] = nodes
    if "connections" in workflow:
        workflow["connections"] = rename_in_connections(workflow["connections"], renames)

    dropped = len(snapshot or []) - len(nodes)
    log.info("Recomposed '%s' from %s: %d nodes%s",
             workflow.get("name") or "<unnamed>", layout.root, len(nodes),
             f" ({dropped} removed)" if dropped > 0 else "")
    return workflow
