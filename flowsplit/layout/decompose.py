# flowsplit/layout/decompose.py
from __future__ import annotations

from typing import Any, Dict

from flowsplit.layout.codec import node_file_stem
from flowsplit.layout.paths import NODE_SUFFIX, Layout
from flowsplit.structural.schema import check_workflow
from flowsplit.utils.io import PathLike, ensure_dir, remove_tree, write_json
from flowsplit.utils.logger import get_logger

log = get_logger("layout.decompose")


def decompose(workflow: Dict[str, Any], target_dir: PathLike) -> Layout:
    """
    Split a workflow document into a manifest plus one JSON file per node.

      <target_dir>/workflow.json          full document (its nodes are only an identity snapshot)
      <target_dir>/nodes/<i>_<name>.json  node i, verbatim

    Any existing `target_dir` is deleted first: decomposition always replaces,
    it never merges with a previous layout. Code sidecars are not written here
    (see layout.code.open_sidecar). A failure partway leaves whatever was
    already written on disk.
    """
    check_workflow(workflow)

    layout = Layout.at(target_dir)
    remove_tree(layout.root)
    ensure_dir(layout.nodes_dir)

    write_json(layout.manifest, workflow)

    for i, node in enumerate(workflow["nodes"]):
        node_file = layout.nodes_dir / f"{node_file_stem(i, node)}{NODE_SUFFIX}"
        write_json(node_file, node)
        layout.node_files.append(node_file)

    log.info("Decomposed '%s' into %d node files under %s",
             workflow.get("name") or "<unnamed>", len(layout.node_files), layout.root)
    return layout
