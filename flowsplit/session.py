# flowsplit/session.py
"""
One editing session: a workflow, where it came from, and its decomposed layout.

Every session owns exactly one layout folder. Opening another workflow in the
same session deletes and rewrites that folder; separate sessions with
separate folders can be open side by side.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from flowsplit.errors import FlowsplitError, InvalidWorkflow
from flowsplit.grouping.index import GroupingIndex
from flowsplit.layout.code import open_sidecar
from flowsplit.layout.codec import node_file_stem, parse_index, workflow_folder_name
from flowsplit.layout.decompose import decompose
from flowsplit.layout.paths import NODE_SUFFIX, Layout, readme_path, sidecar_path
from flowsplit.layout.recompose import recompose, scan_node_files
from flowsplit.remote.client import N8nClient
from flowsplit.utils.io import PathLike, dumps_json, read_json, to_path, write_json, write_text
from flowsplit.utils.logger import get_logger

log = get_logger("session")


class EditSession:
    def __init__(self, workdir: PathLike, client: Optional[N8nClient] = None):
        self.workdir = to_path(workdir)
        self.client = client
        self.index = GroupingIndex()
        self.layout: Optional[Layout] = None
        self.source_path: Optional[Path] = None
        self.workflow_id: Optional[str] = None

    @property
    def workflow(self) -> Optional[Dict[str, Any]]:
        return self.index.workflow

    def _require_layout(self) -> Layout:
        if self.layout is None:
            raise FlowsplitError("No workflow is open in this session")
        return self.layout

    def _require_client(self) -> N8nClient:
        if self.client is None:
            raise FlowsplitError("No n8n API client configured for this session")
        return self.client

    def _load(self, workflow: Dict[str, Any], folder: Path) -> Layout:
        # only an earlier layout (or an empty folder) may be replaced
        if folder.exists():
            if not folder.is_dir():
                raise FlowsplitError(f"Layout folder {folder} is a file")
            if any(folder.iterdir()) and not Layout.at(folder).manifest.is_file():
                raise FlowsplitError(
                    f"Refusing to replace {folder}: not empty and not a layout folder (no workflow.json)"
                )
        self.layout = decompose(workflow, folder)
        self.index.rebuild(workflow)
        return self.layout

    # -------- opening --------
    def open_file(self, path: PathLike, folder: Optional[PathLike] = None) -> Layout:
        """Decompose a local workflow JSON file; saves go back to that file."""
        path = to_path(path)
        workflow = read_json(path)
        if not isinstance(workflow, dict) or not isinstance(workflow.get("nodes"), list):
            raise InvalidWorkflow(f"{path} is not a workflow (no nodes list)")
        target = to_path(folder) if folder else self.workdir / path.stem
        if target.resolve() in path.resolve().parents:
            raise FlowsplitError(f"Layout folder {target} would contain (and delete) {path}")
        self.source_path = path
        self.workflow_id = None
        return self._load(workflow, target)

    def open_remote(self, workflow_id: str, folder: Optional[PathLike] = None) -> Layout:
        """Fetch a workflow from the store and decompose it; saves push it back."""
        workflow = self._require_client().get_workflow(workflow_id)
        self.source_path = None
        self.workflow_id = str(workflow_id)
        target = to_path(folder) if folder else self.workdir / workflow_folder_name(workflow)
        return self._load(workflow, target)

    def open_folder(self, folder: PathLike, source_path: Optional[PathLike] = None) -> Dict[str, Any]:
        """Attach to an existing layout without rewriting it."""
        self.layout = Layout.at(folder)
        self.source_path = to_path(source_path) if source_path else None
        workflow = self.reload()
        wf_id = workflow.get("id")
        self.workflow_id = str(wf_id) if wf_id is not None else None
        return workflow

    def reload(self) -> Dict[str, Any]:
        """Recompose the layout (picking up external edits) and regroup."""
        layout = self._require_layout()
        workflow = recompose(layout.root)
        self.layout = Layout(root=layout.root, node_files=[p for _, p in scan_node_files(layout.nodes_dir)])
        self.index.rebuild(workflow)
        return workflow

    # -------- node editing --------
    def node_file(self, position: int) -> Optional[Path]:
        """File holding the node at `position` in the loaded workflow."""
        layout = self._require_layout()
        if not 0 <= position < len(layout.node_files):
            return None
        return layout.node_files[position]

    def open_node(self, position: int) -> Optional[Path]:
        """
        Create the code sidecar for node `position`; None if it has no embedded code.
        An existing sidecar is returned untouched so pending edits survive.
        """
        path = self.node_file(position)
        if path is None:
            raise FlowsplitError(f"No node at position {position}")
        existing = sidecar_path(path)
        if existing.exists():
            return existing
        return open_sidecar(path, read_json(path))

    def update_node(self, position: int, node: Dict[str, Any]) -> bool:
        """
        Replace the node at `position` in the loaded workflow and rewrite its file.
        Out-of-range positions are ignored (returns False).
        """
        layout = self._require_layout()
        if self.index.get_node(position) is None:
            return False
        old_file = self.node_file(position)
        if old_file is None:
            return False
        idx = parse_index(old_file.stem)
        new_file = old_file.with_name(f"{node_file_stem(idx, node)}{NODE_SUFFIX}")
        write_json(new_file, node)
        if new_file != old_file:
            old_file.unlink()
            layout.node_files[position] = new_file
        # the sidecar would shadow the code now held in the node JSON
        for stale in (sidecar_path(old_file), readme_path(old_file)):
            if stale.exists():
                stale.unlink()
        self.index.update_one(position, node)
        return True

    # -------- saving --------
    def save(self, target: Optional[PathLike] = None) -> Dict[str, Any]:
        """
        Recompose and write the workflow back to where it came from:
        `target` if given, else the source file, else the store.
        """
        workflow = self.reload()

        if target is not None or self.source_path is not None:
            out = to_path(target) if target is not None else self.source_path
            write_text(out, dumps_json(workflow) + "\n")
            log.info("Saved workflow to %s", out)
            return workflow

        wf_id = self.workflow_id or workflow.get("id")
        if wf_id is None:
            raise FlowsplitError("Nowhere to save: no source file and no workflow id")
        saved = self._require_client().update_workflow(str(wf_id), workflow)
        log.info("Pushed workflow %s to n8n", wf_id)
        return saved if isinstance(saved, dict) else workflow
