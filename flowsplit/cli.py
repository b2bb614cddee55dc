#!/usr/bin/env python3
# flowsplit/cli.py

import json
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from flowsplit.config import Settings, load_settings, save_settings
from flowsplit.errors import FlowsplitError
from flowsplit.grouping.index import GroupingIndex
from flowsplit.layout.recompose import recompose
from flowsplit.remote.client import N8nClient
from flowsplit.session import EditSession
from flowsplit.structural.references import dangling_connections, orphan_nodes
from flowsplit.structural.schema import check_workflow
from flowsplit.utils.io import dumps_json, read_json, write_text
from flowsplit.utils.logger import init_logger, level_from_name

app = typer.Typer(help="flowsplit - edit n8n workflows as one file per node")


@contextmanager
def _errors():
    """Report flowsplit failures as a single line and exit 1."""
    try:
        yield
    except FlowsplitError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _client(ctx: typer.Context) -> N8nClient:
    return N8nClient.from_settings(_settings(ctx))


def _load_any(path: Path) -> Dict[str, Any]:
    """A workflow from either a JSON file or a decomposed folder."""
    if path.is_dir():
        return recompose(path)
    workflow = read_json(path)
    check_workflow(workflow)
    return workflow


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file (default: ~/.config/flowsplit/config.yaml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    try:
        settings = load_settings(config)
    except (OSError, ValueError) as e:
        raise typer.BadParameter(str(e), param_hint="--config")
    init_logger(level=level_from_name("DEBUG" if verbose else settings.log_level))
    ctx.obj = {"settings": settings, "config_path": config}


@app.command()
def split(
    ctx: typer.Context,
    input: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Workflow JSON file"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Layout folder (default: <workdir>/<file stem>)"),
):
    """
    Split a workflow file into workflow.json + nodes/<index>_<name>.json.
    The target folder is replaced, never merged.
    """
    with _errors():
        session = EditSession(_settings(ctx).workdir)
        layout = session.open_file(input, folder=out)
    print(f"[ok] {len(layout.node_files)} nodes -> {layout.root}")


@app.command()
def join(
    folder: Path = typer.Argument(..., exists=True, file_okay=False, help="Layout folder"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the workflow here instead of stdout"),
):
    """Reassemble a layout folder into one workflow JSON."""
    with _errors():
        workflow = recompose(folder)
    text = dumps_json(workflow)
    if output is None:
        print(text)
        return
    write_text(output, text + "\n")
    print(f"[ok] wrote {output}")


@app.command()
def pull(
    ctx: typer.Context,
    workflow_id: str = typer.Argument(..., help="Workflow id on the n8n instance"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Layout folder (default: <workdir>/<name>_<id>)"),
):
    """Fetch a workflow from n8n and split it into a fresh layout folder."""
    with _errors(), _client(ctx) as client:
        session = EditSession(_settings(ctx).workdir, client=client)
        layout = session.open_remote(workflow_id, folder=out)
    print(f"[ok] {len(layout.node_files)} nodes -> {layout.root}")


@app.command()
def push(
    ctx: typer.Context,
    folder: Path = typer.Argument(..., exists=True, file_okay=False, help="Layout folder"),
    workflow_id: Optional[str] = typer.Option(None, "--id", help="Target workflow id (default: id in workflow.json)"),
):
    """Reassemble a layout folder and update the workflow on n8n."""
    with _errors(), _client(ctx) as client:
        session = EditSession(_settings(ctx).workdir, client=client)
        session.open_folder(folder)
        if workflow_id:
            session.workflow_id = workflow_id
        saved = session.save()
    print(f"[ok] pushed '{saved.get('name', '')}' ({saved.get('id', session.workflow_id)})")


@app.command("list")
def list_workflows(ctx: typer.Context):
    """List workflows on the n8n instance."""
    with _errors(), _client(ctx) as client:
        workflows = client.list_workflows()
    if not workflows:
        print("No workflows.")
        return
    for wf in workflows:
        state = "active" if wf.get("active") else "inactive"
        print(f"{wf.get('id')}\t{state}\t{wf.get('name', '')}")


@app.command()
def create(
    ctx: typer.Context,
    input: Path = typer.Argument(..., exists=True, dir_okay=True, readable=True, help="Workflow JSON file or layout folder"),
):
    """Create a new workflow on n8n from a file or layout folder."""
    with _errors(), _client(ctx) as client:
        workflow = _load_any(input)
        payload = {k: v for k, v in workflow.items() if k in ("name", "nodes", "connections", "settings")}
        payload.setdefault("settings", {})
        created = client.create_workflow(payload)
    print(f"[ok] created '{created.get('name', '')}' ({created.get('id')})")


@app.command()
def delete(
    ctx: typer.Context,
    workflow_id: str = typer.Argument(..., help="Workflow id on the n8n instance"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a workflow on n8n."""
    if not yes:
        typer.confirm(f"Delete workflow {workflow_id}?", abort=True)
    with _errors(), _client(ctx) as client:
        client.delete_workflow(workflow_id)
    print(f"[ok] deleted {workflow_id}")


@app.command()
def nodes(
    path: Path = typer.Argument(..., exists=True, help="Workflow JSON file or layout folder"),
    as_json: bool = typer.Option(False, "--json", help="Print the grouping as JSON"),
):
    """Show the workflow's nodes grouped by category."""
    with _errors():
        index = GroupingIndex(_load_any(path))
    groups = index.groups()
    if as_json:
        print(json.dumps(
            {c: [asdict(s) for s in items] for c, items in groups.items()},
            ensure_ascii=False, indent=2,
        ))
        return
    for category, items in groups.items():
        print(f"{category} ({len(items)} node{'s' if len(items) != 1 else ''})")
        for s in items:
            print(f"  [{s.node_index}] {s.name}  <{s.type}>")


@app.command("open-node")
def open_node(
    ctx: typer.Context,
    folder: Path = typer.Argument(..., exists=True, file_okay=False, help="Layout folder"),
    position: int = typer.Argument(..., help="Node position as shown by `flowsplit nodes`"),
):
    """Extract a node's embedded code into an editable .js sidecar."""
    with _errors():
        session = EditSession(_settings(ctx).workdir)
        session.open_folder(folder)
        code_file = session.open_node(position)
    if code_file is None:
        print(f"Node {position} has no embedded code; edit {session.node_file(position)} directly.")
        return
    print(f"[ok] edit {code_file}")


@app.command()
def check(
    path: Path = typer.Argument(..., exists=True, help="Workflow JSON file or layout folder"),
):
    """Report connections that point at missing nodes, and unconnected nodes."""
    with _errors():
        workflow = _load_any(path)
    dangling = dangling_connections(workflow)
    orphans = orphan_nodes(workflow)
    for src, dst in dangling:
        print(f"- [CONNECTION] {src} -> {dst}: endpoint is not a node in this workflow")
    for name in orphans:
        print(f"- [ORPHAN] {name} has no connections")
    if dangling:
        raise typer.Exit(code=1)
    if not orphans:
        print("[ok] all connections resolve")


@app.command()
def configure(
    ctx: typer.Context,
    url: str = typer.Option(..., "--url", prompt="n8n base URL", help="e.g. https://n8n.example.com"),
    api_key: str = typer.Option(..., "--api-key", prompt="n8n API key", hide_input=True),
    skip_test: bool = typer.Option(False, "--skip-test", help="Save without testing the connection"),
):
    """Store the n8n URL and API key in the config file."""
    settings = _settings(ctx).merged({"api_url": url, "api_key": api_key})
    path = save_settings(settings, ctx.obj.get("config_path"))
    print(f"[ok] wrote {path}")
    if skip_test:
        return
    with N8nClient.from_settings(settings) as client:
        if not client.test_connection():
            typer.secho("Could not reach the n8n API with these settings.", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
    print("[ok] connection works")


if __name__ == "__main__":
    app()
