# flowsplit/layout/code.py
"""
Embedded-code extraction for nodes whose parameters carry source code.

The node-type catalog is not uniform about which parameter holds the code,
so a fixed allow-list is scanned in priority order instead of guessing from
arbitrary string parameters.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from flowsplit.errors import InvalidNode
from flowsplit.layout.paths import readme_path, sidecar_path
from flowsplit.utils.io import write_text
from flowsplit.utils.logger import get_logger

log = get_logger("layout.code")

CODE_FIELDS = ("jsCode", "functionCode", "code", "javascriptCode")

README_TEMPLATE = """\
These files were generated by flowsplit for node "{name}" ({type}).

  {code_file}
      Editable copy of the node's `{field}` parameter. On save its full
      contents are written back into the first code parameter the node
      carries ({fields}).

  {node_file}
      The node itself. Edits to this file are kept as-is; deleting it
      removes the node from the workflow on the next save.

Keep the leading number of these file names: it is the node's position in
the workflow and the only thing used to put nodes back in order.
"""


@dataclass(frozen=True)
class CodeBlob:
    field: str
    content: str


def _parameters(node: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    params = node.get("parameters") if isinstance(node, dict) else None
    return params if isinstance(params, dict) else None


def extract(node: Dict[str, Any]) -> Optional[CodeBlob]:
    """First candidate field holding a non-empty value, or None."""
    params = _parameters(node)
    if not params:
        return None
    for field in CODE_FIELDS:
        value = params.get(field)
        if value:
            return CodeBlob(field=field, content=value if isinstance(value, str) else str(value))
    return None


def find_code_field(node: Dict[str, Any]) -> Optional[str]:
    """First candidate field present in parameters, regardless of its value."""
    params = _parameters(node)
    if params is None:
        return None
    for field in CODE_FIELDS:
        if field in params:
            return field
    return None


def reinsert(node: Dict[str, Any], field: str, content: str) -> Dict[str, Any]:
    """Shallow copy of `node` with parameters[field] set to `content`; input untouched."""
    params = _parameters(node)
    if params is None:
        raise InvalidNode(f"Node '{node.get('name', '?')}' has no parameters to hold `{field}`")
    updated = dict(node)
    updated["parameters"] = {**params, field: content}
    return updated


def open_sidecar(node_file: Path, node: Dict[str, Any]) -> Optional[Path]:
    """
    Write the code sidecar and its README next to `node_file`.

    Sidecars are only created on demand, when a node is opened for editing.
    Returns the sidecar path, or None if the node carries no embedded code.
    """
    blob = extract(node)
    if blob is None:
        return None

    node_file = Path(node_file)
    code_file = sidecar_path(node_file)
    write_text(code_file, blob.content)
    write_text(
        readme_path(node_file),
        README_TEMPLATE.format(
            name=node.get("name", ""),
            type=node.get("type", ""),
            field=blob.field,
            fields=", ".join(CODE_FIELDS),
            code_file=code_file.name,
            node_file=node_file.name,
        ),
    )
    log.debug("Opened code sidecar %s (field %s)", code_file, blob.field)
    return code_file
