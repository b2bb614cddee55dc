# flowsplit/structural/schema.py
"""
Minimal shape checks for workflow documents and node files.

Only the envelope is checked: node parameters are opaque to flowsplit.
"""
from __future__ import annotations

from typing import Any, Dict

from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from flowsplit.errors import InvalidNode, InvalidWorkflow

NODE_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": ["string", "number", "null"]},
        "type": {"type": ["string", "null"]},
        # parameters must be an object when present
        "parameters": {"type": "object"},
    },
    "additionalProperties": True,
}

WORKFLOW_SCHEMA = {
    "type": "object",
    "required": ["nodes"],
    "properties": {
        "nodes": {
            "type": "array",
            "items": NODE_SCHEMA,
        },
        # source node name -> output port -> list of target lists
        "connections": {
            "type": "object",
            "additionalProperties": {"type": "object"},
        },
    },
    "additionalProperties": True,
}

_workflow_validator = Draft7Validator(WORKFLOW_SCHEMA)
_node_validator = Draft7Validator(NODE_SCHEMA)


def _first_error(validator: Draft7Validator, instance: Any) -> str | None:
    err = best_match(validator.iter_errors(instance))
    if err is None:
        return None
    where = "/".join(str(p) for p in err.path)
    return f"{err.message} (at /{where})" if where else err.message


def check_workflow(workflow: Dict[str, Any]) -> None:
    """Raise InvalidWorkflow unless `workflow` is an object with a `nodes` list of objects."""
    problem = _first_error(_workflow_validator, workflow)
    if problem:
        raise InvalidWorkflow(f"Invalid workflow: {problem}")


def check_node(node: Any, source: str = "node") -> None:
    problem = _first_error(_node_validator, node)
    if problem:
        raise InvalidNode(f"Invalid node in {source}: {problem}")
