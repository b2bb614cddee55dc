import json
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    with (FIXTURES / name).open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def code_workflow() -> dict:
    return load_fixture("code_pipeline.json")


@pytest.fixture
def three_nodes() -> dict:
    return {
        "id": "w3",
        "name": "Three",
        "active": False,
        "nodes": [
            {"id": "n0", "name": "Start", "type": "n8n-nodes-base.manualTrigger",
             "typeVersion": 1, "position": [0, 0], "parameters": {}},
            {"id": "n1", "name": "Middle", "type": "n8n-nodes-base.set",
             "typeVersion": 1, "position": [200, 0], "parameters": {"keepOnlySet": True}},
            {"id": "n2", "name": "End", "type": "n8n-nodes-base.noOp",
             "typeVersion": 1, "position": [400, 0], "parameters": {}},
        ],
        "connections": {
            "Start": {"main": [[{"node": "Middle", "type": "main", "index": 0}]]},
            "Middle": {"main": [[{"node": "End", "type": "main", "index": 0}]]},
        },
        "settings": {},
    }


def read_json(path: Path):
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data) -> None:
    Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")
