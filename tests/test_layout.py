import copy
import json

import pytest

from conftest import FIXTURES, load_fixture, read_json, write_json
from flowsplit.errors import DuplicateNodeIndex, InvalidNode, InvalidWorkflow, MissingManifest, ParseError
from flowsplit.layout.decompose import decompose
from flowsplit.layout.recompose import recompose


@pytest.mark.parametrize("fixture", sorted(p.name for p in FIXTURES.glob("*.json")))
def test_round_trip_without_edits(tmp_path, fixture):
    workflow = load_fixture(fixture)
    original = copy.deepcopy(workflow)

    decompose(workflow, tmp_path / "wf")
    result = recompose(tmp_path / "wf")

    assert result["nodes"] == original["nodes"], f"{fixture}: nodes changed across round trip"
    assert result["connections"] == original["connections"]
    for key in ("id", "name", "active", "settings", "tags", "versionId", "staticData"):
        assert result.get(key) == original.get(key), f"{fixture}: top-level {key} changed"
    assert workflow == original, "decompose must not mutate its input"


def test_layout_file_names(tmp_path, code_workflow):
    layout = decompose(code_workflow, tmp_path / "wf")

    assert layout.manifest == tmp_path / "wf" / "workflow.json"
    assert [p.name for p in layout.node_files] == [
        "0_Schedule_Trigger.json",
        "1_Fetch_orders.json",
        "2_Shape_rows.json",
        "3_Legacy_transform.json",
    ]
    # sidecars are only created when a node is opened
    assert not list(layout.nodes_dir.glob("*.js"))
    assert read_json(layout.node_files[2]) == code_workflow["nodes"][2]


def test_decompose_replaces_existing_folder(tmp_path, three_nodes, code_workflow):
    target = tmp_path / "wf"
    decompose(code_workflow, target)
    (target / "nodes" / "2_Shape_rows.js").write_text("stale()", encoding="utf-8")
    (target / "notes.txt").write_text("scratch", encoding="utf-8")

    decompose(three_nodes, target)

    assert sorted(p.name for p in (target / "nodes").iterdir()) == [
        "0_Start.json", "1_Middle.json", "2_End.json",
    ]
    assert not (target / "notes.txt").exists()
    assert [n["name"] for n in recompose(target)["nodes"]] == ["Start", "Middle", "End"]


@pytest.mark.parametrize("bad", [
    {"name": "no nodes"},
    {"nodes": {"0": {}}},
    {"nodes": "Start"},
    {"nodes": [1, 2]},
])
def test_decompose_rejects_invalid_workflow(tmp_path, bad):
    with pytest.raises(InvalidWorkflow):
        decompose(bad, tmp_path / "wf")


def test_deleting_node_file_removes_node(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    layout.node_files[1].unlink()

    result = recompose(tmp_path / "wf")

    assert [n["name"] for n in result["nodes"]] == ["Start", "End"]


def test_sidecar_edit_is_folded_back(tmp_path, code_workflow):
    layout = decompose(code_workflow, tmp_path / "wf")
    (layout.nodes_dir / "2_Shape_rows.js").write_text("return [{json: {ok: true}}];\n", encoding="utf-8")

    result = recompose(tmp_path / "wf")

    edited = result["nodes"][2]
    assert edited["parameters"]["jsCode"] == "return [{json: {ok: true}}];\n"
    expected = copy.deepcopy(code_workflow["nodes"][2])
    expected["parameters"]["jsCode"] = edited["parameters"]["jsCode"]
    assert edited == expected
    assert result["nodes"][:2] == code_workflow["nodes"][:2]
    assert result["nodes"][3] == code_workflow["nodes"][3]


def test_sidecar_goes_to_first_present_field(tmp_path, code_workflow):
    layout = decompose(code_workflow, tmp_path / "wf")
    (layout.nodes_dir / "3_Legacy_transform.js").write_text("return items.slice(1);", encoding="utf-8")

    node = recompose(tmp_path / "wf")["nodes"][3]

    assert node["parameters"] == {"functionCode": "return items.slice(1);"}


def test_sidecar_without_code_field_is_ignored(tmp_path, code_workflow):
    layout = decompose(code_workflow, tmp_path / "wf")
    (layout.nodes_dir / "1_Fetch_orders.js").write_text("oops()", encoding="utf-8")

    node = recompose(tmp_path / "wf")["nodes"][1]

    assert node == code_workflow["nodes"][1]


def test_node_file_edit_is_kept(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    node = read_json(layout.node_files[2])
    node["parameters"] = {"note": "edited outside"}
    write_json(layout.node_files[2], node)

    result = recompose(tmp_path / "wf")

    assert result["nodes"][2]["parameters"] == {"note": "edited outside"}


def test_order_comes_from_index_prefix_only(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    # renaming the readable part does not move the node
    layout.node_files[0].rename(layout.nodes_dir / "0_zzz_last_alphabetically.json")
    layout.node_files[2].rename(layout.nodes_dir / "10_aaa.json")

    result = recompose(tmp_path / "wf")

    assert [n["name"] for n in result["nodes"]] == ["Start", "Middle", "End"]


def test_files_without_index_are_skipped(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    write_json(layout.nodes_dir / "scratch.json", {"name": "not a node"})
    (layout.nodes_dir / "notes.txt").write_text("hello", encoding="utf-8")
    (layout.nodes_dir / "broken.json").write_text("{", encoding="utf-8")

    result = recompose(tmp_path / "wf")

    assert len(result["nodes"]) == 3


def test_duplicate_index_fails(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    write_json(layout.nodes_dir / "1_copy.json", three_nodes["nodes"][1])

    with pytest.raises(DuplicateNodeIndex) as exc:
        recompose(tmp_path / "wf")

    assert exc.value.index == 1
    assert {p.name for p in exc.value.files} == {"1_Middle.json", "1_copy.json"}


def test_missing_manifest(tmp_path):
    (tmp_path / "wf" / "nodes").mkdir(parents=True)
    with pytest.raises(MissingManifest):
        recompose(tmp_path / "wf")


def test_malformed_node_file_is_fatal(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    layout.node_files[1].write_text("{ not json", encoding="utf-8")

    with pytest.raises(ParseError) as exc:
        recompose(tmp_path / "wf")
    assert exc.value.path == layout.node_files[1]


def test_malformed_manifest_is_fatal(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    layout.manifest.write_text("[1, 2", encoding="utf-8")

    with pytest.raises(ParseError):
        recompose(tmp_path / "wf")


def test_node_file_must_be_object(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    layout.node_files[0].write_text(json.dumps(["Start"]), encoding="utf-8")

    with pytest.raises(InvalidNode):
        recompose(tmp_path / "wf")


def test_rename_with_stable_id_relinks_connections(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    node = read_json(layout.node_files[1])
    node["name"] = "Prepare"
    write_json(layout.node_files[1], node)

    result = recompose(tmp_path / "wf")

    assert result["nodes"][1]["name"] == "Prepare"
    assert result["connections"] == {
        "Start": {"main": [[{"node": "Prepare", "type": "main", "index": 0}]]},
        "Prepare": {"main": [[{"node": "End", "type": "main", "index": 0}]]},
    }


def test_rename_without_id_leaves_connections(tmp_path, three_nodes):
    for n in three_nodes["nodes"]:
        del n["id"]
    layout = decompose(three_nodes, tmp_path / "wf")
    node = read_json(layout.node_files[1])
    node["name"] = "Prepare"
    write_json(layout.node_files[1], node)

    result = recompose(tmp_path / "wf")

    assert result["connections"] == three_nodes["connections"]


def test_empty_workflow(tmp_path):
    decompose({"name": "Empty", "nodes": [], "connections": {}}, tmp_path / "wf")
    assert recompose(tmp_path / "wf")["nodes"] == []


def test_copied_node_file_keeps_original_edges(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    copy_of_middle = read_json(layout.node_files[1])
    copy_of_middle["name"] = "Middle copy"
    write_json(layout.nodes_dir / "3_Middle_copy.json", copy_of_middle)

    result = recompose(tmp_path / "wf")

    assert [n["name"] for n in result["nodes"]] == ["Start", "Middle", "End", "Middle copy"]
    assert result["connections"] == three_nodes["connections"]


def test_rename_never_overwrites_existing_source(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    node = read_json(layout.node_files[0])
    node["name"] = "Middle"
    write_json(layout.node_files[0], node)

    result = recompose(tmp_path / "wf")

    assert result["connections"]["Middle"] == three_nodes["connections"]["Middle"]
    assert "Start" in result["connections"]


def test_undecodable_node_file_is_parse_error(tmp_path, three_nodes):
    layout = decompose(three_nodes, tmp_path / "wf")
    layout.node_files[1].write_bytes(b'{"name": "\xff\xfe"}')

    with pytest.raises(ParseError) as exc:
        recompose(tmp_path / "wf")
    assert exc.value.path == layout.node_files[1]


def test_undecodable_sidecar_is_parse_error(tmp_path, code_workflow):
    layout = decompose(code_workflow, tmp_path / "wf")
    code_file = layout.node_files[2].with_suffix(".js")
    code_file.write_bytes(b"return \xff;")

    with pytest.raises(ParseError) as exc:
        recompose(tmp_path / "wf")
    assert exc.value.path == code_file
