import re

import pytest

from flowsplit.layout.codec import node_file_stem, parse_index, sanitize, workflow_folder_name

SAFE = re.compile(r"^[A-Za-z0-9_]+$")


@pytest.mark.parametrize("name", [
    "", "HTTP Request", "!!!", "ünïcödé", "日本語", "a/b\\c:d", " ", "tab\there", "already_safe_1",
])
def test_sanitize_is_total_and_safe(name):
    out = sanitize(name, "node", 7)
    assert out, f"empty output for {name!r}"
    assert SAFE.match(out), f"{name!r} -> {out!r} contains unsafe characters"


def test_sanitize_replaces_each_unsafe_char():
    assert sanitize("HTTP Request", "node", 0) == "HTTP_Request"
    assert sanitize("a.b-c", "node", 0) == "a_b_c"
    assert sanitize("é", "node", 0) == "_"


def test_sanitize_fallback_only_when_empty():
    assert sanitize("", "node", 4) == "node_4"
    assert sanitize(None, "workflow", 2) == "workflow_2"
    assert sanitize("$", "node", 4) == "_"


def test_node_file_stem():
    assert node_file_stem(0, {"name": "Fetch orders"}) == "0_Fetch_orders"
    assert node_file_stem(12, {"name": ""}) == "12_node_12"
    assert node_file_stem(3, {}) == "3_node_3"


@pytest.mark.parametrize("stem,expected", [
    ("3_foo", 3),
    ("03_bar", 3),
    ("120_x_y", 120),
    ("0_", 0),
    ("foo", None),
    ("3foo", None),
    ("_3_foo", None),
    ("\u0663_foo", None),
    ("\uff13_foo", None),
    ("", None),
])
def test_parse_index(stem, expected):
    assert parse_index(stem) == expected


def test_parse_index_reads_back_node_file_stem():
    node = {"name": "42 is the answer"}
    assert parse_index(node_file_stem(5, node)) == 5


def test_workflow_folder_name():
    assert workflow_folder_name({"id": "abc", "name": "My flow"}) == "My_flow_abc"
    assert workflow_folder_name({"name": "Local"}) == "Local"
    assert SAFE.match(workflow_folder_name({"id": "x/y", "name": ""}))
