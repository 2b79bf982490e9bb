"""
Tests for serialization and deserialization of wizard graphs.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `wizgraph.serialization`, and that payloads
written by the visual editor (no schema_version, string option indexes)
load unchanged.
"""

import json

import pytest

from wizgraph.errors import StructuralError, UnsupportedSchemaVersionError
from wizgraph.model import Connection, FileValue, FromType, Node, NodeAttributes, NodeOption, NodeType
from wizgraph.serialization import (
    SCHEMA_VERSION,
    file_value_from_dict,
    graph_from_dict,
    graph_from_json,
    graph_from_yaml,
    graph_to_dict,
    graph_to_json,
    graph_to_yaml,
)


def build_sample_graph():
    nodes = [
        Node(id="start", type=NodeType.START, title="Start", x=400, y=300),
        Node(
            id="plan",
            type=NodeType.RADIO,
            title="Plan",
            content="Which plan?",
            attributes=NodeAttributes({"name": "plan", "data-xtz-validate": "true", "data-fv-not-empty": True}),
            options=[NodeOption("basic", "Basic"), NodeOption("pro", "Pro", checked=True)],
            default_radio_value="pro",
        ),
        Node(id="company", type=NodeType.TEXT, title="Company", placeholder="ACME", help="Legal name"),
    ]
    connections = [
        Connection(id="c1", from_node="start", to_node="plan"),
        Connection(id="c2", from_node="plan", to_node="company", from_type=FromType.OPTION, option_index=1),
    ]
    return nodes, connections


def test_dict_round_trip():
    nodes, connections = build_sample_graph()
    d = graph_to_dict(nodes, connections)
    assert d["schema_version"] == SCHEMA_VERSION
    assert d["connections"][1] == {
        "id": "c2",
        "from": "plan",
        "to": "company",
        "fromType": "option",
        "toType": "input",
        "optionIndex": 1,
    }

    nodes2, connections2 = graph_from_dict(d)
    assert nodes2 == nodes
    assert connections2 == connections


def test_json_round_trip():
    nodes, connections = build_sample_graph()
    s = graph_to_json(nodes, connections)
    assert json.loads(s)["nodes"][1]["defaultRadioValue"] == "pro"
    assert graph_from_json(s) == (nodes, connections)


def test_yaml_round_trip():
    nodes, connections = build_sample_graph()
    s = graph_to_yaml(nodes, connections)
    assert graph_from_yaml(s) == (nodes, connections)


def test_unversioned_editor_payload():
    """Editor exports carry no schema_version and may use string option indexes."""
    payload = {
        "nodes": [
            {"id": "start", "type": "start", "title": "Start"},
            {"id": "s", "type": "select", "title": "Pick", "options": [{"value": "a", "description": "A"}]},
        ],
        "connections": [
            {"id": "c1", "from": "start", "to": "s", "fromType": "output", "toType": "input", "optionIndex": None},
            {"id": "c2", "from": "s", "to": "start", "fromType": "option", "optionIndex": "0"},
        ],
    }
    nodes, connections = graph_from_dict(payload)
    assert nodes[1].options[0].description == "A"
    assert connections[1].option_index == 0
    assert connections[0].from_type == FromType.OUTPUT


def test_newer_schema_rejected():
    with pytest.raises(UnsupportedSchemaVersionError):
        graph_from_dict({"schema_version": SCHEMA_VERSION + 1, "nodes": [], "connections": []})


def test_unknown_node_type_rejected():
    with pytest.raises(StructuralError):
        graph_from_dict({"nodes": [{"id": "x", "type": "carousel"}]})


def test_bad_containers_rejected():
    with pytest.raises(StructuralError):
        graph_from_dict(["not", "a", "mapping"])
    with pytest.raises(StructuralError):
        graph_from_dict({"nodes": {"id": "x"}})


def test_invalid_json_rejected():
    with pytest.raises(StructuralError):
        graph_from_json("{not json")


def test_invalid_yaml_rejected():
    """Unparseable YAML surfaces as StructuralError, like bad JSON."""
    with pytest.raises(StructuralError):
        graph_from_yaml("nodes: [a, {b: ]")


def test_file_value_from_wire_shape():
    value = file_value_from_dict({"base64": "aGk=", "fileName": "a.txt", "mimeType": "text/plain"})
    assert value == FileValue(base64="aGk=", file_name="a.txt", mime_type="text/plain")
    assert file_value_from_dict({"fileName": "a.txt"}) is None
    assert file_value_from_dict({"base64": ""}) is None
    assert file_value_from_dict(None) is None


def test_missing_type_loads_as_none():
    """Malformed nodes load so validate_graph can report them."""
    nodes, _ = graph_from_dict({"nodes": [{"id": "x"}]})
    assert nodes[0].type is None
