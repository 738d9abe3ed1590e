"""Tests for JSON export, import and validation of blueprint documents."""

from __future__ import annotations

import json

import pytest

from forge.blueprint.catalog import BlockCatalog
from forge.blueprint.models import create_default
from forge.blueprint.serialization import (
    blueprint_from_dict,
    blueprint_to_dict,
    export_blueprint,
    import_blueprint,
    merge_network_config,
    merge_project_config,
    validate_document,
)
from forge.blueprint.session import BlueprintSession
from forge.exceptions import MalformedDocument


@pytest.fixture()
def populated():
    session = BlueprintSession()
    token = session.add_node("erc20-stylus", (0, 0), {"tokenName": "Forge"})
    ui = session.add_node("frontend-scaffold", (300, 0))
    session.add_edge(token.id, ui.id)
    session.update_config(project={"keywords": ["defi"]})
    return session.blueprint


def _doc(**overrides):
    raw = blueprint_to_dict(create_default())
    raw.update(overrides)
    return raw


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

class TestExport:
    def test_document_shape(self, populated):
        doc = json.loads(export_blueprint(populated))
        assert set(doc) == {
            "id", "version", "nodes", "edges", "config", "status", "createdAt", "updatedAt",
        }
        node = doc["nodes"][0]
        assert set(node) == {"id", "type", "position", "config"}
        assert node["position"] == {"x": 0, "y": 0}
        assert set(doc["edges"][0]) == {"id", "source", "target", "type"}
        assert doc["edges"][0]["type"] == "dependency"
        assert doc["config"]["network"]["chainId"] == 421614
        assert doc["config"]["generateDocs"] is True
        assert doc["createdAt"].endswith("Z")

    def test_deterministic(self, populated):
        text = export_blueprint(populated)
        assert text == export_blueprint(populated)
        assert text == json.dumps(json.loads(text), indent=2, sort_keys=True, ensure_ascii=False)

    def test_preserves_order(self, populated):
        doc = json.loads(export_blueprint(populated))
        assert [n["id"] for n in doc["nodes"]] == [n.id for n in populated.nodes]


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

class TestImport:
    def test_roundtrip(self, populated):
        restored = import_blueprint(export_blueprint(populated))
        assert restored.id == populated.id
        assert restored.nodes == populated.nodes
        assert restored.edges == populated.edges
        assert restored.config == populated.config
        assert restored.created_at == populated.created_at
        assert restored.updated_at >= populated.updated_at

    @pytest.mark.parametrize("status", ["published", "archived"])
    def test_status_survives_reexport(self, status):
        restored = import_blueprint(json.dumps(_doc(status=status)))
        assert restored.status == status
        assert json.loads(export_blueprint(restored))["status"] == status

    def test_missing_status_defaults_to_draft(self):
        raw = _doc()
        del raw["status"]
        assert import_blueprint(json.dumps(raw)).status == "draft"

    def test_accepts_bytes(self, populated):
        restored = import_blueprint(export_blueprint(populated).encode("utf-8"))
        assert restored.id == populated.id

    def test_missing_id_gets_fresh_one(self):
        raw = _doc()
        del raw["id"]
        bp = blueprint_from_dict(raw)
        assert bp.id
        assert len(bp.id) == 36

    def test_missing_timestamps(self):
        raw = _doc()
        del raw["createdAt"], raw["updatedAt"]
        bp = blueprint_from_dict(raw)
        assert bp.updated_at >= bp.created_at

    def test_extra_keys_ignored(self):
        raw = _doc(viewport={"zoom": 1.5})
        assert blueprint_from_dict(raw).nodes == []

    @pytest.mark.parametrize("text", ["{not json", "", "[1, 2]", '"string"', "null"])
    def test_rejects_non_objects(self, text):
        with pytest.raises(MalformedDocument):
            import_blueprint(text)

    def test_rejects_non_text(self):
        with pytest.raises(MalformedDocument, match="Expected JSON text"):
            import_blueprint({"nodes": []})

    def test_missing_section(self):
        raw = _doc()
        del raw["edges"]
        with pytest.raises(MalformedDocument) as excinfo:
            blueprint_from_dict(raw)
        assert any(e["path"] == "edges" for e in excinfo.value.errors)

    def test_bad_position(self):
        raw = _doc(nodes=[{"id": "n1", "type": "x", "position": {"x": "left", "y": 0}}])
        with pytest.raises(MalformedDocument) as excinfo:
            blueprint_from_dict(raw)
        assert excinfo.value.errors[0]["path"] == "nodes.0.position.x"

    def test_non_finite_position(self):
        text = export_blueprint(create_default()).replace(
            '"nodes": []',
            '"nodes": [{"id": "n1", "type": "x", "position": {"x": NaN, "y": 0}, "config": {}}]',
        )
        with pytest.raises(MalformedDocument):
            import_blueprint(text)

    def test_dangling_edge(self):
        raw = _doc(
            nodes=[{"id": "a", "type": "x", "position": {"x": 0, "y": 0}}],
            edges=[{"id": "e1", "source": "a", "target": "b"}],
        )
        with pytest.raises(MalformedDocument) as excinfo:
            blueprint_from_dict(raw)
        assert excinfo.value.errors == [{"path": "edges.0.target", "message": "Unknown node 'b'"}]

    def test_self_loop_and_duplicate_pair(self):
        node = {"id": "a", "type": "x", "position": {"x": 0, "y": 0}}
        other = {"id": "b", "type": "x", "position": {"x": 0, "y": 0}}
        raw = _doc(
            nodes=[node, other],
            edges=[
                {"id": "e1", "source": "a", "target": "a"},
                {"id": "e2", "source": "a", "target": "b"},
                {"id": "e3", "source": "a", "target": "b"},
            ],
        )
        with pytest.raises(MalformedDocument) as excinfo:
            blueprint_from_dict(raw)
        paths = [e["path"] for e in excinfo.value.errors]
        assert paths == ["edges.0", "edges.2"]

    def test_duplicate_ids(self):
        node = {"id": "a", "type": "x", "position": {"x": 0, "y": 0}}
        raw = _doc(nodes=[node, dict(node)])
        with pytest.raises(MalformedDocument, match="inconsistent"):
            blueprint_from_dict(raw)

    def test_edge_id_clashing_with_node(self):
        nodes = [
            {"id": "a", "type": "x", "position": {"x": 0, "y": 0}},
            {"id": "b", "type": "x", "position": {"x": 0, "y": 0}},
        ]
        raw = _doc(nodes=nodes, edges=[{"id": "a", "source": "a", "target": "b"}])
        with pytest.raises(MalformedDocument):
            blueprint_from_dict(raw)

    def test_unknown_edge_type(self):
        nodes = [
            {"id": "a", "type": "x", "position": {"x": 0, "y": 0}},
            {"id": "b", "type": "x", "position": {"x": 0, "y": 0}},
        ]
        raw = _doc(nodes=nodes, edges=[{"id": "e", "source": "a", "target": "b", "type": "data"}])
        with pytest.raises(MalformedDocument):
            blueprint_from_dict(raw)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidateDocument:
    def test_valid(self, populated):
        report = validate_document(export_blueprint(populated))
        assert report.valid
        assert report.errors == [] and report.warnings == []

    def test_invalid_reports_errors(self):
        report = validate_document("{oops")
        assert not report.valid
        assert report.errors[0]["path"] == ""
        assert report.to_dict()["valid"] is False

    def test_unknown_block_type_warns(self):
        raw = _doc(nodes=[{"id": "a", "type": "mystery-block", "position": {"x": 0, "y": 0}}])
        report = validate_document(raw)
        assert report.valid
        assert report.warnings == [
            {"path": "nodes.0.type", "message": "Unknown block type 'mystery-block'"}
        ]

    def test_custom_catalog(self):
        raw = _doc(nodes=[{"id": "a", "type": "erc20-stylus", "position": {"x": 0, "y": 0}}])
        report = validate_document(raw, catalog=BlockCatalog([]))
        assert len(report.warnings) == 1

    def test_major_version_mismatch_warns(self):
        report = validate_document(_doc(version="2.0.0"))
        assert report.valid
        assert report.warnings[0]["path"] == "version"

    def test_minor_version_is_fine(self):
        assert validate_document(_doc(version="1.4.0")).warnings == []


# ---------------------------------------------------------------------------
# Config section merges
# ---------------------------------------------------------------------------

class TestMergeConfig:
    def test_project_merge_keeps_unchanged_fields(self):
        current = create_default().config.project
        merged = merge_project_config(current, {"keywords": ["defi", "defi"]})
        assert merged.keywords == ["defi"]
        assert merged.name == current.name
        assert merged is not current

    @pytest.mark.parametrize("changes", [{"keywords": None}, {"name": ""}, {"name": None}])
    def test_project_rejects_what_import_rejects(self, changes):
        current = create_default().config.project
        with pytest.raises(ValueError, match="Invalid project config"):
            merge_project_config(current, changes)

    def test_network_error_names_the_field(self):
        current = create_default().config.network
        with pytest.raises(ValueError, match="Invalid network config: chain"):
            merge_network_config(current, {"chain_id": None})

    def test_network_optional_urls_can_be_cleared(self):
        current = create_default().config.network
        merged = merge_network_config(current, {"rpc_url": None, "is_testnet": False})
        assert merged.rpc_url is None
        assert merged.chain_id == current.chain_id
