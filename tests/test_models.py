"""Tests for the blueprint dataclasses, identifiers and block catalog."""

from __future__ import annotations

import math
from datetime import timedelta, timezone

import pytest

from forge.blueprint.catalog import BlockCatalog, BlockDefinition, default_catalog, get_default_config
from forge.blueprint.identifiers import format_timestamp, new_id, utc_now
from forge.blueprint.models import (
    SCHEMA_VERSION,
    STATUS_DRAFT,
    Blueprint,
    Position,
    ProjectConfig,
    create_default,
    network_preset,
)
from forge.config import Settings


# ---------------------------------------------------------------------------
# Position
# ---------------------------------------------------------------------------

class TestPosition:
    def test_accepts_ints_and_floats(self):
        p = Position(1, 2.5)
        assert p.to_dict() == {"x": 1, "y": 2.5}

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_rejects_non_finite(self, bad):
        with pytest.raises(ValueError, match="finite"):
            Position(bad, 0)

    @pytest.mark.parametrize("bad", ["1", None, True])
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(ValueError, match="number"):
            Position(0, bad)

    def test_coerce_from_mapping_and_pair(self):
        assert Position.coerce({"x": 3, "y": 4}) == Position(3, 4)
        assert Position.coerce((5, 6)) == Position(5, 6)
        p = Position(7, 8)
        assert Position.coerce(p) is p

    def test_coerce_missing_axis(self):
        with pytest.raises(ValueError, match="'y'"):
            Position.coerce({"x": 1})


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

class TestIdentifiers:
    def test_new_id_is_unique_uuid4(self):
        ids = {new_id() for _ in range(500)}
        assert len(ids) == 500
        assert all(len(i) == 36 and i[14] == "4" for i in ids)

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None

    def test_format_timestamp_uses_z_suffix(self):
        dt = utc_now().replace(year=2024, month=1, day=2, hour=3, minute=4, second=5, microsecond=6)
        assert format_timestamp(dt) == "2024-01-02T03:04:05.000006Z"

    def test_format_timestamp_converts_offsets(self):
        dt = utc_now().astimezone(timezone(timedelta(hours=2)))
        assert format_timestamp(dt).endswith("Z")


# ---------------------------------------------------------------------------
# Blueprint aggregate
# ---------------------------------------------------------------------------

class TestCreateDefault:
    def test_empty_draft(self):
        bp = create_default()
        assert isinstance(bp, Blueprint)
        assert bp.nodes == [] and bp.edges == []
        assert bp.status == STATUS_DRAFT
        assert bp.version == SCHEMA_VERSION
        assert bp.created_at == bp.updated_at

    def test_default_config(self):
        cfg = create_default().config
        assert cfg.project.name == "My Dapp"
        assert cfg.project.license == "MIT"
        assert cfg.project.version == "0.1.0"
        assert cfg.project.keywords == ["web3", "dapp"]
        assert cfg.network.chain_id == 421614
        assert cfg.network.name == "Arbitrum Sepolia"
        assert cfg.network.rpc_url == "https://sepolia-rollup.arbitrum.io/rpc"
        assert cfg.network.explorer_url == "https://sepolia.arbiscan.io"
        assert cfg.network.is_testnet is True
        assert cfg.generate_docs is True
        assert cfg.deploy_on_generate is False

    def test_overrides(self):
        bp = create_default(project_name="Launchpad", chain="arbitrum-one")
        assert bp.config.project.name == "Launchpad"
        assert bp.config.network.chain_id == 42161
        assert bp.config.network.is_testnet is False

    def test_ids_differ(self):
        assert create_default().id != create_default().id

    def test_unknown_chain(self):
        with pytest.raises(ValueError, match="Unknown network"):
            network_preset("mainnet-nope")


class TestBlueprintHelpers:
    def test_touch_never_moves_backwards(self):
        bp = create_default()
        future = bp.updated_at + timedelta(hours=1)
        bp.updated_at = future
        bp.touch()
        assert bp.updated_at == future

    def test_touch_respects_floor(self):
        bp = create_default()
        floor = bp.updated_at + timedelta(days=1)
        bp.touch(floor)
        assert bp.updated_at == floor

    def test_keywords_are_a_set(self):
        project = ProjectConfig(name="x", keywords=["a", "b", "a", "c", "b"])
        assert project.keywords == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Block catalog
# ---------------------------------------------------------------------------

class TestCatalog:
    def test_known_type_defaults(self):
        cfg = get_default_config("erc20-stylus")
        assert cfg["tokenSymbol"] == "SPT"
        assert cfg["decimals"] == 18

    def test_unknown_type_is_empty(self):
        assert get_default_config("definitely-not-a-block") == {}

    def test_returns_private_copy(self):
        cfg = default_catalog.get_default_config("erc20-stylus")
        cfg["selectedFunctions"].append("pause")
        cfg["tokenSymbol"] = "XXX"
        fresh = default_catalog.get_default_config("erc20-stylus")
        assert fresh["tokenSymbol"] == "SPT"
        assert "pause" not in fresh["selectedFunctions"]

    def test_custom_catalog(self):
        catalog = BlockCatalog([BlockDefinition("counter", "Counter", "contracts", {"start": 0})])
        assert "counter" in catalog
        assert "erc20-stylus" not in catalog
        assert len(catalog) == 1
        assert catalog.get_default_config("counter") == {"start": 0}

    def test_list_blocks_by_category(self):
        agents = default_catalog.list_blocks("agents")
        assert agents
        assert all(b.category == "agents" for b in agents)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FORGE_WORKSPACE", str(tmp_path / "ws"))
        monkeypatch.setenv("FORGE_HISTORY_SIZE", "7")
        monkeypatch.setenv("FORGE_DEFAULT_CHAIN", "arbitrum-one")
        s = Settings()
        assert s.workspace_dir == tmp_path / "ws"
        assert s.history_size == 7
        assert s.default_chain == "arbitrum-one"

    def test_ensure_workspace(self, tmp_path):
        s = Settings(workspace_dir=tmp_path / "a" / "b")
        s.ensure_workspace()
        assert (tmp_path / "a" / "b").is_dir()

    def test_default_chain_drives_create_default(self, monkeypatch):
        monkeypatch.setattr("forge.blueprint.models.settings.default_chain", "arbitrum-one")
        monkeypatch.setattr("forge.blueprint.models.settings.default_project_name", "Env Dapp")
        bp = create_default()
        assert bp.config.network.chain_id == 42161
        assert bp.config.project.name == "Env Dapp"
