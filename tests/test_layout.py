"""Tests for tiering, layout and the template library."""

from __future__ import annotations

import logging

import pytest

from forge.blueprint.catalog import default_catalog
from forge.blueprint.models import Position
from forge.blueprint.session import BlueprintSession
from forge.exceptions import CyclicGraphError, TemplateError, UnknownTemplateError
from forge.templates.layout import (
    COLUMN_SPACING,
    ROW_SPACING,
    build_template,
    check_left_to_right,
    compute_tiers,
    get_tier_columns,
    layout_graph,
    relayout_blueprint,
    template_layout,
)
from forge.templates.library import (
    COMPUTED_TEMPLATE_IDS,
    TEMPLATE_CATEGORIES,
    TEMPLATES,
    get_template,
    list_templates,
)
from forge.templates.models import Template, TemplateEdge, TemplateNode


# ---------------------------------------------------------------------------
# compute_tiers
# ---------------------------------------------------------------------------

class TestComputeTiers:
    def test_diamond(self):
        assert compute_tiers(4, [(0, 1), (0, 2), (1, 3), (2, 3)]) == {0: 0, 1: 1, 2: 1, 3: 2}

    def test_longest_path_wins(self):
        # 0 -> 1 -> 2 and a shortcut 0 -> 2
        assert compute_tiers(3, [(0, 2), (0, 1), (1, 2)]) == {0: 0, 1: 1, 2: 2}

    def test_isolated_nodes_are_roots(self):
        assert compute_tiers(3, []) == {0: 0, 1: 0, 2: 0}

    def test_empty(self):
        assert compute_tiers(0, []) == {}

    def test_accepts_sequences_and_template_edges(self):
        nodes = ["a", "b"]
        assert compute_tiers(nodes, [TemplateEdge(0, 1)]) == {0: 0, 1: 1}

    def test_cycle(self, caplog):
        with caplog.at_level(logging.WARNING, logger="forge.templates.layout"):
            with pytest.raises(CyclicGraphError) as excinfo:
                compute_tiers(4, [(0, 1), (1, 2), (2, 1), (2, 3)])
        assert 1 in excinfo.value.nodes and 2 in excinfo.value.nodes
        assert 0 not in excinfo.value.nodes
        assert "Cycle detected" in caplog.text

    def test_self_loop_is_a_cycle(self):
        with pytest.raises(CyclicGraphError):
            compute_tiers(1, [(0, 0)])

    @pytest.mark.parametrize("edge", [(0, 3), (-1, 0), (5, 1)])
    def test_out_of_range(self, edge):
        with pytest.raises(TemplateError):
            compute_tiers(3, [edge])

    def test_every_edge_flows_right(self):
        edges = [(0, 3), (1, 3), (3, 4), (2, 4), (4, 5), (1, 5)]
        tiers = compute_tiers(6, edges)
        assert check_left_to_right(tiers, edges) == []


# ---------------------------------------------------------------------------
# layout_graph
# ---------------------------------------------------------------------------

class TestLayoutGraph:
    def test_positions_follow_tiers_and_rows(self):
        layout = layout_graph(4, [(0, 1), (0, 2), (1, 3), (2, 3)])
        assert layout.positions == {
            0: Position(0, 0),
            1: Position(COLUMN_SPACING, 0),
            2: Position(COLUMN_SPACING, ROW_SPACING),
            3: Position(2 * COLUMN_SPACING, 0),
        }

    def test_y_offset(self):
        layout = layout_graph(2, [], y_offset=40)
        assert layout.positions[0] == Position(0, 40)
        assert layout.positions[1] == Position(0, 40 + ROW_SPACING)

    def test_ghosts_sit_past_core(self):
        # core 0 -> 1; ghost 2 hangs off root 0, ghost 3 off ghost 2
        layout = layout_graph(2, [(0, 1)], ghost_count=2, ghost_edges=[(0, 2), (2, 3)])
        assert layout.tiers == {0: 0, 1: 1}
        assert layout.ghost_tiers == {0: 2, 1: 3}
        assert layout.ghost_positions[0] == Position(2 * COLUMN_SPACING, 0)
        assert layout.combined_tiers() == {0: 0, 1: 1, 2: 2, 3: 3}

    def test_ghost_rows_count_ghosts_only(self):
        layout = layout_graph(3, [(0, 1), (0, 2)], ghost_count=2)
        assert layout.ghost_tiers == {0: 2, 1: 2}
        assert layout.ghost_positions[0].y == 0
        assert layout.ghost_positions[1].y == ROW_SPACING

    def test_ghost_cycle(self):
        with pytest.raises(CyclicGraphError):
            layout_graph(1, [], ghost_count=2, ghost_edges=[(1, 2), (2, 1)])

    def test_no_ghosts(self):
        layout = layout_graph(1, [])
        assert layout.ghost_tiers == {} and layout.ghost_positions == {}


class TestTierColumns:
    def test_groups_in_order(self):
        assert get_tier_columns({0: 0, 1: 1, 2: 1, 3: 2}) == [[0], [1, 2], [3]]

    def test_empty(self):
        assert get_tier_columns({}) == []


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

class TestTemplateModel:
    def test_rejects_bad_core_index(self):
        with pytest.raises(TemplateError, match="index 2"):
            Template(
                id="bad", name="Bad", description="", category="contracts",
                nodes=(TemplateNode("a", Position(0, 0)), TemplateNode("b", Position(0, 0))),
                edges=(TemplateEdge(0, 2),),
            )

    def test_ghost_edges_use_combined_indices(self):
        t = Template(
            id="ok", name="Ok", description="", category="contracts",
            nodes=(TemplateNode("a", Position(0, 0)),),
            edges=(),
            ghost_nodes=(TemplateNode("g", Position(0, 0)),),
            ghost_edges=(TemplateEdge(0, 1),),
        )
        assert [n.type for n in t.combined_nodes] == ["a", "g"]

    def test_to_dict_uses_camel_case(self):
        data = get_template("token-launchpad").to_dict()
        assert {"ghostNodes", "ghostEdges"} <= set(data)
        assert data["edges"][0] == {"source": 0, "target": 1}


class TestBuildTemplate:
    def test_places_nodes(self):
        t = build_template(
            "demo", "Demo", "", "contracts",
            nodes=["a", ("b", {"k": 1}), "c"],
            edges=[(0, 1), (1, 2)],
            ghost_nodes=["g"],
            ghost_edges=[(2, 3)],
        )
        assert [n.position.x for n in t.nodes] == [0, COLUMN_SPACING, 2 * COLUMN_SPACING]
        assert t.nodes[1].config == {"k": 1}
        assert t.ghost_nodes[0].position == Position(3 * COLUMN_SPACING, 0)

    def test_cycle_rejected(self):
        with pytest.raises(CyclicGraphError):
            build_template("c", "C", "", "contracts", nodes=["a", "b"], edges=[(0, 1), (1, 0)])


class TestLibrary:
    @pytest.mark.parametrize("template", TEMPLATES, ids=lambda t: t.id)
    def test_templates_are_acyclic(self, template):
        layout = template_layout(template)
        assert len(layout.tiers) == len(template.nodes)
        assert len(layout.ghost_tiers) == len(template.ghost_nodes)

    @pytest.mark.parametrize("template_id", sorted(COMPUTED_TEMPLATE_IDS))
    def test_computed_templates_flow_left_to_right(self, template_id):
        t = get_template(template_id)
        layout = template_layout(t)
        assert check_left_to_right(layout.combined_tiers(), [*t.edges, *t.ghost_edges]) == []
        for i, node in enumerate(t.nodes):
            assert node.position == layout.positions[i]

    def test_token_launchpad_tiers(self):
        layout = template_layout(get_template("token-launchpad"))
        assert layout.tiers == {0: 0, 1: 1, 2: 1, 3: 1, 4: 2, 5: 2, 6: 1}
        assert layout.ghost_tiers == {0: 3, 1: 4}

    def test_ai_agent_paywall_tiers(self):
        t = get_template("ai-agent-paywall")
        layout = template_layout(t)
        assert layout.tiers == {0: 0, 1: 1, 2: 2, 3: 3, 4: 4}
        assert layout.ghost_tiers == {0: 5, 1: 5}
        assert t.nodes[0].config["feedAddress"].startswith("0x")

    def test_ids_are_unique(self):
        ids = [t.id for t in TEMPLATES]
        assert len(ids) == len(set(ids))

    def test_categories_are_known(self):
        known = {c["id"] for c in TEMPLATE_CATEGORIES}
        assert all(t.category in known for t in TEMPLATES)

    def test_get_unknown(self):
        with pytest.raises(UnknownTemplateError) as excinfo:
            get_template("nope")
        assert str(excinfo.value) == "Unknown template: 'nope'"

    def test_list_by_category(self):
        assert list_templates() == list(TEMPLATES)
        assert list_templates("all") == list(TEMPLATES)
        defi = list_templates("defi")
        assert {t.id for t in defi} == {
            "agentic-trading-platform", "defi-dashboard", "token-launchpad",
        }
        assert [t.id for t in list_templates("robinhood")] == ["robinhood-dapp"]
        assert list_templates("analytics") == []

    @pytest.mark.parametrize("template", TEMPLATES, ids=lambda t: t.id)
    def test_block_types_are_in_catalog(self, template):
        missing = {n.type for n in template.combined_nodes} - {
            b.id for b in default_catalog.list_blocks()
        }
        assert missing == set()

    def test_trading_bot_tiers(self):
        t = get_template("trading-bot")
        assert t.nodes[2].position == Position(-300, 300)
        layout = template_layout(t)
        assert layout.tiers[3] == 0
        assert layout.tiers[8] == 3
        assert max(layout.ghost_tiers.values()) > max(layout.tiers.values())

    def test_ai_powered_paywall_is_distinct_from_ai_agent_paywall(self):
        payments = [t.id for t in list_templates("payments")]
        assert payments == ["ai-powered-paywall", "ai-agent-paywall"]
        t = get_template("ai-powered-paywall")
        assert [n.type for n in t.ghost_nodes][-1] == "dune-execute-sql"


# ---------------------------------------------------------------------------
# Applying templates and re-laying out sessions
# ---------------------------------------------------------------------------

class TestApplyTemplate:
    def test_instantiates_core_and_ghosts(self):
        session = BlueprintSession()
        t = get_template("full-stack-dapp")
        created = session.apply_template(t)
        bp = session.blueprint
        assert [n.type for n in bp.nodes] == [n.type for n in t.nodes]
        assert created == bp.nodes
        assert len(bp.edges) == len(t.edges)
        assert len(session.ghost_nodes) == len(t.ghost_nodes)
        assert len(session.ghost_edges) == len(t.ghost_edges)
        assert bp.nodes[7].config["feedAddress"] == t.nodes[7].config["feedAddress"]

    def test_edges_map_to_fresh_ids(self):
        session = BlueprintSession()
        t = get_template("token-launchpad")
        session.apply_template(t)
        ids = [n.id for n in session.blueprint.nodes]
        assert [(ids.index(e.source), ids.index(e.target)) for e in session.blueprint.edges] == [
            (e.source, e.target) for e in t.edges
        ]

    def test_y_offset(self):
        session = BlueprintSession()
        t = get_template("ai-agent-paywall")
        session.apply_template(t, y_offset=100)
        assert session.blueprint.nodes[0].position == Position(0, 100)
        assert session.ghost_nodes[0].position.y == t.ghost_nodes[0].position.y + 100

    def test_single_undo_step(self):
        session = BlueprintSession()
        session.add_node("x", (0, 0))
        session.apply_template(get_template("nft-marketplace"))
        assert session.undo() is True
        assert [n.type for n in session.blueprint.nodes] == ["x"]

    def test_replaces_previous_graph(self):
        session = BlueprintSession()
        session.apply_template(get_template("token-launchpad"))
        session.apply_template(get_template("ai-agent-paywall"))
        assert len(session.blueprint.nodes) == 5
        assert len(session.ghost_nodes) == 2


class TestRelayout:
    def test_moves_nodes_into_tiers(self):
        session = BlueprintSession()
        a = session.add_node("a", (999, 999))
        b = session.add_node("b", (-5, 3))
        g = session.add_ghost_node("g", (0, 0))
        session.add_edge(a.id, b.id)
        session.add_ghost_edge(b.id, g.id)

        layout = relayout_blueprint(session)
        assert a.position == Position(0, 0)
        assert b.position == Position(COLUMN_SPACING, 0)
        assert g.position == Position(2 * COLUMN_SPACING, 0)
        assert layout.tiers == {0: 0, 1: 1}

    def test_one_undo_step(self):
        session = BlueprintSession()
        a = session.add_node("a", (999, 999))
        b = session.add_node("b", (999, 999))
        session.add_edge(a.id, b.id)
        relayout_blueprint(session)
        session.undo()
        assert all(n.position == Position(999, 999) for n in session.blueprint.nodes)

    def test_cycle_moves_nothing(self):
        session = BlueprintSession()
        a = session.add_node("a", (7, 7))
        b = session.add_node("b", (8, 8))
        session.add_edge(a.id, b.id)
        session.add_edge(b.id, a.id)
        with pytest.raises(CyclicGraphError):
            relayout_blueprint(session)
        assert a.position == Position(7, 7)
        assert b.position == Position(8, 8)

    def test_already_laid_out_records_no_history(self):
        session = BlueprintSession(history_size=10)
        session.add_node("a", (0, 0))
        depth = len(session._undo_stack)
        relayout_blueprint(session)
        assert len(session._undo_stack) == depth
