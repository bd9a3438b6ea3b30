# Pressure propagation engine tests - run with pytest
import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from calculation import ErrorType, PressureStatus, get_pressure_status
from equipment import (
    DEFAULT_CATALOG, EquipmentCatalog, PumpEquipment, TerminalEquipment,
    SourceEquipment,
)
from layout import Layout, LayoutNode, LayoutEdge
from pressure import (
    calculate_layout, build_adjacency, find_start_nodes, estimate_flow_rate,
    get_downstream_nodes, get_upstream_nodes,
)


def build(nodes, edges):
    """nodes: [(id, equipment_id, elevation)], edges: [(source, target)]"""
    return Layout(
        id="test",
        nodes=[LayoutNode(id=i, equipment_id=eq, elevation=z) for i, eq, z in nodes],
        edges=[LayoutEdge(id=f"{s}->{t}", source_id=s, target_id=t) for s, t in edges],
    )


def simple_chain(terminal_elevation=0.0):
    return build(
        [("src", "source", 0.0), ("pump", "pump-ziegler", 0.0),
         ("hose", "hose-1.5", 0.0), ("cannon", "terminal-cannon", terminal_elevation)],
        [("src", "pump"), ("pump", "hose"), ("hose", "cannon")],
    )


# ── status thresholds ──

def test_pressure_status_thresholds():
    assert get_pressure_status(8.0, 6) == PressureStatus.GOOD
    assert get_pressure_status(7.99, 6) == PressureStatus.OK
    assert get_pressure_status(6.0, 6) == PressureStatus.OK
    assert get_pressure_status(5.99, 6) == PressureStatus.LOW
    assert get_pressure_status(7.0) == PressureStatus.OK


# ── whole-layout properties ──

def test_empty_layout_is_valid():
    result = calculate_layout(Layout(id="empty"))
    assert result.is_valid
    assert result.errors == []
    assert result.nodes == {}
    assert result.paths == []


def test_no_pump_and_no_source():
    layout = build([("hose", "hose-2.5", 0.0), ("wall", "terminal-wall", 0.0)], [("hose", "wall")])
    result = calculate_layout(layout)
    assert not result.is_valid
    assert len(result.errors_of_type(ErrorType.NO_PUMP)) == 1
    assert result.nodes["wall"].status == PressureStatus.LOW


def test_single_chain_terminal_pressure():
    result = calculate_layout(simple_chain())

    assert result.is_valid
    assert result.errors == []
    assert result.nodes["src"].pressure == 0.0
    assert result.nodes["src"].status == PressureStatus.OK
    assert result.nodes["pump"].pressure == pytest.approx(10.0)
    assert result.nodes["hose"].friction_loss == pytest.approx(2.0)
    assert result.nodes["hose"].flow == pytest.approx(1000.0)

    cannon = result.nodes["cannon"]
    assert cannon.pressure == pytest.approx(8.0)
    assert cannon.friction_loss == 0.0
    assert cannon.status == PressureStatus.GOOD

    assert len(result.paths) == 1
    path = result.paths[0]
    assert path.node_ids == ("src", "pump", "hose", "cannon")
    assert path.total_friction_loss == pytest.approx(2.0)
    assert path.total_elevation_loss == pytest.approx(0.0)
    # source start carries 0 bar, net drop = start - terminal
    assert path.total_pressure_loss == pytest.approx(-8.0)
    assert path.terminal_pressure == pytest.approx(8.0)
    assert path.terminal_status == PressureStatus.GOOD


def test_terminal_above_pump_is_low():
    result = calculate_layout(simple_chain(terminal_elevation=50.0))

    cannon = result.nodes["cannon"]
    assert cannon.pressure == pytest.approx(3.0)
    assert cannon.elevation_loss == pytest.approx(5.0)
    assert cannon.status == PressureStatus.LOW

    low = result.errors_of_type(ErrorType.PRESSURE_LOW)
    assert len(low) == 1
    assert low[0].node_ids == ("cannon",)
    assert len(result.errors) == 1
    assert result.paths[0].total_elevation_loss == pytest.approx(5.0)


def test_disconnected_terminal_gets_no_path():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("hose", "hose-4", 0.0), ("wall", "terminal-wall", 0.0)],
        [("pump", "hose")],
    )
    result = calculate_layout(layout)

    wall = result.nodes["wall"]
    assert wall.pressure == 0.0
    assert wall.flow == 0.0
    assert wall.status == PressureStatus.LOW
    no_path = result.errors_of_type(ErrorType.NO_PATH)
    assert [e.node_ids for e in no_path] == [("wall",)]
    assert result.paths == []


def test_splitter_branches_start_from_same_pressure():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("split", "splitter-2", 0.0),
         ("hose_a", "hose-4", 0.0), ("cannon", "terminal-cannon", 0.0),
         ("hose_b", "hose-4", 10.0), ("wall", "terminal-wall", 10.0)],
        [("pump", "split"), ("split", "hose_a"), ("hose_a", "cannon"),
         ("split", "hose_b"), ("hose_b", "wall")],
    )
    result = calculate_layout(layout)
    # cannon 1000 + wall 300
    hose_loss = 0.02 * (1300 / 500) ** 2

    assert result.nodes["split"].pressure == pytest.approx(9.8)
    assert result.nodes["split"].friction_loss == pytest.approx(0.2)
    assert result.nodes["hose_a"].pressure == pytest.approx(9.8 - hose_loss)
    assert result.nodes["hose_b"].pressure == pytest.approx(9.8 - 1.0 - hose_loss)
    assert result.nodes["cannon"].pressure == pytest.approx(9.8 - hose_loss)
    assert result.nodes["wall"].pressure == pytest.approx(9.8 - 1.0 - hose_loss)
    assert [p.node_ids[-1] for p in result.paths] == ["cannon", "wall"]
    assert result.is_valid


def test_relay_pump_resets_pressure():
    layout = build(
        [("src", "source", 0.0), ("p1", "pump-ziegler", 0.0), ("h1", "hose-1.5", 0.0),
         ("relay", "pump-otter", 30.0), ("h2", "hose-1.5", 30.0),
         ("cannon", "terminal-cannon", 30.0)],
        [("src", "p1"), ("p1", "h1"), ("h1", "relay"), ("relay", "h2"), ("h2", "cannon")],
    )
    result = calculate_layout(layout)

    relay = result.nodes["relay"]
    assert relay.pressure == pytest.approx(10.0)
    assert relay.elevation_loss == 0.0
    assert relay.friction_loss == 0.0
    assert result.nodes["cannon"].pressure == pytest.approx(8.0)
    assert [n.id for n in find_start_nodes(layout)] == ["src"]
    assert result.paths[0].total_friction_loss == pytest.approx(4.0)


def test_path_total_with_relay_pump_is_net_drop_from_start():
    layout = build(
        [("p1", "pump-ziegler", 0.0), ("h1", "hose-1.5", 0.0),
         ("relay", "pump-otter", 30.0), ("h2", "hose-1.5", 30.0),
         ("cannon", "terminal-cannon", 30.0)],
        [("p1", "h1"), ("h1", "relay"), ("relay", "h2"), ("h2", "cannon")],
    )
    path = calculate_layout(layout).paths[0]

    assert path.terminal_pressure == pytest.approx(8.0)
    assert path.total_pressure_loss == pytest.approx(2.0)
    assert path.total_friction_loss == pytest.approx(4.0)
    assert path.total_elevation_loss == 0.0


def test_climb_then_descent_nets_out_in_path_total():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("up", "hose-4", 30.0),
         ("down", "hose-4", 0.0), ("wall", "terminal-wall", 0.0)],
        [("pump", "up"), ("up", "down"), ("down", "wall")],
    )
    result = calculate_layout(layout)
    friction = 0.02 * (300 / 500) ** 2
    path = result.paths[0]

    assert result.nodes["up"].pressure == pytest.approx(7.0 - friction)
    assert path.terminal_pressure == pytest.approx(10.0 - 2 * friction)
    assert path.total_pressure_loss == pytest.approx(10.0 - path.terminal_pressure)
    assert path.total_pressure_loss == pytest.approx(2 * friction)
    # climbing is still reported per node
    assert path.total_elevation_loss == pytest.approx(3.0)
    assert path.total_friction_loss == pytest.approx(2 * friction)



def test_downhill_gain_raises_pressure_but_is_not_a_loss():
    layout = build(
        [("pump", "pump-ziegler", 20.0), ("hose", "hose-4", 0.0), ("wall", "terminal-wall", 0.0)],
        [("pump", "hose"), ("hose", "wall")],
    )
    result = calculate_layout(layout)
    friction = 0.02 * (300 / 500) ** 2

    hose = result.nodes["hose"]
    assert hose.pressure == pytest.approx(12.0 - friction)
    assert hose.elevation_loss == 0.0
    assert hose.pressure_loss == 0.0
    assert hose.friction_loss == pytest.approx(friction)


def test_source_without_pump_carries_no_pressure():
    layout = build(
        [("src", "source", 0.0), ("hose", "hose-1.5", 0.0), ("cannon", "terminal-cannon", 0.0)],
        [("src", "hose"), ("hose", "cannon")],
    )
    result = calculate_layout(layout)

    assert result.errors_of_type(ErrorType.NO_PUMP) == []
    assert result.nodes["hose"].pressure == 0.0          # clamped from -2.0
    assert result.nodes["cannon"].status == PressureStatus.LOW
    assert len(result.errors_of_type(ErrorType.PRESSURE_LOW)) == 1
    assert result.paths[0].terminal_pressure == pytest.approx(-2.0)


def test_source_reached_mid_graph_passes_pressure_through():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("src", "source", 0.0),
         ("hose", "hose-1.5", 0.0), ("cannon", "terminal-cannon", 0.0)],
        [("pump", "src"), ("src", "hose"), ("hose", "cannon")],
    )
    result = calculate_layout(layout)

    assert result.nodes["src"].pressure == pytest.approx(10.0)
    assert result.nodes["src"].pressure_loss == 0.0
    assert result.nodes["cannon"].pressure == pytest.approx(8.0)
    assert len(result.paths) == 1
    assert result.paths[0].node_ids[0] == "pump"


def test_unknown_equipment_is_invalid_connection():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("x", "bogus-valve", 0.0), ("cannon", "terminal-cannon", 0.0)],
        [("pump", "x"), ("x", "cannon")],
    )
    result = calculate_layout(layout)

    assert [e.type for e in result.errors] == [ErrorType.INVALID_CONNECTION, ErrorType.NO_PATH]
    assert result.errors[0].node_ids == ("x",)
    assert result.nodes["x"].status == PressureStatus.LOW
    assert result.nodes["x"].pressure == 0.0
    assert result.nodes["cannon"].pressure == 0.0


def test_orphan_edges_are_ignored():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("hose", "hose-4", 0.0)],
        [("pump", "ghost"), ("ghost", "hose"), ("pump", "hose")],
    )
    result = calculate_layout(layout)
    assert result.is_valid
    assert set(result.nodes) == {"pump", "hose"}
    assert result.nodes["hose"].pressure == pytest.approx(9.98)


def test_cycle_terminates_with_one_entry_per_node():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("h1", "hose-4", 0.0), ("h2", "hose-4", 0.0)],
        [("pump", "h1"), ("h1", "h2"), ("h2", "h1")],
    )
    result = calculate_layout(layout)
    assert result.is_valid
    assert len(result.nodes) == 3
    assert result.nodes["h1"].pressure == pytest.approx(9.98)
    assert result.nodes["h2"].pressure == pytest.approx(9.96)


def test_first_start_node_wins_shared_node():
    layout = build(
        [("p1", "pump-ziegler", 0.0), ("h1", "hose-1.5", 0.0),
         ("cannon", "terminal-cannon", 0.0), ("p2", "pump-ziegler", 0.0)],
        [("p1", "h1"), ("h1", "cannon"), ("p2", "cannon")],
    )
    result = calculate_layout(layout)

    assert [n.id for n in find_start_nodes(layout)] == ["p1", "p2"]
    assert result.nodes["cannon"].pressure == pytest.approx(8.0)
    assert len(result.paths) == 1
    assert result.paths[0].node_ids == ("p1", "h1", "cannon")
    assert result.nodes["p2"].pressure == pytest.approx(10.0)


def test_paths_follow_edge_order_depth_first():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("split", "splitter-3", 0.0),
         ("w1", "terminal-wall", 0.0), ("w2", "terminal-wall", 0.0), ("w3", "terminal-wall", 0.0)],
        [("pump", "split"), ("split", "w3"), ("split", "w1"), ("split", "w2")],
    )
    result = calculate_layout(layout)
    assert [p.node_ids[-1] for p in result.paths] == ["w3", "w1", "w2"]
    assert all(p.terminal_pressure == pytest.approx(9.7) for p in result.paths)


def test_calculation_is_repeatable():
    layout = simple_chain(terminal_elevation=50.0)
    first = calculate_layout(layout)
    second = calculate_layout(layout)

    assert first.nodes == second.nodes
    assert first.errors == second.errors
    assert first.is_valid == second.is_valid
    strip = lambda r: [(p.node_ids, p.total_pressure_loss, p.total_elevation_loss,
                        p.total_friction_loss, p.terminal_pressure, p.terminal_status)
                       for p in r.paths]
    assert strip(first) == strip(second)


def test_layout_is_not_mutated():
    layout = simple_chain()
    before = repr(layout)
    calculate_layout(layout)
    assert repr(layout) == before


# ── flow ──

def test_flow_override():
    result = calculate_layout(simple_chain(), flow_rate_lpm=500.0)
    assert result.nodes["cannon"].pressure == pytest.approx(9.5)
    assert result.nodes["cannon"].flow == 500.0


def test_estimate_flow_rate():
    assert estimate_flow_rate(simple_chain()) == 1000.0
    no_terminal = build([("pump", "pump-ziegler", 0.0)], [])
    assert estimate_flow_rate(no_terminal) == 500.0


def test_flow_exceeded_is_opt_in():
    layout = build(
        [("src", "source", 0.0), ("pump", "pump-otter", 0.0),
         ("hose", "hose-2.5", 0.0), ("cannon", "terminal-cannon", 0.0)],
        [("src", "pump"), ("pump", "hose"), ("hose", "cannon")],
    )
    assert calculate_layout(layout).errors_of_type(ErrorType.FLOW_EXCEEDED) == []

    result = calculate_layout(layout, check_flow_limits=True)
    exceeded = result.errors_of_type(ErrorType.FLOW_EXCEEDED)
    assert [e.node_ids for e in exceeded] == [("pump",)]
    assert not result.is_valid

    # ziegler handles 3000 l/min
    ok = calculate_layout(simple_chain(), check_flow_limits=True)
    assert ok.is_valid


# ── catalog collaborator ──

def test_custom_catalog():
    catalog = EquipmentCatalog([
        SourceEquipment(id="source", name_key="s", desc_key="s"),
        PumpEquipment(id="big-pump", name_key="p", desc_key="p", max_pressure=16.0, max_flow=5000.0),
        TerminalEquipment(id="nozzle", name_key="t", desc_key="t",
                          min_pressure=5.0, max_pressure=12.0, min_flow=100.0, max_flow=900.0),
    ])
    layout = build(
        [("pump", "big-pump", 0.0), ("nozzle", "nozzle", 20.0)],
        [("pump", "nozzle")],
    )
    result = calculate_layout(layout, catalog=catalog)
    assert result.nodes["nozzle"].pressure == pytest.approx(14.0)
    assert result.nodes["nozzle"].status == PressureStatus.GOOD

    # the default catalog does not know these ids
    fallback = calculate_layout(layout)
    assert len(fallback.errors_of_type(ErrorType.NO_PUMP)) == 1


# ── graph helpers ──

def test_graph_helpers():
    layout = build(
        [("pump", "pump-ziegler", 0.0), ("split", "splitter-2", 0.0),
         ("a", "hose-4", 0.0), ("b", "hose-4", 0.0)],
        [("pump", "split"), ("split", "a"), ("split", "b"), ("split", "ghost")],
    )
    adjacency = build_adjacency(layout.edges)
    assert [e.target_id for e in adjacency["split"]] == ["a", "b", "ghost"]
    assert [n.id for n in get_downstream_nodes("split", layout)] == ["a", "b"]
    assert [n.id for n in get_upstream_nodes("a", layout)] == ["split"]
    assert get_upstream_nodes("pump", layout) == []
    assert DEFAULT_CATALOG.get_equipment_by_id("splitter-2").outputs == 2
