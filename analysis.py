# ! Fire-hose pressure calculator: result tables, path profiles, critical flow
# * pandas tables for the dashboard / CSV export
# * scipy brentq search for the highest flow every terminal can still take

from typing import Optional

import pandas as pd
from scipy.optimize import brentq

from constants import (
    CRITICAL_FLOW_MIN_LPM, CRITICAL_FLOW_MAX_LPM, CRITICAL_FLOW_XTOL_LPM,
)
from calculation import CalculationResult, PathCalculation
from equipment import DEFAULT_CATALOG, EquipmentCatalog, TERMINAL
from layout import Layout
from pressure import calculate_layout


# ──────────────────────────────────────────────
# ? Result tables
# ──────────────────────────────────────────────

def nodes_dataframe(
    result: CalculationResult,
    layout: Layout,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
) -> pd.DataFrame:
    """One row per layout node, in layout order."""
    rows = []
    for node in layout.nodes:
        calc = result.nodes.get(node.id)
        if calc is None:
            continue
        equipment = catalog.get_equipment_by_id(node.equipment_id)
        rows.append({
            "node_id": node.id,
            "equipment_id": node.equipment_id,
            "category": equipment.type if equipment is not None else "unknown",
            "elevation_m": node.elevation,
            "pressure_bar": round(calc.pressure, 3),
            "flow_lpm": round(calc.flow, 1),
            "pressure_loss_bar": round(calc.pressure_loss, 3),
            "elevation_loss_bar": round(calc.elevation_loss, 3),
            "friction_loss_bar": round(calc.friction_loss, 3),
            "status": calc.status.value,
        })
    return pd.DataFrame(rows, columns=[
        "node_id", "equipment_id", "category", "elevation_m",
        "pressure_bar", "flow_lpm", "pressure_loss_bar",
        "elevation_loss_bar", "friction_loss_bar", "status",
    ])


def paths_dataframe(result: CalculationResult) -> pd.DataFrame:
    rows = [
        {
            "terminal_id": p.node_ids[-1],
            "length": len(p.node_ids),
            "route": " → ".join(p.node_ids),
            "total_pressure_loss_bar": round(p.total_pressure_loss, 3),
            "total_elevation_loss_bar": round(p.total_elevation_loss, 3),
            "total_friction_loss_bar": round(p.total_friction_loss, 3),
            "terminal_pressure_bar": round(p.terminal_pressure, 3),
            "terminal_status": p.terminal_status.value,
        }
        for p in result.paths
    ]
    return pd.DataFrame(rows, columns=[
        "terminal_id", "length", "route",
        "total_pressure_loss_bar", "total_elevation_loss_bar",
        "total_friction_loss_bar", "terminal_pressure_bar", "terminal_status",
    ])


def errors_dataframe(result: CalculationResult) -> pd.DataFrame:
    rows = [
        {"type": e.type.value, "message": e.message, "node_ids": ", ".join(e.node_ids)}
        for e in result.errors
    ]
    return pd.DataFrame(rows, columns=["type", "message", "node_ids"])


def path_profile(result: CalculationResult, path: PathCalculation, layout: Layout) -> dict:
    """
    Pressure and elevation series along one recorded path (for charts).

    * node pressures are the stored (clamped) values
    """
    node_map = layout.node_map()
    pressures = []
    elevations = []
    cumulative_loss = []
    running = 0.0
    for node_id in path.node_ids:
        calc = result.nodes[node_id]
        running += calc.pressure_loss
        pressures.append(calc.pressure)
        elevations.append(node_map[node_id].elevation if node_id in node_map else 0.0)
        cumulative_loss.append(running)

    return {
        "positions": list(range(len(path.node_ids))),
        "node_ids": list(path.node_ids),
        "pressures_bar": pressures,
        "elevations_m": elevations,
        "cumulative_loss_bar": cumulative_loss,
        "terminal_pressure_bar": path.terminal_pressure,
    }


# ──────────────────────────────────────────────
# ? Critical flow (highest network flow meeting every terminal minimum)
# ──────────────────────────────────────────────

def _terminal_margin(
    layout: Layout, catalog: EquipmentCatalog, flow_lpm: float,
) -> Optional[float]:
    """min(terminal pressure - terminal min pressure) over the reached terminals"""
    result = calculate_layout(layout, flow_rate_lpm=flow_lpm, catalog=catalog)
    node_map = layout.node_map()
    margins = []
    for path in result.paths:
        equipment = catalog.get_equipment_by_id(node_map[path.node_ids[-1]].equipment_id)
        if equipment is not None and equipment.type == TERMINAL:
            margins.append(path.terminal_pressure - equipment.min_pressure)
    if not margins:
        return None
    return min(margins)


def find_critical_flow(
    layout: Layout,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
    q_low: float = CRITICAL_FLOW_MIN_LPM,
    q_high: float = CRITICAL_FLOW_MAX_LPM,
) -> Optional[dict]:
    """
    ! Network flow at which the weakest reached terminal sits exactly at its minimum

    * residual(Q) = min over terminals of (terminal pressure - min pressure)
    * None when no terminal is reached or the bracket has no sign change
    """
    r_low = _terminal_margin(layout, catalog, q_low)
    if r_low is None:
        return None

    def residual(Q):
        return _terminal_margin(layout, catalog, Q)

    try:
        r_high = residual(q_high)

        if r_low * r_high > 0:
            return None

        Q_crit = brentq(residual, q_low, q_high, xtol=CRITICAL_FLOW_XTOL_LPM)
    except (ValueError, RuntimeError):
        return None

    return {
        "flow_lpm": round(Q_crit, 1),
        "margin_at_low_bar": round(r_low, 3),
        "margin_at_high_bar": round(r_high, 3),
    }
