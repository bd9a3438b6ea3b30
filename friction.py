# ! Fire-hose pressure calculator: hose friction loss
# * Hazen-Williams (exact form) and the coefficient-scaled approximation
# * The propagation engine only uses simplified_friction_loss().

import numpy as np

from constants import (
    HAZEN_WILLIAMS_C, HAZEN_WILLIAMS_K,
    HAZEN_WILLIAMS_Q_EXP, HAZEN_WILLIAMS_D_EXP,
    HOSE_SECTION_LENGTH_M, REFERENCE_FLOW_LPM,
    METERS_PER_BAR, TYPICAL_FLOW_RATES, DEFAULT_FLOW_RATE_LPM,
)


# ──────────────────────────────────────────────
# ? Hazen-Williams
# ──────────────────────────────────────────────
def friction_loss(
    flow_rate_lpm: float,
    diameter_mm: float,
    length_m: float = HOSE_SECTION_LENGTH_M,
    c: float = HAZEN_WILLIAMS_C,
) -> float:
    """
    ! Friction loss of a hose by the Hazen-Williams formula

    h_f = (10.67 × Q^1.852 × L) / (C^1.852 × D^4.87)

    * Q in m³/s, D in m, h_f in meters of head; ÷10 gives bar
    * Non-positive flow, diameter or length is a zero-loss section

    flow_rate_lpm : flow (l/min)
    diameter_mm   : internal diameter (mm)
    length_m      : hose length (m), default one 20 m section
    c             : roughness coefficient
    returns       : pressure loss (bar)
    """
    if flow_rate_lpm <= 0 or diameter_mm <= 0 or length_m <= 0:
        return 0.0

    Q_m3s = flow_rate_lpm / 60000.0  # l/min → m³/s
    D_m = diameter_mm / 1000.0

    head_m = (HAZEN_WILLIAMS_K * Q_m3s ** HAZEN_WILLIAMS_Q_EXP * length_m) / (
        c ** HAZEN_WILLIAMS_Q_EXP * D_m ** HAZEN_WILLIAMS_D_EXP
    )
    return head_m / METERS_PER_BAR


def friction_loss_per_section(flow_rate_lpm: float, diameter_mm: float) -> float:
    """Hazen-Williams loss of one standard 20 m section (bar)."""
    return friction_loss(flow_rate_lpm, diameter_mm, HOSE_SECTION_LENGTH_M)


def total_friction_loss(flow_rate_lpm: float, diameter_mm: float, section_count: int) -> float:
    """Hazen-Williams loss over ``section_count`` consecutive 20 m sections (bar)."""
    return friction_loss(flow_rate_lpm, diameter_mm, HOSE_SECTION_LENGTH_M * section_count)


# ──────────────────────────────────────────────
# ? Simplified quadratic scaling (used by the engine)
# ──────────────────────────────────────────────
def simplified_friction_loss(
    friction_coefficient: float,
    flow_rate_lpm: float,
    reference_flow_lpm: float = REFERENCE_FLOW_LPM,
) -> float:
    """
    ΔP = coefficient × (Q / Q_ref)²

    friction_coefficient : catalog loss (bar per section) at the reference flow
    flow_rate_lpm        : actual flow (l/min)
    reference_flow_lpm   : flow the coefficient is quoted at
    """
    if flow_rate_lpm <= 0 or friction_coefficient <= 0:
        return 0.0
    ratio = flow_rate_lpm / reference_flow_lpm
    return friction_coefficient * ratio ** 2


def friction_curve(
    friction_coefficient: float,
    flows_lpm,
    reference_flow_lpm: float = REFERENCE_FLOW_LPM,
) -> np.ndarray:
    """Vectorised simplified loss over an array of flows (bar per section)."""
    Q = np.asarray(flows_lpm, dtype=float)
    if friction_coefficient <= 0:
        return np.zeros_like(Q)
    loss = friction_coefficient * (Q / reference_flow_lpm) ** 2
    return np.where(Q > 0, loss, 0.0)


# ──────────────────────────────────────────────
# ? Typical terminal flow (network flow estimation)
# ──────────────────────────────────────────────
def typical_flow_rate(terminal_equipment_id: str) -> float:
    """cannon → 1000, wall → 300, anything else → 500 l/min"""
    return TYPICAL_FLOW_RATES.get(terminal_equipment_id, DEFAULT_FLOW_RATE_LPM)
