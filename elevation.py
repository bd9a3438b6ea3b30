# ! Fire-hose pressure calculator: elevation pressure change
# * 1 bar per 10 m of height difference (simplified hydrostatic constant)

from constants import METERS_PER_BAR


# ──────────────────────────────────────────────
# ? Signed pressure change between two elevations
# ──────────────────────────────────────────────
def pressure_change(from_elevation: float, to_elevation: float) -> float:
    """
    ΔP = -(z_to - z_from) / 10

    from_elevation : starting elevation (moh)
    to_elevation   : ending elevation (moh)
    returns        : bar, negative going uphill (loss), positive going downhill (gain)
    """
    return -(to_elevation - from_elevation) / METERS_PER_BAR


# ──────────────────────────────────────────────
# ? Loss component only (never negative)
# ──────────────────────────────────────────────
def elevation_loss(from_elevation: float, to_elevation: float) -> float:
    """Pressure lost climbing from one elevation to another (bar, >= 0)."""
    return max(0.0, -pressure_change(from_elevation, to_elevation))


def max_reachable_elevation(available_pressure: float, current_elevation: float) -> float:
    """Highest elevation (moh) the available pressure (bar) can lift water to."""
    return current_elevation + available_pressure * METERS_PER_BAR


def required_pressure_for_elevation(from_elevation: float, to_elevation: float) -> float:
    """Pressure (bar) needed to reach the target; negative when going down."""
    return (to_elevation - from_elevation) / METERS_PER_BAR
