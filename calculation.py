# ! Fire-hose pressure calculator: calculation result types
# * Per-node pressures, per-path summaries and the structured error list

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from constants import DEFAULT_MIN_PRESSURE_BAR, STATUS_GOOD_MARGIN_BAR


class PressureStatus(str, Enum):
    GOOD = "good"
    OK = "ok"
    LOW = "low"


class ErrorType(str, Enum):
    NO_PUMP = "no_pump"
    NO_PATH = "no_path"
    PRESSURE_LOW = "pressure_low"
    FLOW_EXCEEDED = "flow_exceeded"
    INVALID_CONNECTION = "invalid_connection"


@dataclass(frozen=True)
class NodeCalculation:
    """Calculated state of one node (pressure is clamped to >= 0)."""
    node_id: str
    pressure: float         # bar
    flow: float             # l/min
    pressure_loss: float    # bar lost arriving at this node
    elevation_loss: float   # bar, climbing component only
    friction_loss: float    # bar, hose friction or connector loss
    status: PressureStatus


@dataclass(frozen=True)
class PathCalculation:
    """One start-to-terminal route recorded by the traversal."""
    path_id: str
    node_ids: Tuple[str, ...]
    total_pressure_loss: float
    total_elevation_loss: float
    total_friction_loss: float
    terminal_pressure: float
    terminal_status: PressureStatus


@dataclass(frozen=True)
class CalculationError:
    type: ErrorType
    message: str
    node_ids: Tuple[str, ...] = ()


@dataclass
class CalculationResult:
    is_valid: bool
    errors: List[CalculationError] = field(default_factory=list)
    nodes: Dict[str, NodeCalculation] = field(default_factory=dict)
    paths: List[PathCalculation] = field(default_factory=list)

    def errors_of_type(self, error_type: ErrorType) -> List[CalculationError]:
        return [e for e in self.errors if e.type == error_type]


def get_pressure_status(
    pressure: float, min_required: float = DEFAULT_MIN_PRESSURE_BAR,
) -> PressureStatus:
    """
    good : pressure >= min_required + 2
    ok   : pressure >= min_required
    low  : otherwise
    """
    if pressure >= min_required + STATUS_GOOD_MARGIN_BAR:
        return PressureStatus.GOOD
    if pressure >= min_required:
        return PressureStatus.OK
    return PressureStatus.LOW
