# ! Fire-hose pressure calculator: equipment catalog
# * One frozen dataclass per category; each carries only its own physical fields.

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from constants import EQUIPMENT_DATA

SOURCE = "source"
PUMP = "pump"
HOSE = "hose"
CONNECTOR = "connector"
TERMINAL = "terminal"

CATEGORIES = (SOURCE, PUMP, HOSE, CONNECTOR, TERMINAL)


# ──────────────────────────────────────────────
# ? Equipment variants
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class SourceEquipment:
    """Water source (hydrant, open water). Carries no pressure by itself."""
    id: str
    name_key: str
    desc_key: str
    type: str = SOURCE


@dataclass(frozen=True)
class PumpEquipment:
    """Pump; resets pressure to its rated maximum wherever it sits."""
    id: str
    name_key: str
    desc_key: str
    max_pressure: float   # bar
    max_flow: float       # l/min
    type: str = PUMP


@dataclass(frozen=True)
class HoseEquipment:
    """
    A 20 m hose section.

    friction_coefficient : bar lost per section at the reference flow (500 l/min)
    """
    id: str
    name_key: str
    desc_key: str
    diameter: float               # mm (internal)
    diameter_label: str
    length: float                 # m
    friction_coefficient: float
    type: str = HOSE


@dataclass(frozen=True)
class ConnectorEquipment:
    id: str
    name_key: str
    desc_key: str
    inputs: int
    outputs: int
    pressure_loss: float  # fixed loss in bar
    type: str = CONNECTOR


@dataclass(frozen=True)
class TerminalEquipment:
    """Network endpoint (water cannon, fire wall) with an operating window."""
    id: str
    name_key: str
    desc_key: str
    min_pressure: float   # bar
    max_pressure: float   # bar
    min_flow: float       # l/min
    max_flow: float       # l/min
    type: str = TERMINAL


Equipment = Union[
    SourceEquipment, PumpEquipment, HoseEquipment,
    ConnectorEquipment, TerminalEquipment,
]

_VARIANTS = {
    SOURCE: SourceEquipment,
    PUMP: PumpEquipment,
    HOSE: HoseEquipment,
    CONNECTOR: ConnectorEquipment,
    TERMINAL: TerminalEquipment,
}


def equipment_from_dict(data: dict) -> Equipment:
    """Build the matching variant from a catalog record (``type`` selects it)."""
    fields = dict(data)
    category = fields.pop("type", None)
    if category not in _VARIANTS:
        raise ValueError(f"Unknown equipment category: {category!r}")
    return _VARIANTS[category](**fields)


# ──────────────────────────────────────────────
# ? Read-only catalog
# ──────────────────────────────────────────────

class EquipmentCatalog:
    """
    ! Immutable set of equipment definitions keyed by id

    * Duplicate ids are rejected at construction.
    * Lookups never raise; a missing id returns None.
    """

    def __init__(self, equipment: Iterable[Equipment]):
        items = tuple(equipment)
        by_id: Dict[str, Equipment] = {}
        for item in items:
            if item.id in by_id:
                raise ValueError(f"Duplicate equipment id in catalog: {item.id}")
            by_id[item.id] = item
        self._items = items
        self._by_id = by_id

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, equipment_id: str) -> bool:
        return equipment_id in self._by_id

    def get_equipment_by_id(self, equipment_id: str) -> Optional[Equipment]:
        return self._by_id.get(equipment_id)

    def get_equipment_by_category(self, category: str) -> List[Equipment]:
        return [e for e in self._items if e.type == category]

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "EquipmentCatalog":
        return cls(equipment_from_dict(r) for r in records)


DEFAULT_CATALOG = EquipmentCatalog.from_records(EQUIPMENT_DATA)


def get_equipment_by_id(equipment_id: str) -> Optional[Equipment]:
    """Lookup in the default catalog."""
    return DEFAULT_CATALOG.get_equipment_by_id(equipment_id)


def get_equipment_by_category(category: str) -> List[Equipment]:
    return DEFAULT_CATALOG.get_equipment_by_category(category)
