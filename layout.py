# ! Fire-hose pressure calculator: layout graph model
# * Nodes (placed equipment) + directed edges (hose couplings)
# * Mutation helpers return a new Layout; the engine never mutates one.

import json
import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from constants import (
    DEFAULT_SOURCE_POSITION, DEFAULT_TERMINAL_POSITION,
    DEFAULT_SOURCE_ELEVATION_M, DEFAULT_TERMINAL_ELEVATION_M,
)
from equipment import DEFAULT_CATALOG, EquipmentCatalog

logger = logging.getLogger(__name__)


class LayoutFormatError(ValueError):
    """Raised when a persisted layout document does not have the expected shape."""
    pass


# ══════════════════════════════════════════════
#  PART 1: Data structures
# ══════════════════════════════════════════════

@dataclass
class Position:
    """Canvas position; opaque to the engine."""
    x: float = 0.0
    y: float = 0.0


@dataclass
class LayoutNode:
    id: str
    equipment_id: str
    position: Position = field(default_factory=Position)
    elevation: float = 0.0   # meters above sea level (moh), may be negative


@dataclass
class LayoutEdge:
    """
    Directed coupling from ``source_id`` to ``target_id``.

    * Handles only say which connector port is used; every outgoing edge of
      a node carries the same pressure downstream.
    """
    id: str
    source_id: str
    target_id: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


@dataclass
class Layout:
    id: str
    nodes: List[LayoutNode] = field(default_factory=list)
    edges: List[LayoutEdge] = field(default_factory=list)
    name: Optional[str] = None
    created_at: int = 0      # unix ms
    updated_at: int = 0      # unix ms

    def node_map(self) -> dict:
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[LayoutNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


def _now_ms() -> int:
    return int(time.time() * 1000)


# ══════════════════════════════════════════════
#  PART 2: Construction
# ══════════════════════════════════════════════

def create_empty_layout(layout_id: Optional[str] = None, name: Optional[str] = None) -> Layout:
    now = _now_ms()
    return Layout(
        id=layout_id if layout_id is not None else str(uuid.uuid4()),
        name=name,
        created_at=now,
        updated_at=now,
    )


def create_node(equipment, position: Position, elevation: float = 0.0) -> LayoutNode:
    return LayoutNode(
        id=str(uuid.uuid4()),
        equipment_id=equipment.id,
        position=position,
        elevation=elevation,
    )


def create_edge(
    source_id: str,
    target_id: str,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> LayoutEdge:
    return LayoutEdge(
        id=str(uuid.uuid4()),
        source_id=source_id,
        target_id=target_id,
        source_handle=source_handle,
        target_handle=target_handle,
    )


def create_initial_layout(catalog: EquipmentCatalog = DEFAULT_CATALOG) -> Layout:
    """
    ! Starting canvas: a source at 0 moh and a water cannon at 100 moh

    * Either node is left out if its equipment is missing from the catalog.
    """
    layout = create_empty_layout()

    source = catalog.get_equipment_by_id("source")
    if source is not None:
        layout.nodes.append(create_node(
            source, Position(*DEFAULT_SOURCE_POSITION), DEFAULT_SOURCE_ELEVATION_M,
        ))

    cannon = catalog.get_equipment_by_id("terminal-cannon")
    if cannon is not None:
        layout.nodes.append(create_node(
            cannon, Position(*DEFAULT_TERMINAL_POSITION), DEFAULT_TERMINAL_ELEVATION_M,
        ))

    return layout


# ══════════════════════════════════════════════
#  PART 3: Mutation (returns a new Layout)
# ══════════════════════════════════════════════

def add_node(
    layout: Layout, equipment, position: Position, elevation: float = 0.0,
) -> Tuple[Layout, LayoutNode]:
    node = create_node(equipment, position, elevation)
    return replace(layout, nodes=layout.nodes + [node], updated_at=_now_ms()), node


def remove_node(layout: Layout, node_id: str) -> Layout:
    """Remove a node together with every edge touching it."""
    return replace(
        layout,
        nodes=[n for n in layout.nodes if n.id != node_id],
        edges=[
            e for e in layout.edges
            if e.source_id != node_id and e.target_id != node_id
        ],
        updated_at=_now_ms(),
    )


def update_node(
    layout: Layout,
    node_id: str,
    position: Optional[Position] = None,
    elevation: Optional[float] = None,
) -> Layout:
    """Only position and elevation of a placed node can change."""
    nodes = []
    for n in layout.nodes:
        if n.id == node_id:
            n = replace(
                n,
                position=position if position is not None else n.position,
                elevation=elevation if elevation is not None else n.elevation,
            )
        nodes.append(n)
    return replace(layout, nodes=nodes, updated_at=_now_ms())


def add_edge(
    layout: Layout,
    source_id: str,
    target_id: str,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> Tuple[Layout, Optional[LayoutEdge]]:
    """
    ! Connect two placed nodes

    * A second edge with the same source → target is refused.
    * Both endpoints must exist.
    Refusal returns the layout unchanged and ``None`` for the edge.
    """
    if any(e.source_id == source_id and e.target_id == target_id for e in layout.edges):
        return layout, None

    node_ids = {n.id for n in layout.nodes}
    if source_id not in node_ids or target_id not in node_ids:
        return layout, None

    edge = create_edge(source_id, target_id, source_handle, target_handle)
    return replace(layout, edges=layout.edges + [edge], updated_at=_now_ms()), edge


def remove_edge(layout: Layout, edge_id: str) -> Layout:
    return replace(
        layout,
        edges=[e for e in layout.edges if e.id != edge_id],
        updated_at=_now_ms(),
    )


# ══════════════════════════════════════════════
#  PART 4: JSON persistence (editor document format, camelCase keys)
# ══════════════════════════════════════════════

def layout_to_dict(layout: Layout) -> dict:
    nodes = [
        {
            "id": n.id,
            "equipmentId": n.equipment_id,
            "position": {"x": n.position.x, "y": n.position.y},
            "elevation": n.elevation,
        }
        for n in layout.nodes
    ]
    edges = []
    for e in layout.edges:
        record = {"id": e.id, "sourceId": e.source_id, "targetId": e.target_id}
        if e.source_handle is not None:
            record["sourceHandle"] = e.source_handle
        if e.target_handle is not None:
            record["targetHandle"] = e.target_handle
        edges.append(record)

    data = {"id": layout.id}
    if layout.name is not None:
        data["name"] = layout.name
    data.update({
        "nodes": nodes,
        "edges": edges,
        "createdAt": layout.created_at,
        "updatedAt": layout.updated_at,
    })
    return data


def layout_to_json(layout: Layout) -> str:
    return json.dumps(layout_to_dict(layout), indent=2, ensure_ascii=False)


def _node_from_dict(record) -> LayoutNode:
    if not isinstance(record, dict) or "id" not in record or "equipmentId" not in record:
        raise LayoutFormatError(f"Node record needs 'id' and 'equipmentId': {record!r}")
    pos = record.get("position") or {}
    try:
        return LayoutNode(
            id=str(record["id"]),
            equipment_id=str(record["equipmentId"]),
            position=Position(float(pos.get("x", 0.0)), float(pos.get("y", 0.0))),
            elevation=float(record.get("elevation", 0.0)),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise LayoutFormatError(f"Invalid node record {record.get('id')!r}: {e}") from e


def _edge_from_dict(record) -> LayoutEdge:
    if not isinstance(record, dict) or not all(k in record for k in ("id", "sourceId", "targetId")):
        raise LayoutFormatError(f"Edge record needs 'id', 'sourceId' and 'targetId': {record!r}")
    return LayoutEdge(
        id=str(record["id"]),
        source_id=str(record["sourceId"]),
        target_id=str(record["targetId"]),
        source_handle=record.get("sourceHandle"),
        target_handle=record.get("targetHandle"),
    )


def layout_from_dict(data) -> Layout:
    """
    ! Basic shape validation: id present, nodes and edges are lists

    * Edges pointing at unknown nodes are kept; the engine filters them.
    """
    if not isinstance(data, dict):
        raise LayoutFormatError("Layout document must be a JSON object")
    if not data.get("id"):
        raise LayoutFormatError("Layout document has no 'id'")
    if not isinstance(data.get("nodes"), list) or not isinstance(data.get("edges"), list):
        raise LayoutFormatError("Layout 'nodes' and 'edges' must be lists")

    try:
        created_at = int(data.get("createdAt") or 0)
        updated_at = int(data.get("updatedAt") or 0)
    except (TypeError, ValueError) as e:
        raise LayoutFormatError(f"Invalid layout timestamp: {e}") from e

    return Layout(
        id=str(data["id"]),
        name=data.get("name"),
        nodes=[_node_from_dict(r) for r in data["nodes"]],
        edges=[_edge_from_dict(r) for r in data["edges"]],
        created_at=created_at,
        updated_at=updated_at,
    )


def layout_from_json(text: str) -> Layout:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Rejected layout document: %s", e)
        raise LayoutFormatError(f"Layout is not valid JSON: {e}") from e
    try:
        return layout_from_dict(data)
    except LayoutFormatError as e:
        logger.warning("Rejected layout document: %s", e)
        raise
