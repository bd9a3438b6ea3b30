# ! Fire-hose pressure calculator: pressure propagation engine
# * Depth-first walk from every source / standalone pump towards the terminals
# * Elevation + friction losses per node, pumps reset to their rated pressure
# * Problems are returned as CalculationError records, never raised

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from constants import DEFAULT_FLOW_RATE_LPM, NON_TERMINAL_MIN_PRESSURE_BAR
from calculation import (
    CalculationError, CalculationResult, ErrorType,
    NodeCalculation, PathCalculation, PressureStatus, get_pressure_status,
)
from elevation import elevation_loss, pressure_change
from equipment import (
    DEFAULT_CATALOG, EquipmentCatalog,
    SOURCE, PUMP, HOSE, CONNECTOR, TERMINAL,
)
from friction import simplified_friction_loss, typical_flow_rate
from layout import Layout, LayoutEdge, LayoutNode

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════
#  PART 1: Graph helpers
# ══════════════════════════════════════════════

def build_adjacency(edges: List[LayoutEdge]) -> Dict[str, List[LayoutEdge]]:
    """node id → outgoing edges, in edge-list order"""
    adjacency: Dict[str, List[LayoutEdge]] = {}
    for edge in edges:
        adjacency.setdefault(edge.source_id, []).append(edge)
    return adjacency


def find_start_nodes(layout: Layout, catalog: EquipmentCatalog = DEFAULT_CATALOG) -> List[LayoutNode]:
    """
    ! Traversal entry points, in layout order

    * every source node
    * every pump without an incoming edge (standalone pump)
    Pumps with an incoming edge are relay pumps, not start nodes.
    """
    has_incoming = {edge.target_id for edge in layout.edges}

    starts = []
    for node in layout.nodes:
        equipment = catalog.get_equipment_by_id(node.equipment_id)
        if equipment is None:
            continue
        if equipment.type == SOURCE:
            starts.append(node)
        elif equipment.type == PUMP and node.id not in has_incoming:
            starts.append(node)
    return starts


def estimate_flow_rate(layout: Layout, catalog: EquipmentCatalog = DEFAULT_CATALOG) -> float:
    """Sum of typical terminal flows; 500 l/min when the layout has no terminal."""
    total_flow = 0.0
    terminal_count = 0
    for node in layout.nodes:
        equipment = catalog.get_equipment_by_id(node.equipment_id)
        if equipment is not None and equipment.type == TERMINAL:
            total_flow += typical_flow_rate(equipment.id)
            terminal_count += 1

    if terminal_count == 0:
        return DEFAULT_FLOW_RATE_LPM
    return total_flow


def get_downstream_nodes(node_id: str, layout: Layout) -> List[LayoutNode]:
    node_map = layout.node_map()
    edges = build_adjacency(layout.edges).get(node_id, [])
    return [node_map[e.target_id] for e in edges if e.target_id in node_map]


def get_upstream_nodes(node_id: str, layout: Layout) -> List[LayoutNode]:
    node_map = layout.node_map()
    return [
        node_map[e.source_id]
        for e in layout.edges
        if e.target_id == node_id and e.source_id in node_map
    ]


# ══════════════════════════════════════════════
#  PART 2: Per-node loss
# ══════════════════════════════════════════════

def _node_losses(
    equipment, from_elevation: float, to_elevation: float, flow_rate: float,
) -> Tuple[float, float, float]:
    """
    Losses on arriving at a hose, connector or terminal node.

    returns (net elevation drop [signed, bar], elevation loss [>= 0], friction loss)
    """
    elevation_drop = -pressure_change(from_elevation, to_elevation)
    climb_loss = elevation_loss(from_elevation, to_elevation)

    if equipment.type == HOSE:
        friction = simplified_friction_loss(equipment.friction_coefficient, flow_rate)
    elif equipment.type == CONNECTOR:
        friction = equipment.pressure_loss
    else:
        # * terminals add no friction term of their own
        friction = 0.0

    return elevation_drop, climb_loss, friction


# ══════════════════════════════════════════════
#  PART 3: Traversal session (local to one calculate_layout call)
# ══════════════════════════════════════════════

class _TraversalSession:
    """
    ! Visited set + accumulated results of one calculation pass

    * The visited set is shared by all start nodes: the first traversal to
      reach a node owns its result, later ones stop there.
    * Explicit stack instead of recursion; children are pushed in reverse
      edge order so they are visited in edge-list order.
    """

    def __init__(self, layout: Layout, catalog: EquipmentCatalog, flow_rate: float):
        self.layout = layout
        self.catalog = catalog
        self.flow_rate = flow_rate
        self.node_map = layout.node_map()
        self.adjacency = build_adjacency(layout.edges)
        self.visited = set()
        self.nodes: Dict[str, NodeCalculation] = {}
        self.paths: List[PathCalculation] = []
        self.errors: List[CalculationError] = []
        self.start_pressure = 0.0

    def add_error(self, error_type: ErrorType, message: str, node_ids: Tuple[str, ...] = ()):
        logger.info("%s: %s %s", error_type.value, message, list(node_ids))
        self.errors.append(CalculationError(type=error_type, message=message, node_ids=node_ids))

    def _children(self, node: LayoutNode, pressure: float, path: Tuple[str, ...]) -> list:
        items = []
        for edge in self.adjacency.get(node.id, []):
            target = self.node_map.get(edge.target_id)
            if target is not None:
                items.append((target, pressure, node.elevation, path))
        items.reverse()
        return items

    def run_from(self, start: LayoutNode) -> None:
        if start.id in self.visited:
            logger.debug("Start node %s already reached, skipped", start.id)
            return
        self.visited.add(start.id)

        equipment = self.catalog.get_equipment_by_id(start.equipment_id)
        start_pressure = equipment.max_pressure if equipment.type == PUMP else 0.0
        self.start_pressure = start_pressure

        self.nodes[start.id] = NodeCalculation(
            node_id=start.id,
            pressure=start_pressure,
            flow=self.flow_rate,
            pressure_loss=0.0,
            elevation_loss=0.0,
            friction_loss=0.0,
            status=PressureStatus.GOOD if start_pressure > 0 else PressureStatus.OK,
        )

        stack = self._children(start, start_pressure, (start.id,))
        while stack:
            node, incoming, previous_elevation, path = stack.pop()
            stack.extend(self._visit(node, incoming, previous_elevation, path))

    def _visit(
        self,
        node: LayoutNode,
        incoming_pressure: float,
        previous_elevation: float,
        path: Tuple[str, ...],
    ) -> list:
        if node.id in self.visited:
            return []
        self.visited.add(node.id)

        equipment = self.catalog.get_equipment_by_id(node.equipment_id)
        if equipment is None:
            self.add_error(
                ErrorType.INVALID_CONNECTION,
                f"Unknown equipment: {node.equipment_id}",
                (node.id,),
            )
            return []

        pressure = incoming_pressure
        climb_loss = 0.0
        friction = 0.0
        net_loss = 0.0

        if equipment.type == PUMP:
            # * relay pump: always restores its rated pressure
            pressure = equipment.max_pressure
        elif equipment.type != SOURCE:
            elevation_drop, climb_loss, friction = _node_losses(
                equipment, previous_elevation, node.elevation, self.flow_rate,
            )
            net_loss = elevation_drop + friction
            pressure = incoming_pressure - net_loss

        if equipment.type == TERMINAL:
            status = get_pressure_status(pressure, equipment.min_pressure)
            if status == PressureStatus.LOW:
                self.add_error(
                    ErrorType.PRESSURE_LOW,
                    f"Insufficient pressure at terminal: {pressure:.1f} bar "
                    f"(requires {equipment.min_pressure:g} bar)",
                    (node.id,),
                )
        else:
            status = get_pressure_status(pressure, NON_TERMINAL_MIN_PRESSURE_BAR)

        self.nodes[node.id] = NodeCalculation(
            node_id=node.id,
            pressure=max(0.0, pressure),
            flow=self.flow_rate,
            pressure_loss=max(0.0, net_loss),
            elevation_loss=climb_loss,
            friction_loss=friction,
            status=status,
        )

        path = path + (node.id,)
        if equipment.type == TERMINAL:
            self._record_path(path, pressure, status)
            return []

        return self._children(node, pressure, path)

    def _record_path(self, path: Tuple[str, ...], terminal_pressure: float, status: PressureStatus):
        # * pressure total is the net drop from the start node; the other totals
        #   re-read the stored per-node components
        stored = [self.nodes[i] for i in path if i in self.nodes]
        self.paths.append(PathCalculation(
            path_id=str(uuid.uuid4()),
            node_ids=path,
            total_pressure_loss=self.start_pressure - terminal_pressure,
            total_elevation_loss=sum(c.elevation_loss for c in stored),
            total_friction_loss=sum(c.friction_loss for c in stored),
            terminal_pressure=terminal_pressure,
            terminal_status=status,
        ))

    def check_flow_limits(self) -> None:
        """flow_exceeded for every reached pump rated below the network flow"""
        for node in self.layout.nodes:
            if node.id not in self.nodes:
                continue
            equipment = self.catalog.get_equipment_by_id(node.equipment_id)
            if equipment is not None and equipment.type == PUMP and self.flow_rate > equipment.max_flow:
                self.add_error(
                    ErrorType.FLOW_EXCEEDED,
                    f"Flow {self.flow_rate:.0f} l/min exceeds pump capacity "
                    f"{equipment.max_flow:.0f} l/min",
                    (node.id,),
                )

    def mark_disconnected(self) -> None:
        """Default entry for every unreached node; no_path for unreached terminals."""
        for node in self.layout.nodes:
            if node.id in self.nodes:
                continue
            self.nodes[node.id] = NodeCalculation(
                node_id=node.id,
                pressure=0.0,
                flow=0.0,
                pressure_loss=0.0,
                elevation_loss=0.0,
                friction_loss=0.0,
                status=PressureStatus.LOW,
            )
            equipment = self.catalog.get_equipment_by_id(node.equipment_id)
            if equipment is not None and equipment.type == TERMINAL:
                self.add_error(
                    ErrorType.NO_PATH,
                    "Terminal is not connected to a pump",
                    (node.id,),
                )


# ══════════════════════════════════════════════
#  PART 4: Entry point
# ══════════════════════════════════════════════

def calculate_layout(
    layout: Layout,
    flow_rate_lpm: Optional[float] = None,
    catalog: Optional[EquipmentCatalog] = None,
    check_flow_limits: bool = False,
) -> CalculationResult:
    """
    ! Pressure at every node of a layout

    Algorithm:
    1. adjacency list from the edges
    2. start nodes = sources + standalone pumps (no_pump if none and no pump at all)
    3. network flow = flow_rate_lpm, or the sum of typical terminal flows
    4. depth-first traversal from each start node, in layout order
    5. optional pump capacity check (check_flow_limits)
    6. unreached nodes → zero-pressure 'low' entry, no_path for terminals

    layout            : layout snapshot, never mutated
    flow_rate_lpm     : network flow used for every friction term (l/min)
    catalog           : equipment lookup, default catalog when None
    check_flow_limits : report flow_exceeded for reached pumps rated below the flow
    """
    if catalog is None:
        catalog = DEFAULT_CATALOG

    if not layout.nodes:
        return CalculationResult(is_valid=True)

    start_nodes = find_start_nodes(layout, catalog)
    flow_rate = flow_rate_lpm if flow_rate_lpm is not None else estimate_flow_rate(layout, catalog)
    logger.debug(
        "Layout %s: %d start node(s), flow %.1f l/min",
        layout.id, len(start_nodes), flow_rate,
    )

    session = _TraversalSession(layout, catalog, flow_rate)

    if not start_nodes:
        pumps = catalog.get_equipment_by_category(PUMP)
        pump_ids = {p.id for p in pumps}
        if not any(n.equipment_id in pump_ids for n in layout.nodes):
            session.add_error(ErrorType.NO_PUMP, "No pump found in the layout")

    for start in start_nodes:
        session.run_from(start)

    if check_flow_limits:
        session.check_flow_limits()

    session.mark_disconnected()

    return CalculationResult(
        is_valid=len(session.errors) == 0,
        errors=session.errors,
        nodes=session.nodes,
        paths=session.paths,
    )
