#!/usr/bin/env -S python3 -B -u
"""
Dual-View Projection Manager

Every node carries a position and a visibility flag for both the logical
topology view and the floor-plan view. The functions in this module pick
one of the two contexts for rendering, or update exactly one of them,
without ever touching the other.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .models import Node, Edge, DeviceKind, DeviceData, Position, ViewMode


@dataclass(frozen=True)
class ProjectedNode:
    """A node as seen in one view: a single position and the view mode."""
    id: str
    kind: DeviceKind
    data: DeviceData
    position: Position
    view_mode: ViewMode


@dataclass(frozen=True)
class Viewport:
    """Camera state of a view."""
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional["Viewport"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                x=float(data.get("x", 0)),
                y=float(data.get("y", 0)),
                zoom=float(data.get("zoom", 1))
            )
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}


class ViewportCache:
    """Viewport snapshots keyed by view mode."""

    def __init__(self):
        self._viewports: Dict[ViewMode, Viewport] = {}

    def get(self, mode: ViewMode) -> Optional[Viewport]:
        return self._viewports.get(mode)

    def put(self, mode: ViewMode, viewport: Viewport) -> None:
        self._viewports[mode] = viewport

    def clear(self) -> None:
        self._viewports.clear()


def project_for_view(nodes: Sequence[Node], mode: ViewMode) -> List[ProjectedNode]:
    """
    Project canonical nodes into one view.

    Args:
        nodes: Canonical nodes
        mode: View mode to project for

    Returns:
        Nodes visible in the view, each with that view's position
    """
    return [
        ProjectedNode(
            id=node.id,
            kind=node.kind,
            data=node.data,
            position=node.position_for(mode),
            view_mode=mode
        )
        for node in nodes
        if node.is_visible_in(mode)
    ]


def project_edges_for_view(edges: Sequence[Edge], nodes: Sequence[Node], mode: ViewMode) -> List[Edge]:
    """Edges drawn in a view: none in the floor plan, visible-to-visible in the topology."""
    if mode == ViewMode.FLOORPLAN:
        return []
    visible = {node.id for node in nodes if node.visible_in_topology}
    return [edge for edge in edges if edge.source in visible and edge.target in visible]


def place_node(node_id: str, kind: DeviceKind, data: DeviceData,
               position: Position, mode: ViewMode) -> Node:
    """Create a node dropped at a position in the given view only."""
    return Node(
        id=node_id,
        kind=kind,
        data=data,
        topology_position=position,
        floor_plan_position=position,
        visible_in_topology=(mode == ViewMode.TOPOLOGY),
        visible_in_floor_plan=(mode == ViewMode.FLOORPLAN)
    )


def record_drag(node: Node, position: Position, mode: ViewMode) -> Node:
    """Store a dragged position in the slot of the given view only."""
    if mode == ViewMode.FLOORPLAN:
        return replace(node, floor_plan_position=position)
    return replace(node, topology_position=position)


def hide_in_view(node: Node, mode: ViewMode) -> Optional[Node]:
    """
    Delete a node from one view.

    Returns:
        The updated node, or None once it is invisible in both views and
        must be purged from the store
    """
    if mode == ViewMode.FLOORPLAN:
        hidden = replace(node, visible_in_floor_plan=False)
    else:
        hidden = replace(node, visible_in_topology=False)

    if not hidden.visible_in_topology and not hidden.visible_in_floor_plan:
        return None
    return hidden


def switch_mode(from_mode: ViewMode, to_mode: ViewMode,
                current_viewport: Optional[Viewport],
                cache: ViewportCache) -> Optional[Viewport]:
    """
    Swap view-level state between modes.

    Snapshots the outgoing viewport and returns the one previously saved
    for the incoming mode (None if the view was never shown). Canonical
    graph state is not involved.
    """
    if current_viewport is not None:
        cache.put(from_mode, current_viewport)
    return cache.get(to_mode)
