#!/usr/bin/env -S python3 -B -u
"""
Topology Document Codec

Converts between canonical nodes/edges and the persisted JSON graph
document:

    {"nodes": [...], "edges": [...], "viewport": {"x", "y", "zoom"}, "viewMode": "topology"}

Node entries are {"id", "type", "position", "data"} with camelCase data
keys. `position` is the projection for the exported view mode; the two
per-view positions and visibility flags live in `data`. Documents written
before the floor-plan view existed lack those keys and are loaded with both
positions set to `position` and the node visible in both views.

Loading never fails: malformed input degrades to an empty graph, and bad
entries are skipped with a warning.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import (
    Node, Edge, DeviceKind, RouterData, TerminalData,
    RouterMode, TerminalSubtype, ViewMode, Position, data_type_for
)
from .projection import Viewport
from .structured_logging import get_logger


logger = get_logger(__name__)

# python field name -> document key
_DATA_KEYS = {
    'label': 'label',
    'model': 'model',
    'area': 'area',
    'ip_suffix': 'ipSuffix',
    'ip': 'ip',
    'inherited_subnet': 'inheritedSubnet',
    'subnet': 'subnet',
    'mode': 'mode',
    'device_subtype': 'deviceSubtype',
}


@dataclass
class GraphDocument:
    """Decoded graph document."""
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    viewport: Optional[Viewport] = None
    view_mode: Optional[ViewMode] = None


def node_to_dict(node: Node, mode: ViewMode = ViewMode.TOPOLOGY) -> Dict[str, Any]:
    """Convert Node to its document representation."""
    data: Dict[str, Any] = {}
    for name, key in _DATA_KEYS.items():
        if not hasattr(node.data, name):
            continue
        value = getattr(node.data, name)
        if value is None:
            continue
        data[key] = value.value if hasattr(value, 'value') else value

    data.update({
        'topologyPosition': node.topology_position.to_dict(),
        'floorPlanPosition': node.floor_plan_position.to_dict(),
        'visibleInTopology': node.visible_in_topology,
        'visibleInFloorPlan': node.visible_in_floor_plan,
    })

    return {
        'id': node.id,
        'type': node.kind.value,
        'position': node.position_for(mode).to_dict(),
        'data': data,
    }


def node_from_dict(entry: Dict[str, Any]) -> Node:
    """
    Create Node from its document representation.

    Raises:
        KeyError, ValueError, TypeError: If the entry is malformed
    """
    kind = DeviceKind(entry['type'])
    raw = entry.get('data') or {}
    if not isinstance(raw, dict):
        raise TypeError("node data must be an object")

    data_type = data_type_for(kind)
    values: Dict[str, Any] = {}
    for name, key in _DATA_KEYS.items():
        if name in data_type.field_names() and raw.get(key) is not None:
            values[name] = raw[key]

    for text_field in ('label', 'model', 'area', 'ip_suffix', 'ip', 'subnet'):
        if text_field in values:
            values[text_field] = str(values[text_field])

    if data_type is RouterData and 'mode' in values:
        values['mode'] = RouterMode(values['mode'])
    if data_type is TerminalData:
        # Older documents stored the terminal subtype under "type"
        subtype = raw.get('deviceSubtype', raw.get('type'))
        if subtype:
            values['device_subtype'] = TerminalSubtype(subtype)

    position = Position.from_dict(entry.get('position'))
    return Node(
        id=str(entry['id']),
        kind=kind,
        data=data_type(**values),
        topology_position=Position.from_dict(raw['topologyPosition']) if 'topologyPosition' in raw else position,
        floor_plan_position=Position.from_dict(raw['floorPlanPosition']) if 'floorPlanPosition' in raw else position,
        visible_in_topology=bool(raw.get('visibleInTopology', True)),
        visible_in_floor_plan=bool(raw.get('visibleInFloorPlan', True)),
    )


def to_document(nodes: Sequence[Node], edges: Sequence[Edge],
                viewport: Optional[Viewport] = None,
                mode: ViewMode = ViewMode.TOPOLOGY) -> Dict[str, Any]:
    """Build the JSON-serializable graph document."""
    document: Dict[str, Any] = {
        'nodes': [node_to_dict(node, mode) for node in nodes],
        'edges': [edge.to_dict() for edge in edges],
        'viewMode': mode.value,
    }
    if viewport is not None:
        document['viewport'] = viewport.to_dict()
    return document


def from_document(document: Any) -> GraphDocument:
    """
    Decode a graph document.

    Args:
        document: Parsed JSON value

    Returns:
        GraphDocument; empty if the document is not an object with
        `nodes` and `edges` lists
    """
    if not isinstance(document, dict):
        logger.warning("Topology document is not an object, loading empty graph")
        return GraphDocument()

    raw_nodes = document.get('nodes')
    raw_edges = document.get('edges')
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        logger.warning("Topology document lacks nodes/edges lists, loading empty graph")
        return GraphDocument()

    nodes, skipped_nodes = _decode_entries(raw_nodes, node_from_dict)
    edges, skipped_edges = _decode_entries(raw_edges, Edge.from_dict)

    # Invisible in both views means deleted
    nodes = [node for node in nodes if node.visible_in_topology or node.visible_in_floor_plan]
    if skipped_nodes or skipped_edges:
        logger.warning(
            "Skipped malformed document entries",
            nodes=skipped_nodes,
            edges=skipped_edges
        )

    view_mode = None
    if document.get('viewMode') in (ViewMode.TOPOLOGY.value, ViewMode.FLOORPLAN.value):
        view_mode = ViewMode(document['viewMode'])

    return GraphDocument(
        nodes=nodes,
        edges=edges,
        viewport=Viewport.from_dict(document.get('viewport')),
        view_mode=view_mode
    )


def _decode_entries(entries: List[Any], decoder) -> Tuple[list, int]:
    decoded = []
    skipped = 0
    for entry in entries:
        try:
            decoded.append(decoder(entry))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            skipped += 1
            logger.debug("Skipping document entry", error=str(e))
    return decoded, skipped


def parse_document(text: str) -> GraphDocument:
    """Parse document text; invalid JSON yields an empty graph."""
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Topology document is not valid JSON, loading empty graph: {e}")
        return GraphDocument()
    return from_document(document)


def dump_document(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)
