#!/usr/bin/env -S python3 -B -u
"""
Topology Editor - mutation pipeline for the home network graph.

Every public mutation is one synchronous transaction:

1. apply the raw change to the GraphStore
2. recompute derived subnet fields for the whole graph
3. publish the committed GraphSnapshot to the registered listeners

Derived fields are therefore never observable in a stale state. Edits are
validated before anything is applied; a rejected edit leaves the graph
unchanged. Unknown node or edge ids are no-ops.
"""

import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .config_loader import (
    load_hnet_config, get_subnet_choices, get_layout_config, get_node_defaults,
    DEFAULT_SUBNETS
)
from .document import GraphDocument, from_document, to_document
from .exceptions import (
    ValidationError, SubnetValidationError, DuplicateSubnetError,
    IpSuffixValidationError, FieldNotApplicableError, ViewModeError
)
from .graph_store import GraphStore
from .inventory import InventoryRow, inventory_rows
from .layout import layout_positions
from .models import (
    Node, Edge, DeviceKind, DeviceData, RouterData, TerminalData, RouterMode,
    TerminalSubtype, ViewMode, Position, DERIVED_FIELDS, PALETTE_LABELS,
    data_type_for, edge_id_for, subnet_prefix
)
from .projection import (
    ProjectedNode, Viewport, ViewportCache, hide_in_view, place_node,
    project_edges_for_view, project_for_view, record_drag, switch_mode
)
from .propagation import recompute, subnet_parent_of
from .structured_logging import get_logger


EDITABLE_FIELDS = frozenset({
    'label', 'model', 'area', 'mode', 'subnet', 'ip_suffix', 'device_subtype'
})

# Document-style field names accepted by edit_field
FIELD_ALIASES = {
    'ipSuffix': 'ip_suffix',
    'deviceSubtype': 'device_subtype',
    'inheritedSubnet': 'inherited_subnet',
}

LayoutFunction = Callable[[Sequence[Node], Sequence[Edge], str], Dict[str, Position]]


@dataclass(frozen=True)
class GraphSnapshot:
    """Committed graph state handed to listeners."""
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]
    view_mode: ViewMode


class TopologyEditor:
    """
    Transactional entry points for editing the device graph.

    The editor owns the canonical GraphStore and the active view mode.
    Listeners receive a GraphSnapshot after each committed transaction;
    persistence hooks in there, never inside the pipeline.
    """

    def __init__(
        self,
        subnet_choices: Optional[Sequence[str]] = None,
        view_mode: Union[ViewMode, str] = ViewMode.TOPOLOGY,
        node_defaults: Optional[Dict[str, Any]] = None,
        layout_config: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.time
    ):
        self.store = GraphStore()
        self.view_mode = ViewMode(view_mode)
        self.viewports = ViewportCache()
        self.subnet_choices = list(subnet_choices or DEFAULT_SUBNETS)
        self.node_defaults = node_defaults or get_node_defaults({})
        self.layout_config = layout_config or get_layout_config({})
        self.logger = get_logger(__name__)
        self._clock = clock
        self._listeners: List[Callable[[GraphSnapshot], None]] = []

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "TopologyEditor":
        """Create an editor from the loaded YAML configuration."""
        if config is None:
            config = load_hnet_config()
        return cls(
            subnet_choices=get_subnet_choices(config),
            view_mode=config.get('view_mode', ViewMode.TOPOLOGY.value),
            node_defaults=get_node_defaults(config),
            layout_config=get_layout_config(config)
        )

    # Listeners and snapshots

    def add_listener(self, listener: Callable[[GraphSnapshot], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[GraphSnapshot], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=tuple(self.store.get_nodes()),
            edges=tuple(self.store.get_edges()),
            view_mode=self.view_mode
        )

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.store.get_node(node_id)

    def projected_nodes(self) -> List[ProjectedNode]:
        """Nodes of the active view, positioned for it."""
        return project_for_view(self.store.get_nodes(), self.view_mode)

    def projected_edges(self) -> List[Edge]:
        """Edges drawn in the active view."""
        return project_edges_for_view(self.store.get_edges(), self.store.get_nodes(), self.view_mode)

    def _commit(self, operation: str, **details: Any) -> GraphSnapshot:
        with self.logger.timer(operation):
            nodes = recompute(self.store.get_nodes(), self.store.get_edges())
            self.store.replace_nodes(nodes)

        snapshot = self.snapshot()
        self.logger.log_mutation(
            operation,
            nodes=len(snapshot.nodes),
            edges=len(snapshot.edges),
            **details
        )
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    # Nodes

    def _new_node_id(self, kind: DeviceKind) -> str:
        base = f"{kind.value}-{int(self._clock() * 1000)}"
        node_id = base
        counter = 1
        while node_id in self.store:
            counter += 1
            node_id = f"{base}-{counter}"
        return node_id

    def _default_data(self, kind: DeviceKind, label: Optional[str]) -> DeviceData:
        data_type = data_type_for(kind)
        values: Dict[str, Any] = {
            'label': label if label is not None else PALETTE_LABELS[kind],
            'ip_suffix': self.node_defaults.get('ip_suffix', '1'),
        }
        if data_type is RouterData:
            values['mode'] = RouterMode(self.node_defaults.get('router_mode', 'dial'))
        elif data_type is TerminalData:
            values['device_subtype'] = TerminalSubtype(self.node_defaults.get('terminal_subtype', 'laptop'))
        return data_type(**values)

    def add_node(self, kind: Union[DeviceKind, str], position: Position = Position(),
                 label: Optional[str] = None, node_id: Optional[str] = None) -> Node:
        """
        Place a new device in the active view.

        Args:
            kind: Device kind
            position: Drop point, stored for both views
            label: Display name, defaults to the kind's palette label
            node_id: Explicit id, generated from kind and time if omitted

        Returns:
            The committed node

        Raises:
            ValidationError: If the kind is unknown or the id is already taken
        """
        try:
            kind = DeviceKind(kind)
        except ValueError:
            raise ValidationError(
                "kind", kind, f"be one of: {', '.join(k.value for k in DeviceKind)}"
            )
        if node_id is not None and node_id in self.store:
            raise ValidationError("id", node_id, "not be used by another device")

        node = place_node(
            node_id or self._new_node_id(kind),
            kind,
            self._default_data(kind, label),
            position,
            self.view_mode
        )
        self.store.add_node(node)
        self._commit('add_node', node=node.id, kind=kind.value)
        return self.store.get_node(node.id)

    def edit_field(self, node_id: str, field: str, value: Any) -> Optional[Node]:
        """
        Edit one field of a device's data.

        Args:
            node_id: Device to edit
            field: Field name (python or document style)
            value: New value

        Returns:
            The committed node, or None if the id is unknown

        Raises:
            ValidationError: If the edit is rejected; the device is unchanged
        """
        node = self.store.get_node(node_id)
        if node is None:
            return None

        field = FIELD_ALIASES.get(field, field)
        if field in DERIVED_FIELDS:
            raise FieldNotApplicableError(field, node.kind.value, "be edited through the connection graph")
        if field not in EDITABLE_FIELDS or field not in node.data.field_names():
            raise FieldNotApplicableError(field, node.kind.value)

        patch = self._validated_patch(node, field, value)
        self.store.apply_node_patch(node_id, patch)
        self._commit('edit_field', node=node_id, field=field)
        return self.store.get_node(node_id)

    def _validated_patch(self, node: Node, field: str, value: Any) -> Dict[str, Any]:
        if field == 'ip_suffix':
            return {'ip_suffix': self._validated_suffix(value)}

        if field == 'mode':
            try:
                mode = RouterMode(value)
            except ValueError:
                raise ValidationError("mode", value, "be dial or inherit")
            patch: Dict[str, Any] = {'mode': mode}
            # An inheriting router bridges its parent's subnet and owns none;
            # switching to dial keeps whatever subnet is configured.
            if mode == RouterMode.INHERIT:
                patch['subnet'] = ''
            return patch

        if field == 'subnet':
            return {'subnet': self._validated_subnet(node, value)}

        if field == 'device_subtype':
            try:
                return {'device_subtype': TerminalSubtype(value)}
            except ValueError:
                raise ValidationError(
                    "device_subtype", value,
                    f"be one of: {', '.join(s.value for s in TerminalSubtype)}"
                )

        return {field: '' if value is None else str(value)}

    @staticmethod
    def _validated_suffix(value: Any) -> str:
        suffix = '' if value is None else str(value).strip()
        if suffix == '':
            return suffix
        if not suffix.isdigit() or not 1 <= int(suffix) <= 254:
            raise IpSuffixValidationError(suffix)
        return str(int(suffix))

    def _validated_subnet(self, node: Node, value: Any) -> str:
        if not node.data.originates_subnet:
            raise FieldNotApplicableError(
                "subnet", node.kind.value, "be set only on modems and dial-mode routers"
            )

        subnet = '' if value is None else str(value).strip().split('/')[0]
        if subnet == '':
            return subnet
        if subnet not in self.subnet_choices:
            raise SubnetValidationError(subnet, self.subnet_choices)

        parent = subnet_parent_of(node.id, self.store.get_nodes(), self.store.get_edges())
        if parent is not None and parent.effective_prefix == subnet_prefix(subnet):
            self.logger.warning(
                f"Rejected subnet {subnet} for {node.id}: same as upstream {parent.id}"
            )
            raise DuplicateSubnetError(subnet, node.id, parent.id)
        return subnet

    def delete_node(self, node_id: str) -> bool:
        """
        Delete a device from the active view.

        In the topology view the device's edges are removed as well. The
        device is destroyed once it is visible in neither view.
        """
        node = self.store.get_node(node_id)
        if node is None:
            return False

        if self.view_mode == ViewMode.TOPOLOGY:
            self.store.remove_incident_edges(node_id)

        hidden = hide_in_view(node, self.view_mode)
        if hidden is None:
            self.store.remove_node(node_id)
        else:
            self.store.replace_node(hidden)

        self._commit('delete_node', node=node_id, purged=hidden is None)
        return True

    def reveal_node(self, node_id: str, position: Optional[Position] = None) -> Optional[Node]:
        """Show an existing device in the active view, optionally at a position."""
        node = self.store.get_node(node_id)
        if node is None:
            return None

        if self.view_mode == ViewMode.FLOORPLAN:
            node = replace(node, visible_in_floor_plan=True)
        else:
            node = replace(node, visible_in_topology=True)
        if position is not None:
            node = record_drag(node, position, self.view_mode)

        self.store.replace_node(node)
        self._commit('reveal_node', node=node_id, view=self.view_mode.value)
        return self.store.get_node(node_id)

    def move_node(self, node_id: str, position: Position) -> Optional[Node]:
        """Record a drag of a device in the active view."""
        node = self.store.get_node(node_id)
        if node is None or not node.is_visible_in(self.view_mode):
            return None

        self.store.replace_node(record_drag(node, position, self.view_mode))
        self._commit('move_node', node=node_id, view=self.view_mode.value)
        return self.store.get_node(node_id)

    # Edges

    def connect(self, source: str, target: str) -> Optional[Edge]:
        """
        Connect two devices (topology view only).

        Returns:
            The new edge, or None for unknown ids, self connections,
            devices hidden in the topology, or an existing connection

        Raises:
            ViewModeError: If the floor-plan view is active
        """
        if self.view_mode != ViewMode.TOPOLOGY:
            raise ViewModeError('connect', self.view_mode.value)

        source_node = self.store.get_node(source)
        target_node = self.store.get_node(target)
        if source_node is None or target_node is None or source == target:
            return None
        if not source_node.visible_in_topology or not target_node.visible_in_topology:
            return None
        if any(e.source == source and e.target == target for e in self.store.get_edges()):
            return None

        edge = Edge(id=edge_id_for(source, target), source=source, target=target)
        self.store.add_edge(edge)
        self._commit('connect', source=source, target=target)
        return edge

    def disconnect(self, edge_id: str) -> bool:
        """
        Remove a connection (topology view only).

        Raises:
            ViewModeError: If the floor-plan view is active
        """
        if self.view_mode != ViewMode.TOPOLOGY:
            raise ViewModeError('disconnect', self.view_mode.value)

        if not self.store.remove_edge(edge_id):
            return False
        self._commit('disconnect', edge=edge_id)
        return True

    delete_edge = disconnect

    # Views and layout

    def switch_mode(self, mode: Union[ViewMode, str],
                    viewport: Optional[Viewport] = None) -> Optional[Viewport]:
        """
        Change the active view.

        Args:
            mode: View mode to activate
            viewport: Current camera state of the outgoing view

        Returns:
            Camera state saved for the incoming view, if any
        """
        mode = ViewMode(mode)
        restored = switch_mode(self.view_mode, mode, viewport, self.viewports)
        self.logger.debug("Switched view", from_mode=self.view_mode.value, to_mode=mode.value)
        self.view_mode = mode
        return restored

    def apply_layout(self, direction: Optional[str] = None,
                     layout_fn: Optional[LayoutFunction] = None) -> Dict[str, Position]:
        """
        Lay out the devices of the active view automatically.

        Positions are written into the active view's slot only.

        Raises:
            LayoutError: If the direction is unknown
        """
        direction = direction or self.layout_config.get('direction', 'TB')
        if layout_fn is None:
            def layout_fn(nodes, edges, layout_direction):
                return layout_positions(nodes, edges, layout_direction, self.layout_config)

        visible = [node for node in self.store.get_nodes() if node.is_visible_in(self.view_mode)]
        visible_ids = {node.id for node in visible}
        edges = [
            edge for edge in self.store.get_edges()
            if edge.source in visible_ids and edge.target in visible_ids
        ]

        positions = layout_fn(visible, edges, direction)
        for node_id, position in positions.items():
            node = self.store.get_node(node_id)
            if node is not None:
                self.store.replace_node(record_drag(node, position, self.view_mode))

        self._commit('apply_layout', direction=direction, view=self.view_mode.value)
        return positions

    # Documents

    def load_document(self, document: Any) -> GraphDocument:
        """
        Replace the graph with a document (import or load).

        Args:
            document: Parsed JSON document, or an already decoded GraphDocument
        """
        decoded = document if isinstance(document, GraphDocument) else from_document(document)
        self.store.replace_all(decoded.nodes, decoded.edges)
        if decoded.viewport is not None:
            self.viewports.put(decoded.view_mode or self.view_mode, decoded.viewport)
        self._commit('load_document', nodes=len(decoded.nodes), edges=len(decoded.edges))
        return decoded

    def export_document(self, viewport: Optional[Viewport] = None) -> Dict[str, Any]:
        """Build the graph document for the active view."""
        if viewport is None:
            viewport = self.viewports.get(self.view_mode)
        return to_document(self.store.get_nodes(), self.store.get_edges(), viewport, self.view_mode)

    def inventory(self) -> List[InventoryRow]:
        """
        Inventory rows for every device.

        Raises:
            EmptyInventoryError: If there are no devices
        """
        return inventory_rows(self.store.get_nodes())

    def clear(self) -> None:
        """Remove every device and connection."""
        self.store.replace_all([], [])
        self.viewports.clear()
        self._commit('clear')
