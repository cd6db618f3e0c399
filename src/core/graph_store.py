#!/usr/bin/env -S python3 -B -u
"""
Graph Store

Holds the canonical ordered set of device nodes and directed edges. The
store only guarantees structural consistency: an edge never references a
node that is not stored. Derived subnet fields are the propagation
engine's concern.

All mutations are synchronous and total. Unknown ids are no-ops.
"""

from dataclasses import replace
from typing import Dict, List, Optional, Iterable, Any

from .models import Node, Edge
from .structured_logging import get_logger


class GraphStore:
    """Canonical node/edge container."""

    def __init__(self, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()):
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[str, Edge] = {}
        self.logger = get_logger(__name__)
        self.replace_all(nodes, edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_nodes(self) -> List[Node]:
        """Get all nodes in insertion order."""
        return list(self._nodes.values())

    def get_edges(self) -> List[Edge]:
        """Get all edges in insertion order."""
        return list(self._edges.values())

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def incoming_edges(self, node_id: str) -> List[Edge]:
        """Get edges targeting a node, in insertion order."""
        return [edge for edge in self._edges.values() if edge.target == node_id]

    def apply_node_patch(self, node_id: str, partial_data: Dict[str, Any]) -> Optional[Node]:
        """
        Replace selected fields of a node's data record.

        Args:
            node_id: Node to patch
            partial_data: Data field names mapped to new values

        Returns:
            The patched node, or None if the id is unknown
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None

        known = node.data.field_names()
        changes = {}
        for key, value in partial_data.items():
            if key in known:
                changes[key] = value
            else:
                self.logger.debug("Ignoring unknown data field", node=node_id, field=key)

        if not changes:
            return node

        patched = replace(node, data=replace(node.data, **changes))
        self._nodes[node_id] = patched
        return patched

    def replace_node(self, node: Node) -> bool:
        """Store a new version of an existing node, keeping its position in order."""
        if node.id not in self._nodes:
            return False
        self._nodes[node.id] = node
        return True

    def replace_nodes(self, nodes: Iterable[Node]) -> None:
        """Store new versions of existing nodes (e.g. a recompute result)."""
        for node in nodes:
            self.replace_node(node)

    def add_node(self, node: Node) -> Node:
        """Add a node; an existing node with the same id is replaced in place."""
        if node.id in self._nodes:
            self.logger.warning(f"Replacing existing node {node.id}")
        self._nodes[node.id] = node
        return node

    def remove_node(self, node_id: str) -> bool:
        """Remove a node together with all edges incident to it."""
        if self._nodes.pop(node_id, None) is None:
            return False
        self.remove_incident_edges(node_id)
        return True

    def remove_incident_edges(self, node_id: str) -> int:
        """Remove every edge touching a node; returns the number removed."""
        incident = [
            edge_id for edge_id, edge in self._edges.items()
            if edge.source == node_id or edge.target == node_id
        ]
        for edge_id in incident:
            del self._edges[edge_id]
        return len(incident)

    def add_edge(self, edge: Edge) -> bool:
        """Add an edge if both endpoints exist."""
        if edge.source not in self._nodes or edge.target not in self._nodes:
            self.logger.debug("Refusing edge with missing endpoint", edge=edge.id)
            return False
        self._edges[edge.id] = edge
        return True

    def remove_edge(self, edge_id: str) -> bool:
        return self._edges.pop(edge_id, None) is not None

    def replace_all(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """Replace the whole graph, dropping edges with dangling endpoints."""
        self._nodes = {}
        self._edges = {}
        for node in nodes:
            self._nodes[node.id] = node
        for edge in edges:
            self.add_edge(edge)
