#!/usr/bin/env -S python3 -B -u
"""
Subnet Inheritance Propagation Engine

Derives every device's `ip` and `inherited_subnet` from the connectivity
graph. A device is a propagation root if nothing connects into it, or if
it is a modem, or a router in dial mode; roots use their own configured
subnet. Every other device takes the prefix of the device it was reached
from.

Traversal is breadth-first from each root in node order, following edges
in insertion order. One visited map, local to a single recompute call and
shared by all roots, guarantees each device is assigned at most once and
that cycles terminate. Devices never reached from a root that has a
subnet stay "not connected".
"""

from collections import deque
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .models import Node, Edge, format_ip
from .structured_logging import get_logger


logger = get_logger(__name__)


def _children_map(nodes: Sequence[Node], edges: Sequence[Edge]) -> Dict[str, List[str]]:
    """Map node id to its edge targets, ignoring dangling edges."""
    children: Dict[str, List[str]] = {node.id: [] for node in nodes}
    for edge in edges:
        if edge.source in children and edge.target in children:
            children[edge.source].append(edge.target)
    return children


def _targets(nodes: Sequence[Node], edges: Sequence[Edge]) -> set:
    node_ids = {node.id for node in nodes}
    return {
        edge.target for edge in edges
        if edge.source in node_ids and edge.target in node_ids
    }


def find_roots(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[Node]:
    """Return the propagation roots in node order."""
    has_parent = _targets(nodes, edges)
    return [node for node in nodes if node.is_root(node.id in has_parent)]


def _with_derived(node: Node, ip: str, inherited_subnet: Optional[str]) -> Node:
    if node.data.ip == ip and node.data.inherited_subnet == inherited_subnet:
        return node
    return replace(node, data=replace(node.data, ip=ip, inherited_subnet=inherited_subnet))


def recompute(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[Node]:
    """
    Recompute derived subnet fields for a whole graph.

    Pure function: the inputs are not modified and only `ip` and
    `inherited_subnet` differ between input and output nodes.

    Args:
        nodes: Nodes in canonical order
        edges: Directed edges in canonical order

    Returns:
        New node list in the same order
    """
    by_id = {node.id: node for node in nodes}
    children = _children_map(nodes, edges)
    roots = find_roots(nodes, edges)
    root_ids = {root.id for root in roots}

    visited: Dict[str, bool] = {}
    resolved: Dict[str, Node] = {}

    for root in roots:
        prefix = root.data.own_prefix
        visited[root.id] = True
        resolved[root.id] = _with_derived(root, format_ip(prefix, root.data.ip_suffix), None)
        if not prefix:
            continue

        queue = deque([root.id])
        while queue:
            current = queue.popleft()
            for child_id in children[current]:
                if visited.get(child_id) or child_id in root_ids:
                    continue
                visited[child_id] = True
                child = by_id[child_id]
                resolved[child_id] = _with_derived(
                    child,
                    format_ip(prefix, child.data.ip_suffix),
                    f"{prefix}.0/24"
                )
                queue.append(child_id)

    result = []
    unresolved = 0
    for node in nodes:
        if node.id in resolved:
            result.append(resolved[node.id])
        else:
            unresolved += 1
            result.append(_with_derived(node, "", None))

    logger.log_propagation(len(nodes) - unresolved, unresolved, roots=len(roots))
    return result


def subnet_parent_of(node_id: str, nodes: Sequence[Node], edges: Sequence[Edge]) -> Optional[Node]:
    """
    Get the direct upstream device of a node.

    The upstream device is the source of the first edge targeting the
    node. Dial-capable devices keep this parent for display and
    validation even though they do not inherit from it.
    """
    by_id = {node.id: node for node in nodes}
    for edge in edges:
        if edge.target == node_id and edge.source in by_id:
            return by_id[edge.source]
    return None


def parent_prefix(node_id: str, nodes: Sequence[Node], edges: Sequence[Edge]) -> Optional[str]:
    """Get the effective prefix of a node's direct upstream device."""
    parent = subnet_parent_of(node_id, nodes, edges)
    if parent is None:
        return None
    return parent.effective_prefix
