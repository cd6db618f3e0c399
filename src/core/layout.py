#!/usr/bin/env -S python3 -B -u
"""
Layered automatic layout.

Places nodes in ranks following edge direction, top-to-bottom ("TB") or
left-to-right ("LR"). Cycles are collapsed into a single rank through the
strongly connected component condensation, so any graph can be laid out.
Positions are the top-left corners of fixed-size node boxes, matching
what the canvas expects.
"""

from typing import Dict, Sequence, Union

import networkx as nx

from .exceptions import LayoutError
from .models import Edge, Position


DIRECTIONS = ('TB', 'LR')


def layered_layout(
    nodes: Sequence,
    edges: Sequence[Edge],
    direction: str = 'TB',
    node_width: float = 200,
    node_height: float = 100,
    rank_sep: float = 50,
    node_sep: float = 50
) -> Dict[str, Position]:
    """
    Compute positions for a directed graph.

    Args:
        nodes: Objects with an `id` attribute, in display order
        edges: Directed edges; edges to unknown ids are ignored
        direction: "TB" or "LR"
        node_width: Box width of a node
        node_height: Box height of a node
        rank_sep: Gap between ranks
        node_sep: Gap between nodes of the same rank

    Returns:
        Dictionary mapping node id to its position

    Raises:
        LayoutError: If the direction is unknown
    """
    if direction not in DIRECTIONS:
        raise LayoutError(direction)

    order = {node.id: index for index, node in enumerate(nodes)}
    graph = nx.DiGraph()
    graph.add_nodes_from(order)
    for edge in edges:
        if edge.source in order and edge.target in order and edge.source != edge.target:
            graph.add_edge(edge.source, edge.target)

    if not order:
        return {}

    ranks = _rank_nodes(graph, order)

    horizontal = direction == 'LR'
    # Along-rank extent and cross-rank step depend on orientation
    breadth = node_height if horizontal else node_width
    depth = node_width if horizontal else node_height
    widest = max(len(members) for members in ranks)

    positions: Dict[str, Position] = {}
    for rank_index, members in enumerate(ranks):
        span = len(members) * breadth + (len(members) - 1) * node_sep
        full_span = widest * breadth + (widest - 1) * node_sep
        offset = (full_span - span) / 2
        main = rank_index * (depth + rank_sep)
        for slot, node_id in enumerate(members):
            cross = offset + slot * (breadth + node_sep)
            if horizontal:
                positions[node_id] = Position(x=main, y=cross)
            else:
                positions[node_id] = Position(x=cross, y=main)

    return positions


def _rank_nodes(graph: nx.DiGraph, order: Dict[str, int]) -> list:
    """Group node ids into ranks, each rank sorted by display order."""
    condensed = nx.condensation(graph)
    members = condensed.graph['mapping']

    # A generation holds the components whose predecessors are all ranked above
    component_rank: Dict[int, int] = {}
    for rank_index, generation in enumerate(nx.topological_generations(condensed)):
        for component in generation:
            component_rank[component] = rank_index

    ranks: Dict[int, list] = {}
    for node_id, component in members.items():
        ranks.setdefault(component_rank[component], []).append(node_id)

    return [sorted(ranks[index], key=order.__getitem__) for index in sorted(ranks)]


def layout_positions(
    nodes: Sequence,
    edges: Sequence[Edge],
    direction: str,
    layout_config: Union[Dict, None] = None
) -> Dict[str, Position]:
    """Run the layered layout with box and separation settings from configuration."""
    layout_config = layout_config or {}
    settings = {
        key: float(layout_config[key])
        for key in ('node_width', 'node_height', 'rank_sep', 'node_sep')
        if key in layout_config
    }
    return layered_layout(nodes, edges, direction, **settings)
