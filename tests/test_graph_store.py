#!/usr/bin/env -S python3 -B -u
"""Unit tests for GraphStore.

Tests cover:
- Ordered node and edge access
- Data patches and unknown-field handling
- Structural consistency on node removal
- Unknown ids as no-ops
- Whole-graph replacement for import and load
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.graph_store import GraphStore
from src.core.models import Node, Edge, DeviceKind, DeviceData, RouterData, RouterMode, edge_id_for


def make_node(node_id, kind=DeviceKind.SWITCH, data=None):
    return Node(id=node_id, kind=kind, data=data or DeviceData(label=node_id))


def make_edge(source, target):
    return Edge(id=edge_id_for(source, target), source=source, target=target)


class TestGraphStore(unittest.TestCase):
    """Basic GraphStore behaviour."""

    def setUp(self):
        self.store = GraphStore(
            [make_node('a'), make_node('b'), make_node('c')],
            [make_edge('a', 'b'), make_edge('b', 'c')]
        )

    def test_insertion_order(self):
        self.assertEqual([n.id for n in self.store.get_nodes()], ['a', 'b', 'c'])
        self.assertEqual([e.id for e in self.store.get_edges()],
                         ['xy-edge__a-b', 'xy-edge__b-c'])
        self.assertEqual(len(self.store), 3)
        self.assertIn('b', self.store)

    def test_get_nodes_returns_copy(self):
        nodes = self.store.get_nodes()
        nodes.clear()

        self.assertEqual(len(self.store.get_nodes()), 3)

    def test_apply_node_patch(self):
        patched = self.store.apply_node_patch('b', {'label': 'Hall', 'area': 'hall'})

        self.assertEqual(patched.data.label, 'Hall')
        self.assertEqual(self.store.get_node('b').data.area, 'hall')
        # Order is kept
        self.assertEqual([n.id for n in self.store.get_nodes()], ['a', 'b', 'c'])

    def test_apply_node_patch_ignores_unknown_fields(self):
        before = self.store.get_node('a')
        patched = self.store.apply_node_patch('a', {'subnet': '192.168.1.0'})

        self.assertIs(patched, before)
        self.assertFalse(hasattr(patched.data, 'subnet'))

    def test_apply_node_patch_router_fields(self):
        self.store.add_node(make_node('r', DeviceKind.ROUTER, RouterData(label='r')))

        patched = self.store.apply_node_patch('r', {'mode': RouterMode.INHERIT})

        self.assertEqual(patched.data.mode, RouterMode.INHERIT)

    def test_unknown_ids_are_noops(self):
        self.assertIsNone(self.store.apply_node_patch('missing', {'label': 'x'}))
        self.assertFalse(self.store.remove_node('missing'))
        self.assertFalse(self.store.remove_edge('missing'))
        self.assertFalse(self.store.replace_node(make_node('missing')))
        self.assertEqual(len(self.store), 3)
        self.assertEqual(len(self.store.get_edges()), 2)

    def test_remove_node_removes_incident_edges(self):
        self.assertTrue(self.store.remove_node('b'))

        self.assertEqual([n.id for n in self.store.get_nodes()], ['a', 'c'])
        self.assertEqual(self.store.get_edges(), [])

    def test_remove_incident_edges_keeps_node(self):
        removed = self.store.remove_incident_edges('c')

        self.assertEqual(removed, 1)
        self.assertIn('c', self.store)
        self.assertEqual([e.id for e in self.store.get_edges()], ['xy-edge__a-b'])

    def test_add_edge_requires_endpoints(self):
        self.assertFalse(self.store.add_edge(make_edge('a', 'ghost')))
        self.assertTrue(self.store.add_edge(make_edge('c', 'a')))
        self.assertEqual(len(self.store.get_edges()), 3)

    def test_incoming_edges(self):
        self.store.add_edge(make_edge('a', 'c'))

        incoming = self.store.incoming_edges('c')

        self.assertEqual([e.source for e in incoming], ['b', 'a'])

    def test_add_node_replaces_duplicate_in_place(self):
        self.store.add_node(make_node('a', data=DeviceData(label='again')))

        self.assertEqual(len(self.store), 3)
        self.assertEqual(self.store.get_nodes()[0].data.label, 'again')

    def test_replace_all_drops_dangling_edges(self):
        self.store.replace_all(
            [make_node('x'), make_node('y')],
            [make_edge('x', 'y'), make_edge('y', 'z')]
        )

        self.assertEqual([n.id for n in self.store.get_nodes()], ['x', 'y'])
        self.assertEqual([e.id for e in self.store.get_edges()], ['xy-edge__x-y'])
        self.assertIsNone(self.store.get_node('a'))


if __name__ == '__main__':
    unittest.main()
