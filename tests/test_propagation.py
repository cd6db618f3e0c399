#!/usr/bin/env -S python3 -B -u
"""
Test Suite for Subnet Inheritance Propagation

Covers:
- Root detection (no parent, modem, dial-mode router)
- Inheritance down chains of bridging devices
- Dial routers opening a new subnet under a parent
- Shared downstream devices reached from two roots
- Cycles without a root terminating unresolved
- Idempotency and purity of recompute
"""

import unittest
import sys
import os
from dataclasses import replace

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.models import (
    Node, Edge, DeviceKind, DeviceData, ModemData, RouterData, TerminalData,
    RouterMode, NOT_CONNECTED, edge_id_for
)
from src.core.propagation import recompute, find_roots, subnet_parent_of, parent_prefix


def modem(node_id, subnet='', suffix='1'):
    return Node(id=node_id, kind=DeviceKind.MODEM, data=ModemData(label=node_id, subnet=subnet, ip_suffix=suffix))


def router(node_id, mode=RouterMode.DIAL, subnet='', suffix='1'):
    return Node(id=node_id, kind=DeviceKind.ROUTER,
                data=RouterData(label=node_id, mode=mode, subnet=subnet, ip_suffix=suffix))


def switch(node_id, suffix='1'):
    return Node(id=node_id, kind=DeviceKind.SWITCH, data=DeviceData(label=node_id, ip_suffix=suffix))


def terminal(node_id, suffix='1'):
    return Node(id=node_id, kind=DeviceKind.TERMINAL, data=TerminalData(label=node_id, ip_suffix=suffix))


def link(source, target):
    return Edge(id=edge_id_for(source, target), source=source, target=target)


def by_id(nodes):
    return {node.id: node for node in nodes}


class TestRootDetection(unittest.TestCase):
    """Test which nodes are propagation roots."""

    def test_node_without_parent_is_root(self):
        nodes = [switch('s1'), terminal('t1')]
        edges = [link('s1', 't1')]

        self.assertEqual([n.id for n in find_roots(nodes, edges)], ['s1'])

    def test_modem_is_root_with_parent(self):
        nodes = [switch('s1'), modem('m1', '192.168.1.0')]
        edges = [link('s1', 'm1')]

        self.assertEqual([n.id for n in find_roots(nodes, edges)], ['s1', 'm1'])

    def test_dial_router_is_root_with_parent(self):
        nodes = [modem('m1', '192.168.1.0'), router('r1', RouterMode.DIAL, '192.168.31.0')]
        edges = [link('m1', 'r1')]

        self.assertEqual([n.id for n in find_roots(nodes, edges)], ['m1', 'r1'])

    def test_inherit_router_with_parent_is_not_root(self):
        nodes = [modem('m1', '192.168.1.0'), router('r1', RouterMode.INHERIT)]
        edges = [link('m1', 'r1')]

        self.assertEqual([n.id for n in find_roots(nodes, edges)], ['m1'])

    def test_dangling_edges_are_ignored(self):
        nodes = [switch('s1')]
        edges = [link('ghost', 's1')]

        self.assertEqual([n.id for n in find_roots(nodes, edges)], ['s1'])


class TestRecompute(unittest.TestCase):
    """Test derived ip and inherited subnet values."""

    def test_modem_dial_router_chain(self):
        """Modem -> dial router -> switch -> device uses the router's subnet."""
        nodes = [
            modem('modem', '192.168.1.0'),
            router('a', RouterMode.DIAL, '192.168.31.0'),
            switch('b'),
            terminal('c', suffix='5'),
        ]
        edges = [link('modem', 'a'), link('a', 'b'), link('b', 'c')]

        result = by_id(recompute(nodes, edges))

        self.assertEqual(result['modem'].data.ip, '192.168.1.1')
        self.assertEqual(result['a'].data.ip, '192.168.31.1')
        self.assertIsNone(result['a'].data.inherited_subnet)
        self.assertEqual(result['b'].data.inherited_subnet, '192.168.31.0/24')
        self.assertEqual(result['b'].data.ip, '192.168.31.1')
        self.assertEqual(result['c'].data.inherited_subnet, '192.168.31.0/24')
        self.assertEqual(result['c'].data.ip, '192.168.31.5')

    def test_inherit_router_bridges_parent_subnet(self):
        nodes = [modem('modem', '10.0.0.0'), router('a', RouterMode.INHERIT, suffix='2')]
        edges = [link('modem', 'a')]

        result = by_id(recompute(nodes, edges))

        self.assertEqual(result['a'].data.ip, '10.0.0.2')
        self.assertEqual(result['a'].data.inherited_subnet, '10.0.0.0/24')
        self.assertEqual(result['a'].effective_prefix, '10.0.0')

    def test_empty_suffix_keeps_trailing_dot(self):
        nodes = [modem('modem', '192.168.2.0'), switch('s', suffix='')]
        edges = [link('modem', 's')]

        result = by_id(recompute(nodes, edges))

        self.assertEqual(result['s'].data.ip, '192.168.2.')

    def test_root_without_subnet_leaves_descendants_unconnected(self):
        nodes = [modem('modem'), switch('s'), terminal('t')]
        edges = [link('modem', 's'), link('s', 't')]

        result = by_id(recompute(nodes, edges))

        self.assertEqual(result['modem'].data.ip, '')
        for node_id in ('s', 't'):
            self.assertEqual(result[node_id].data.ip, '')
            self.assertIsNone(result[node_id].data.inherited_subnet)
            self.assertEqual(result[node_id].inherited_subnet_display, NOT_CONNECTED)

    def test_isolated_device_is_not_connected(self):
        result = recompute([terminal('t', suffix='9')], [])

        self.assertEqual(result[0].data.ip, '')
        self.assertEqual(result[0].inherited_subnet_display, NOT_CONNECTED)

    def test_shared_downstream_switch_resolves_once(self):
        """Two root chains feeding one switch: the first traversal wins."""
        nodes = [
            modem('m1', '192.168.1.0'),
            modem('m2', '192.168.50.0'),
            switch('shared', suffix='7'),
            terminal('t', suffix='8'),
        ]
        edges = [link('m2', 'shared'), link('m1', 'shared'), link('shared', 't')]

        result = by_id(recompute(nodes, edges))

        # m1 comes first in node order
        self.assertEqual(result['shared'].data.inherited_subnet, '192.168.1.0/24')
        self.assertEqual(result['shared'].data.ip, '192.168.1.7')
        self.assertEqual(result['t'].data.ip, '192.168.1.8')

    def test_root_without_subnet_does_not_claim_shared_child(self):
        nodes = [modem('empty'), modem('m2', '192.168.0.0'), switch('shared')]
        edges = [link('empty', 'shared'), link('m2', 'shared')]

        result = by_id(recompute(nodes, edges))

        self.assertEqual(result['shared'].data.inherited_subnet, '192.168.0.0/24')

    def test_cycle_without_root_stays_unconnected(self):
        nodes = [switch('a'), switch('b'), switch('c')]
        edges = [link('a', 'b'), link('b', 'c'), link('c', 'a')]

        result = recompute(nodes, edges)

        self.assertEqual(len(result), 3)
        for node in result:
            self.assertEqual(node.data.ip, '')
            self.assertIsNone(node.data.inherited_subnet)

    def test_cycle_below_root_terminates(self):
        nodes = [modem('m', '192.168.31.0'), switch('a'), switch('b', suffix='3')]
        edges = [link('m', 'a'), link('a', 'b'), link('b', 'a')]

        result = by_id(recompute(nodes, edges))

        self.assertEqual(result['a'].data.ip, '192.168.31.1')
        self.assertEqual(result['b'].data.ip, '192.168.31.3')

    def test_dial_router_ignores_parent_subnet(self):
        nodes = [modem('m', '192.168.1.0'), router('r', RouterMode.DIAL, '', suffix='4'), switch('s')]
        edges = [link('m', 'r'), link('r', 's')]

        result = by_id(recompute(nodes, edges))

        # Dial router without its own subnet opens nothing
        self.assertEqual(result['r'].data.ip, '')
        self.assertIsNone(result['s'].data.inherited_subnet)

    def test_stale_derived_values_are_cleared(self):
        stale = replace(switch('s'), data=DeviceData(ip='10.0.0.1', inherited_subnet='10.0.0.0/24'))

        result = recompute([stale], [])

        self.assertEqual(result[0].data.ip, '')
        self.assertIsNone(result[0].data.inherited_subnet)


class TestRecomputeProperties(unittest.TestCase):
    """Test purity and idempotency."""

    def setUp(self):
        self.nodes = [
            modem('m', '192.168.1.0'),
            router('r', RouterMode.INHERIT, suffix='2'),
            router('d', RouterMode.DIAL, '192.168.50.0'),
            switch('s', suffix='10'),
            terminal('t', suffix='20'),
            switch('x'),
        ]
        self.edges = [link('m', 'r'), link('r', 'd'), link('d', 's'), link('s', 't'), link('t', 's')]

    def test_idempotent(self):
        once = recompute(self.nodes, self.edges)
        twice = recompute(once, self.edges)

        self.assertEqual(once, twice)

    def test_inputs_not_modified(self):
        before = list(self.nodes)
        recompute(self.nodes, self.edges)

        self.assertEqual(self.nodes, before)
        self.assertEqual(self.nodes[3].data.ip, '')

    def test_only_derived_fields_change(self):
        result = recompute(self.nodes, self.edges)

        self.assertEqual([n.id for n in result], [n.id for n in self.nodes])
        for before, after in zip(self.nodes, result):
            self.assertEqual(replace(after.data, ip='', inherited_subnet=None), before.data)
            self.assertEqual(after.topology_position, before.topology_position)
            self.assertEqual(after.kind, before.kind)

    def test_unchanged_nodes_are_reused(self):
        once = recompute(self.nodes, self.edges)
        twice = recompute(once, self.edges)

        for a, b in zip(once, twice):
            self.assertIs(a, b)

    def test_non_root_prefix_matches_parent(self):
        result = recompute(self.nodes, self.edges)
        nodes = by_id(result)

        for node in result:
            parent = subnet_parent_of(node.id, result, self.edges)
            if parent is None or node.data.originates_subnet:
                continue
            if node.data.inherited_subnet:
                self.assertEqual(node.effective_prefix, parent.effective_prefix)
        self.assertEqual(nodes['t'].data.ip, '192.168.50.20')


class TestParentLookup(unittest.TestCase):
    """Test direct upstream device lookup."""

    def test_first_incoming_edge_is_parent(self):
        nodes = [modem('m1', '192.168.1.0'), modem('m2', '192.168.2.0'), switch('s')]
        edges = [link('m2', 's'), link('m1', 's')]

        self.assertEqual(subnet_parent_of('s', nodes, edges).id, 'm2')
        self.assertEqual(parent_prefix('s', nodes, edges), '192.168.2')

    def test_no_parent(self):
        nodes = [modem('m1', '192.168.1.0')]

        self.assertIsNone(subnet_parent_of('m1', nodes, []))
        self.assertIsNone(parent_prefix('m1', nodes, []))


if __name__ == '__main__':
    unittest.main()
