#!/usr/bin/env -S python3 -B -u
"""
Link command handler for connecting and disconnecting devices.
"""

import argparse
from typing import Optional, List

from cmd2 import Cmd2ArgumentParser

from .base import BaseCommandHandler


class LinkCommands(BaseCommandHandler):
    """Handler for link commands."""

    def get_subcommand_names(self) -> List[str]:
        return ['add', 'remove', 'list']

    def create_parser(self) -> Cmd2ArgumentParser:
        """Create the argument parser for link commands."""
        parser = Cmd2ArgumentParser(prog='link', description='Connect devices in the topology view')
        subparsers = parser.add_subparsers(dest='subcommand', help='Link subcommands')

        add_parser = subparsers.add_parser('add', help='Connect an upstream device to a downstream device')
        add_parser.add_argument('source', help='Upstream device id or unique label')
        add_parser.add_argument('target', help='Downstream device id or unique label')

        remove_parser = subparsers.add_parser('remove', help='Remove a connection')
        remove_parser.add_argument('ends', nargs='+', metavar='EDGE',
                                   help='Edge id, or upstream and downstream device')

        list_parser = subparsers.add_parser('list', help='List connections')
        list_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

        return parser

    def handle_parsed_command(self, args: argparse.Namespace) -> Optional[int]:
        """Handle parsed link command."""
        if args.subcommand == 'add':
            return self._add_link(args)
        elif args.subcommand == 'remove':
            return self._remove_link(args)
        elif args.subcommand == 'list':
            return self._list_links(args)

        self.create_parser().print_help()
        return 1

    def _add_link(self, args: argparse.Namespace) -> int:
        source = self.resolve_node(args.source)
        target = self.resolve_node(args.target)
        edge = self.editor.connect(source, target)
        if edge is None:
            self.warning(f"Nothing connected: {args.source} -> {args.target}")
            return 1

        node = self.editor.get_node(target)
        self.success(f"Connected {source} -> {target} ({edge.id}), address {node.data.ip or 'unassigned'}")
        return 0

    def _remove_link(self, args: argparse.Namespace) -> int:
        if len(args.ends) > 2:
            self.error("Give an edge id, or an upstream and a downstream device")
            return 1

        if len(args.ends) == 2:
            source = self.resolve_node(args.ends[0])
            target = self.resolve_node(args.ends[1])
            edge_ids = [
                edge.id for edge in self.editor.store.get_edges()
                if edge.source == source and edge.target == target
            ]
        else:
            edge_ids = [args.ends[0]]

        removed = [edge_id for edge_id in edge_ids if self.editor.disconnect(edge_id)]
        if not removed:
            self.warning(f"Connection not found: {' '.join(args.ends)}")
            return 2
        self.success(f"Removed {', '.join(removed)}")
        return 0

    def _list_links(self, args: argparse.Namespace) -> int:
        edges = self.editor.store.get_edges()
        if args.json:
            self.output_json([edge.to_dict() for edge in edges])
            return 0

        if not edges:
            self.info("No connections")
            return 0

        for edge in edges:
            self.shell.poutput(f"{edge.id:<48} {edge.source} -> {edge.target}")
        return 0
