#!/usr/bin/env -S python3 -B -u
"""
View command handler for switching views and automatic layout.
"""

import argparse
from typing import Optional, List

from cmd2 import Cmd2ArgumentParser

from .base import BaseCommandHandler
from ...core.layout import DIRECTIONS
from ...core.models import ViewMode
from ...core.projection import Viewport


class ViewCommands(BaseCommandHandler):
    """Handler for view commands."""

    def get_subcommand_names(self) -> List[str]:
        return ['mode', 'layout', 'show']

    def create_parser(self) -> Cmd2ArgumentParser:
        """Create the argument parser for view commands."""
        parser = Cmd2ArgumentParser(prog='view', description='Switch views and lay out devices')
        subparsers = parser.add_subparsers(dest='subcommand', help='View subcommands')

        mode_parser = subparsers.add_parser('mode', help='Show or switch the active view')
        mode_parser.add_argument('mode', nargs='?', choices=[m.value for m in ViewMode],
                                 help='View to activate')
        mode_parser.add_argument('--viewport', nargs=3, type=float, metavar=('X', 'Y', 'ZOOM'),
                                 help='Camera state of the view being left')

        layout_parser = subparsers.add_parser('layout', help='Lay out the devices of the active view')
        layout_parser.add_argument('-d', '--direction', choices=DIRECTIONS,
                                   help='TB (top to bottom) or LR (left to right)')

        show_parser = subparsers.add_parser('show', help='Show devices and connections as drawn in the active view')
        show_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

        return parser

    def handle_parsed_command(self, args: argparse.Namespace) -> Optional[int]:
        """Handle parsed view command."""
        if args.subcommand == 'mode':
            return self._switch_mode(args)
        elif args.subcommand == 'layout':
            return self._layout(args)
        elif args.subcommand == 'show':
            return self._show(args)

        self.create_parser().print_help()
        return 1

    def _switch_mode(self, args: argparse.Namespace) -> int:
        if args.mode is None:
            self.shell.poutput(self.editor.view_mode.value)
            return 0

        viewport = Viewport(*args.viewport) if args.viewport else None
        restored = self.editor.switch_mode(args.mode, viewport)
        self.shell.update_prompt()
        self.success(f"Switched to the {args.mode} view")
        if restored is not None:
            self.info(f"Restored viewport x={restored.x:g} y={restored.y:g} zoom={restored.zoom:g}")
        return 0

    def _layout(self, args: argparse.Namespace) -> int:
        positions = self.editor.apply_layout(args.direction)
        self.success(f"Laid out {len(positions)} devices in the {self.editor.view_mode.value} view")
        return 0

    def _show(self, args: argparse.Namespace) -> int:
        nodes = self.editor.projected_nodes()
        edges = self.editor.projected_edges()

        if args.json:
            self.output_json({
                'viewMode': self.editor.view_mode.value,
                'nodes': [
                    {
                        'id': node.id,
                        'type': node.kind.value,
                        'label': node.data.label,
                        'ip': node.data.ip,
                        'position': node.position.to_dict(),
                    }
                    for node in nodes
                ],
                'edges': [edge.to_dict() for edge in edges],
            })
            return 0

        self.shell.poutput(f"View: {self.editor.view_mode.value}")
        for node in nodes:
            self.shell.poutput(
                f"  {node.id:<28} {node.data.label:<16} ({node.position.x:g}, {node.position.y:g}) {node.data.ip}"
            )
        for edge in edges:
            self.shell.poutput(f"  {edge.source} -> {edge.target}")
        return 0
