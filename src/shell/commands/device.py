#!/usr/bin/env -S python3 -B -u
"""
Device command handler for placing, editing and removing devices.
"""

import argparse
from typing import Optional, List

from cmd2 import Cmd2ArgumentParser

from .base import BaseCommandHandler
from ...core.document import node_to_dict
from ...core.models import DeviceKind, Position


# Short names accepted for device kinds
KIND_ALIASES = {
    'modem': DeviceKind.MODEM,
    'router': DeviceKind.ROUTER,
    'switch': DeviceKind.SWITCH,
    'wifi': DeviceKind.WIFI,
    'gateway': DeviceKind.GATEWAY,
    'smarthome': DeviceKind.SMART_HOME,
    'smart-home': DeviceKind.SMART_HOME,
    'camera': DeviceKind.CAMERA,
    'device': DeviceKind.TERMINAL,
    'terminal': DeviceKind.TERMINAL,
}


def parse_kind(value: str) -> DeviceKind:
    """argparse type for device kinds."""
    kind = KIND_ALIASES.get(value.lower())
    if kind is not None:
        return kind
    try:
        return DeviceKind(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"unknown device kind '{value}' (choose from {', '.join(sorted(KIND_ALIASES))})"
        )


class DeviceCommands(BaseCommandHandler):
    """Handler for device commands."""

    def get_subcommand_names(self) -> List[str]:
        return ['add', 'set', 'delete', 'move', 'place', 'list', 'show']

    def create_parser(self) -> Cmd2ArgumentParser:
        """Create the argument parser for device commands."""
        parser = Cmd2ArgumentParser(prog='device', description='Place, edit and remove devices')
        subparsers = parser.add_subparsers(dest='subcommand', help='Device subcommands')

        add_parser = subparsers.add_parser('add', help='Place a new device in the current view')
        add_parser.add_argument('kind', type=parse_kind,
                                help='Device kind: modem, router, switch, wifi, gateway, smarthome, camera, device')
        add_parser.add_argument('--label', help='Display name (defaults to the kind name)')
        add_parser.add_argument('--id', dest='node_id', help='Explicit device id')
        add_parser.add_argument('-x', type=float, default=0.0, help='Drop point x coordinate')
        add_parser.add_argument('-y', type=float, default=0.0, help='Drop point y coordinate')

        set_parser = subparsers.add_parser('set', help='Edit a device field')
        set_parser.add_argument('node', help='Device id or unique label')
        set_parser.add_argument('field',
                                help='label, model, area, mode, subnet, ip_suffix or device_subtype')
        set_parser.add_argument('value', nargs='?', default='',
                                help='New value (omit to clear)')

        delete_parser = subparsers.add_parser('delete', help='Delete a device from the current view')
        delete_parser.add_argument('node', help='Device id or unique label')

        move_parser = subparsers.add_parser('move', help='Move a device in the current view')
        move_parser.add_argument('node', help='Device id or unique label')
        move_parser.add_argument('x', type=float)
        move_parser.add_argument('y', type=float)

        place_parser = subparsers.add_parser('place', help='Show an existing device in the current view')
        place_parser.add_argument('node', help='Device id or unique label')
        place_parser.add_argument('-x', type=float, help='Position x coordinate')
        place_parser.add_argument('-y', type=float, help='Position y coordinate')

        list_parser = subparsers.add_parser('list', help='List devices')
        list_parser.add_argument('-a', '--all', action='store_true',
                                 help='Include devices hidden in the current view')
        list_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

        show_parser = subparsers.add_parser('show', help='Show device details')
        show_parser.add_argument('node', help='Device id or unique label')
        show_parser.add_argument('-j', '--json', action='store_true', help='Output in JSON format')

        return parser

    def handle_parsed_command(self, args: argparse.Namespace) -> Optional[int]:
        """Handle parsed device command."""
        if args.subcommand == 'add':
            return self._add_device(args)
        elif args.subcommand == 'set':
            return self._set_field(args)
        elif args.subcommand == 'delete':
            return self._delete_device(args)
        elif args.subcommand == 'move':
            return self._move_device(args)
        elif args.subcommand == 'place':
            return self._place_device(args)
        elif args.subcommand == 'list':
            return self._list_devices(args)
        elif args.subcommand == 'show':
            return self._show_device(args)

        self.create_parser().print_help()
        return 1

    def _add_device(self, args: argparse.Namespace) -> int:
        node = self.editor.add_node(
            args.kind,
            Position(x=args.x, y=args.y),
            label=args.label,
            node_id=args.node_id
        )
        self.success(f"Added {node.data.label} as {node.id}")
        return 0

    def _set_field(self, args: argparse.Namespace) -> int:
        node_id = self.resolve_node(args.node)
        node = self.editor.edit_field(node_id, args.field, args.value)
        if node is None:
            self.warning(f"Device not found: {args.node}")
            return 2
        self.success(f"{node.id}: {args.field} updated, address {node.data.ip or 'unassigned'}")
        return 0

    def _delete_device(self, args: argparse.Namespace) -> int:
        node_id = self.resolve_node(args.node)
        if not self.editor.delete_node(node_id):
            self.warning(f"Device not found: {args.node}")
            return 2
        if node_id in self.editor.store:
            self.success(f"Removed {node_id} from the {self.editor.view_mode.value} view")
        else:
            self.success(f"Deleted {node_id}")
        return 0

    def _move_device(self, args: argparse.Namespace) -> int:
        node_id = self.resolve_node(args.node)
        node = self.editor.move_node(node_id, Position(x=args.x, y=args.y))
        if node is None:
            self.warning(f"Device not visible in the {self.editor.view_mode.value} view: {args.node}")
            return 2
        self.success(f"Moved {node.id} to ({args.x:g}, {args.y:g})")
        return 0

    def _place_device(self, args: argparse.Namespace) -> int:
        node_id = self.resolve_node(args.node)
        position = None
        if args.x is not None or args.y is not None:
            position = self.parse_position(args.x, args.y)
        node = self.editor.reveal_node(node_id, position)
        if node is None:
            self.warning(f"Device not found: {args.node}")
            return 2
        self.success(f"{node.id} is now shown in the {self.editor.view_mode.value} view")
        return 0

    def _list_devices(self, args: argparse.Namespace) -> int:
        mode = self.editor.view_mode
        nodes = self.editor.store.get_nodes()
        if not args.all:
            nodes = [node for node in nodes if node.is_visible_in(mode)]

        if args.json:
            self.output_json([node_to_dict(node, mode) for node in nodes])
            return 0

        if not nodes:
            self.info(f"No devices in the {mode.value} view")
            return 0

        self.shell.poutput(
            f"{'ID':<28} {'KIND':<14} {'LABEL':<16} {'IP':<16} SUBNET"
        )
        for node in nodes:
            self.shell.poutput(self.describe_node(node))
        return 0

    def _show_device(self, args: argparse.Namespace) -> int:
        node = self.editor.get_node(self.resolve_node(args.node))
        if node is None:
            self.warning(f"Device not found: {args.node}")
            return 2

        if args.json:
            self.output_json(node_to_dict(node, self.editor.view_mode))
            return 0

        data = node.data
        lines = [
            f"Device:      {node.id}",
            f"Kind:        {node.kind.value}",
            f"Label:       {data.label}",
            f"Model:       {data.model or '-'}",
            f"Area:        {data.area or '-'}",
        ]
        if hasattr(data, 'mode'):
            lines.append(f"Mode:        {data.mode.value}")
        if hasattr(data, 'device_subtype'):
            lines.append(f"Subtype:     {data.device_subtype.value}")
        if data.originates_subnet:
            lines.append(f"Subnet:      {getattr(data, 'subnet', '') or 'not selected'}")
        else:
            lines.append(f"Inherited:   {node.inherited_subnet_display}")
        lines.extend([
            f"IP suffix:   {data.ip_suffix or '-'}",
            f"IP:          {data.ip or '-'}",
            f"Topology:    ({node.topology_position.x:g}, {node.topology_position.y:g})"
            f"{'' if node.visible_in_topology else ' hidden'}",
            f"Floor plan:  ({node.floor_plan_position.x:g}, {node.floor_plan_position.y:g})"
            f"{'' if node.visible_in_floor_plan else ' hidden'}",
        ])
        for line in lines:
            self.shell.poutput(line)
        return 0
