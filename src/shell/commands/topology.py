#!/usr/bin/env -S python3 -B -u
"""
Topology command handler for saving, loading, importing and exporting.
"""

import argparse
from pathlib import Path
from typing import Optional, List

from cmd2 import Cmd2ArgumentParser

from .base import BaseCommandHandler
from ...core.document import dump_document, parse_document
from ...core.exceptions import EmptyInventoryError, StorageError
from ...core.inventory import INVENTORY_FILENAME, write_inventory_csv


class TopologyCommands(BaseCommandHandler):
    """Handler for topology document commands."""

    def get_subcommand_names(self) -> List[str]:
        return ['save', 'load', 'import', 'export', 'inventory', 'clear']

    def create_parser(self) -> Cmd2ArgumentParser:
        """Create the argument parser for topology commands."""
        parser = Cmd2ArgumentParser(prog='topology', description='Save, load, import and export the topology')
        subparsers = parser.add_subparsers(dest='subcommand', help='Topology subcommands')

        subparsers.add_parser('save', help='Save the topology to local storage')
        subparsers.add_parser('load', help='Reload the topology from local storage')

        import_parser = subparsers.add_parser('import', help='Import a topology JSON file')
        import_parser.add_argument('file', help='JSON file to import')

        export_parser = subparsers.add_parser('export', help='Export the topology as JSON')
        export_parser.add_argument('file', nargs='?', default='network-topology.json',
                                   help='Output file (default: network-topology.json)')

        inventory_parser = subparsers.add_parser('inventory', help='Export the device inventory as CSV')
        inventory_parser.add_argument('file', nargs='?', default=INVENTORY_FILENAME,
                                      help=f'Output file (default: {INVENTORY_FILENAME})')

        clear_parser = subparsers.add_parser('clear', help='Remove all devices and the saved topology')
        clear_parser.add_argument('-f', '--force', action='store_true', help='Clear without confirmation')

        return parser

    def handle_parsed_command(self, args: argparse.Namespace) -> Optional[int]:
        """Handle parsed topology command."""
        if args.subcommand == 'save':
            return self._save()
        elif args.subcommand == 'load':
            return self._load()
        elif args.subcommand == 'import':
            return self._import(args)
        elif args.subcommand == 'export':
            return self._export(args)
        elif args.subcommand == 'inventory':
            return self._inventory(args)
        elif args.subcommand == 'clear':
            return self._clear(args)

        self.create_parser().print_help()
        return 1

    def _save(self) -> int:
        path = self.shell.storage.save(self.editor.export_document())
        self.success(f"Topology saved to {path}")
        return 0

    def _load(self) -> int:
        document = self.shell.storage.load()
        if document is None:
            self.warning("No saved topology")
            return 1
        decoded = self.editor.load_document(document)
        self.success(f"Loaded {len(decoded.nodes)} devices and {len(decoded.edges)} connections")
        return 0

    def _import(self, args: argparse.Namespace) -> int:
        path = Path(args.file).expanduser()
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise StorageError(str(path), "read", cause=e)

        decoded = self.editor.load_document(parse_document(text))
        self.success(f"Imported {len(decoded.nodes)} devices and {len(decoded.edges)} connections from {path}")
        return 0

    def _export(self, args: argparse.Namespace) -> int:
        path = Path(args.file).expanduser()
        try:
            path.write_text(dump_document(self.editor.export_document()), encoding='utf-8')
        except OSError as e:
            raise StorageError(str(path), "write", cause=e)
        self.success(f"Topology exported to {path}")
        return 0

    def _inventory(self, args: argparse.Namespace) -> int:
        try:
            rows = self.editor.inventory()
        except EmptyInventoryError as e:
            self.warning(e.message)
            return int(e.error_code)
        path = write_inventory_csv(Path(args.file).expanduser(), rows)
        self.success(f"Exported {len(rows)} devices to {path}")
        return 0

    def _clear(self, args: argparse.Namespace) -> int:
        if not args.force and self.shell.is_interactive:
            answer = self.shell.read_input("Remove all devices? [y/N] ")
            if answer.strip().lower() not in ('y', 'yes'):
                self.info("Cancelled")
                return 1
        self.editor.clear()
        self.shell.storage.clear()
        self.success("Topology cleared")
        return 0
