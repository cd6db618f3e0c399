#!/usr/bin/env -S python3 -B -u
"""
Base command handler class for shell commands.
"""

import argparse
import json
import shlex
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from cmd2 import Cmd2ArgumentParser
from colorama import Fore, Style

from ...core.exceptions import TopologyError, DuplicateSubnetError
from ...core.models import Node, Position


class BaseCommandHandler(ABC):
    """Base class for all command handlers."""

    def __init__(self, shell):
        self.shell = shell
        self.current_args: Optional[argparse.Namespace] = None

    @property
    def editor(self):
        return self.shell.topology_editor

    def handle_command(self, args: str) -> Optional[int]:
        """Parse and run a command line; topology errors are reported, not raised."""
        parser = self.create_parser()
        try:
            parsed_args = parser.parse_args(self._split_args(args))
        except SystemExit as e:
            # argparse exits after printing help or a usage error
            return 0 if e.code in (0, None) else 1

        self.current_args = parsed_args
        try:
            return self.handle_parsed_command(parsed_args)
        except DuplicateSubnetError as e:
            self.warning(e.message)
            self.warning(e.suggestion)
            return int(e.error_code)
        except TopologyError as e:
            self.shell.perror(e.format_error(self.shell.verbose_level))
            return int(e.error_code)

    @abstractmethod
    def create_parser(self) -> Cmd2ArgumentParser:
        """Create the argument parser for the command."""

    @abstractmethod
    def handle_parsed_command(self, args: argparse.Namespace) -> Optional[int]:
        """Handle the command with parsed arguments."""

    def get_subcommand_names(self) -> List[str]:
        """Get list of subcommand names - override in subclasses."""
        return []

    def complete_command(self, text: str, line: str, begidx: int, endidx: int) -> List[str]:
        """Complete subcommand names and node references."""
        args = line.split()
        if len(args) == 1 or (len(args) == 2 and not line.endswith(' ')):
            return [name for name in self.get_subcommand_names() if name.startswith(text)]
        return [ref for ref in self.node_references() if ref.startswith(text)]

    def node_references(self) -> List[str]:
        """Node ids of the current graph, for completion."""
        return [node.id for node in self.editor.store.get_nodes()]

    def _split_args(self, args_str: str) -> List[str]:
        """Split argument string into list, handling quotes properly."""
        try:
            return shlex.split(args_str)
        except ValueError as e:
            self.error(f"Error parsing arguments: {e}")
            return []

    def resolve_node(self, reference: str) -> str:
        """
        Resolve a node id or a unique label to a node id.

        Unresolvable references are returned unchanged; the editor
        treats unknown ids as no-ops.
        """
        if reference in self.editor.store:
            return reference
        matches = [node.id for node in self.editor.store.get_nodes() if node.data.label == reference]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            self.warning(f"Label '{reference}' is ambiguous, use one of: {', '.join(matches)}")
        return reference

    @staticmethod
    def parse_position(x: Optional[float], y: Optional[float]) -> Position:
        return Position(x=x or 0.0, y=y or 0.0)

    def _is_json_output(self) -> bool:
        """Check if JSON output is requested."""
        return bool(self.current_args is not None and getattr(self.current_args, 'json', False))

    def output_json(self, payload: Any) -> None:
        self.shell.poutput(json.dumps(payload, indent=2, ensure_ascii=False))

    def describe_node(self, node: Node) -> str:
        """One-line summary of a device."""
        address = node.data.ip or '-'
        if node.data.originates_subnet:
            subnet = getattr(node.data, 'subnet', '') or 'no subnet'
        else:
            subnet = node.inherited_subnet_display
        return f"{node.id:<28} {node.kind.value:<14} {node.data.label:<16} {address:<16} {subnet}"

    def success(self, message: str):
        """Print success message."""
        if not self._is_json_output():
            self.shell.poutput(f"{Fore.GREEN}[SUCCESS]{Style.RESET_ALL} {message}")

    def error(self, message: str):
        """Print error message to stderr."""
        # Always print errors to stderr, even in JSON mode
        self.shell.perror(f"[ERROR] {message}")

    def warning(self, message: str):
        """Print warning message."""
        if not self._is_json_output():
            self.shell.poutput(f"{Fore.YELLOW}[WARNING]{Style.RESET_ALL} {message}")

    def info(self, message: str):
        """Print info message."""
        if not self._is_json_output():
            self.shell.poutput(f"[INFO] {message}")
