#!/usr/bin/env -S python3 -B -u

"""
Main HomeNetworkShell class implementation.
"""

import os
import sys
import argparse
from typing import Iterable, Optional

import cmd2
import colorama
from colorama import Fore, Style

from .commands.device import DeviceCommands
from .commands.link import LinkCommands
from .commands.topology import TopologyCommands
from .commands.view import ViewCommands
from ..core.config_loader import load_hnet_config, get_storage_config
from ..core.exceptions import ErrorHandler, StorageError, TopologyError
from ..core.storage import TopologyStorage
from ..core.structured_logging import get_logger, setup_logging
from ..core.topology_editor import GraphSnapshot, TopologyEditor


class HomeNetworkShell(cmd2.Cmd):
    """Interactive shell for planning a home network topology."""

    def __init__(self, *args, editor: Optional[TopologyEditor] = None,
                 storage: Optional[TopologyStorage] = None,
                 config: Optional[dict] = None,
                 verbose_level: Optional[int] = None, **kwargs):
        # Detect if we are in an interactive session
        self.is_interactive = sys.stdin.isatty() and sys.stdout.isatty()

        # Only keep history in interactive mode
        if self.is_interactive:
            kwargs.setdefault('persistent_history_file', os.path.expanduser('~/.hnetsh_history.json'))
        kwargs.setdefault('allow_cli_args', False)
        super().__init__(*args, **kwargs)

        self.config = config if config is not None else load_hnet_config()
        if verbose_level is None:
            verbose_level = int(self.config.get('verbose_level', 0))
        self.verbose_level = verbose_level
        self.logger = get_logger(__name__, verbose_level)

        storage_config = get_storage_config(self.config)
        self.storage = storage or TopologyStorage(storage_config['directory'])

        if editor is None:
            editor = TopologyEditor.from_config(self.config)
            self._load_saved_topology(editor)
        self.topology_editor = editor

        if storage_config.get('autosave', True):
            self.topology_editor.add_listener(self._autosave)

        if self.is_interactive:
            self.intro = f"""{Fore.CYAN}
╔═══════════════════════════════════════════════════════════════════╗
║                  Home Network Topology Planner                    ║
╚═══════════════════════════════════════════════════════════════════╝
{Style.RESET_ALL}
Type 'help' for available commands, 'help <command>' for specific command help.
"""
        else:
            self.intro = ""
        self.update_prompt()

        self._initialize_handlers()

    def _initialize_handlers(self):
        """Initialize command handlers."""
        self.device_handler = DeviceCommands(self)
        self.link_handler = LinkCommands(self)
        self.view_handler = ViewCommands(self)
        self.topology_handler = TopologyCommands(self)

    def _load_saved_topology(self, editor: TopologyEditor) -> None:
        """Restore the topology saved by the previous session."""
        try:
            document = self.storage.load()
        except StorageError as e:
            self.logger.warning(e.message)
            return
        if document is not None:
            decoded = editor.load_document(document)
            self.logger.info(f"Loaded saved topology with {len(decoded.nodes)} devices")

    def _autosave(self, snapshot: GraphSnapshot) -> None:
        """Persist each committed transaction."""
        try:
            self.storage.save(self.topology_editor.export_document())
        except StorageError as e:
            self.perror(f"[WARNING] Autosave failed: {e.message}")

    def update_prompt(self) -> None:
        """Show the active view in the prompt."""
        if self.is_interactive:
            self.prompt = f"{Fore.GREEN}hnetsh{Style.RESET_ALL}:{self.topology_editor.view_mode.value}> "
        else:
            self.prompt = ""

    def _run_handler(self, handler, args) -> None:
        ret = handler.handle_command(str(args))
        self.last_result = ret if ret is not None else 0

    def do_device(self, args):
        """Place, edit and remove devices (device -h for details)."""
        self._run_handler(self.device_handler, args)

    def complete_device(self, text, line, begidx, endidx):
        return self.device_handler.complete_command(text, line, begidx, endidx)

    def do_link(self, args):
        """Connect and disconnect devices (link -h for details)."""
        self._run_handler(self.link_handler, args)

    def complete_link(self, text, line, begidx, endidx):
        return self.link_handler.complete_command(text, line, begidx, endidx)

    def do_view(self, args):
        """Switch between topology and floor plan views, lay out devices."""
        self._run_handler(self.view_handler, args)

    def complete_view(self, text, line, begidx, endidx):
        return self.view_handler.complete_command(text, line, begidx, endidx)

    def do_topology(self, args):
        """Save, load, import and export the topology."""
        self._run_handler(self.topology_handler, args)

    def complete_topology(self, text, line, begidx, endidx):
        return self.topology_handler.complete_command(text, line, begidx, endidx)

    def do_exit(self, _):
        """Exit the shell."""
        if self.is_interactive:
            self.poutput(f"{Fore.CYAN}Goodbye!{Style.RESET_ALL}")
        return True

    def do_quit(self, _):
        """Quit the shell."""
        return self.do_exit(_)

    def run_batch(self, lines: Iterable[str]) -> int:
        """
        Run commands non-interactively.

        Stops at the first failing command.

        Returns:
            Exit code of the failing command, or 0
        """
        for line in lines:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            self.last_result = 0
            if self.onecmd_plus_hooks(line):
                break
            if self.last_result:
                return int(self.last_result)
        return 0


def main():
    """Main entry point for running the shell standalone."""
    parser = argparse.ArgumentParser(prog='hnetsh', description='Home network topology planner shell')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity (-v for info, -vv for debug, -vvv for trace)')
    parser.add_argument('-c', '--command', action='append',
                        help='Run a command and exit (can be used multiple times)')
    args = parser.parse_args()

    setup_logging(args.verbose)
    colorama.init()

    try:
        shell = HomeNetworkShell(verbose_level=args.verbose)

        if args.command:
            sys.exit(shell.run_batch(args.command))
        elif not (sys.stdin.isatty() and sys.stdout.isatty()):
            sys.exit(shell.run_batch(sys.stdin.readlines()))
        else:
            shell.cmdloop()

    except KeyboardInterrupt:
        print("\nGoodbye!")
        sys.exit(0)
    except TopologyError as e:
        sys.exit(ErrorHandler.handle_error(e, args.verbose))


if __name__ == '__main__':
    main()
