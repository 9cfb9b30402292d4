"""CLI application framework.

Provides a declarative way to build CLI applications with:
- Command registration via decorators
- Automatic argument parsing
- Consistent error handling and exit codes
- Logging setup and common arguments (--verbose, --quiet, --output, --config)
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cli_errors import CLIError, ExitCode, handle_error

CommandFunc = Callable[[argparse.Namespace], int]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class Argument:
    """Definition of a CLI argument."""
    name_or_flags: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandDef:
    """Definition of a CLI command."""
    name: str
    func: CommandFunc
    help: str = ""
    description: str = ""
    arguments: List[Argument] = field(default_factory=list)


class CLIApp:
    """Base class for CLI applications.

    Example usage:
        app = CLIApp("shifts", "Shift engine CLI")

        @app.command("resolve", help="Resolve occurrences")
        @app.argument("--date", help="Date to resolve")
        def cmd_resolve(args):
            ...
            return 0

        def main(argv=None):
            return app.run(argv)
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        version: Optional[str] = None,
        add_common_args: bool = True,
    ):
        self.name = name
        self.description = description
        self.version = version
        self.add_common_args = add_common_args

        self._commands: Dict[str, CommandDef] = {}
        self._parser: Optional[argparse.ArgumentParser] = None
        self._pending_arguments: List[Argument] = []

    @property
    def commands(self) -> Dict[str, CommandDef]:
        return dict(self._commands)

    def command(
        self,
        name: str,
        *,
        help: str = "",
        description: str = "",
    ) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to register a command.

        Args:
            name: Command name.
            help: Short help text for the command.
            description: Longer description for command help.
        """
        def decorator(func: CommandFunc) -> CommandFunc:
            # @argument decorators run first (bottom-up) and queue their args
            arguments = list(reversed(self._pending_arguments))
            self._pending_arguments.clear()
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=arguments,
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to add an argument to the next command.

        Must be used BEFORE the @command decorator (decorators apply bottom-up).
        """
        def decorator(func: CommandFunc) -> CommandFunc:
            self._pending_arguments.append(Argument(name_or_flags, kwargs))
            return func
        return decorator

    def build_parser(self) -> argparse.ArgumentParser:
        """Build the argument parser."""
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if self.version:
            parser.add_argument(
                "--version", "-V",
                action="version",
                version=f"%(prog)s {self.version}",
            )
        if self.add_common_args:
            self._add_common_arguments(parser)

        if self._commands:
            subparsers = parser.add_subparsers(dest="command", metavar="<command>")
            for cmd_def in self._commands.values():
                cmd_parser = subparsers.add_parser(
                    cmd_def.name,
                    help=cmd_def.help,
                    description=cmd_def.description,
                )
                for arg in cmd_def.arguments:
                    cmd_parser.add_argument(*arg.name_or_flags, **arg.kwargs)
                cmd_parser.set_defaults(_cmd_func=cmd_def.func)

        self._parser = parser
        return parser

    def _add_common_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Enable debug logging",
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output",
        )
        parser.add_argument(
            "--output", "-o",
            choices=["text", "json", "yaml"],
            default="text",
            help="Output format (default: text)",
        )
        parser.add_argument(
            "--config",
            help="Settings YAML path (default: $SHIFTS_CONFIG or ~/.config/shifts/settings.yaml)",
        )

    @staticmethod
    def configure_logging(verbose: bool) -> None:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format=LOG_FORMAT,
            stream=sys.stderr,
        )

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse arguments, dispatch the command, and return its exit code."""
        parser = self.build_parser()
        args = parser.parse_args(argv)
        verbose = bool(getattr(args, "verbose", False))
        self.configure_logging(verbose)

        cmd_func = getattr(args, "_cmd_func", None)
        if cmd_func is None:
            parser.print_help()
            return ExitCode.USAGE

        try:
            return int(cmd_func(args))
        except CLIError as e:
            return handle_error(e, verbose=verbose)
        except KeyboardInterrupt:
            print("\nInterrupted.", file=sys.stderr)
            return ExitCode.INTERRUPTED
        except Exception as e:
            return handle_error(e, verbose=verbose)
