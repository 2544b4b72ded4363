# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Usage output for programs built from chained subcommands.

`make_usage_with_subcommands` returns a zero-argument callable suitable for
`FlagSet.usage_func` on the program's global flag set:

    Usage: deployer [GLOBAL_OPTIONS] (COMMAND [COMMAND_OPTIONS])+

    Deploy and verify services.

    GLOBAL_OPTIONS:
      -v                             verbose output

    COMMANDS: (type 'deployer COMMAND -help' for command specific help)
      deploy  Deploy a service
      test    Run the test suite
    FLAGS FOR ALL COMMANDS:

    Usage of deploy:
      ...
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from rich.console import Console
from rich.markup import escape

from flagchain.console import console as default_console
from flagchain.flagset import FlagSet
from flagchain.subcommands import FlagSetDefinition, FlagSetIterator
from flagchain.utils import get_program_invocation


@dataclass
class HelpInfo:
    """
    What the combined usage text describes.

    Attributes:
        commands: Definitions listed in the command table.
        flag_sets: Sets whose flags are printed.
        program: Program name; defaults to how the program was invoked.
        about: Paragraph printed under the usage line.
        command_prefix: Text printed before the command table.
        skip_printing_commands: Omit the command table.
        parsed_args: Remaining arguments after the global flags. When given,
            only the sets those arguments select are printed.
    """

    commands: list[FlagSetDefinition] = field(default_factory=list)
    flag_sets: list[FlagSet] = field(default_factory=list)
    program: str | None = None
    about: str = ""
    command_prefix: str = ""
    skip_printing_commands: bool = False
    parsed_args: list[str] | None = None


def print_commands(
    definitions: Sequence[FlagSetDefinition], console: Console | None = None
) -> None:
    """Print command names padded to a common width, followed by their descriptions."""
    console = console or default_console
    width = max((len(definition.name) for definition in definitions), default=0)
    for definition in definitions:
        console.print(
            escape(f"  {definition.name:<{width}}  {definition.description}".rstrip())
        )


def print_flag_sets(flag_sets: Sequence[FlagSet], console: Console | None = None) -> None:
    """Print each set's usage, separated by blank lines."""
    console = console or default_console
    for flag_set in flag_sets:
        console.print()
        flag_set.usage(console)


def make_usage_with_subcommands(
    info: HelpInfo,
    console: Console | None = None,
    global_flags: FlagSet | None = None,
) -> Callable[[], None]:
    """
    Build a usage function describing global options, commands and their flags.

    Args:
        info (HelpInfo): Commands, sets and text to include.
        console (Console | None): Where to print; the shared console by default.
        global_flags (FlagSet | None): Set whose defaults are printed under
            GLOBAL_OPTIONS.
    """

    def usage() -> None:
        out = console or default_console
        program = info.program or get_program_invocation()
        out.print(
            escape(f"Usage: {program} [GLOBAL_OPTIONS] (COMMAND [COMMAND_OPTIONS])+")
        )
        if info.about:
            out.print()
            out.print(escape(info.about))
        out.print()
        out.print("GLOBAL_OPTIONS:")
        if global_flags is not None:
            global_flags.print_defaults(out)
        if info.command_prefix:
            out.print()
            out.print(escape(info.command_prefix))
        if not info.skip_printing_commands:
            out.print()
            out.print(
                escape(
                    f"COMMANDS: (type '{program} COMMAND -help' for command specific help)"
                )
            )
            print_commands(info.commands, out)

        if info.parsed_args is not None:
            out.print()
            iterator = FlagSetIterator(info.parsed_args, info.flag_sets)
            while iterator.step():
                matched = iterator.flag_set
                for flag_set in info.flag_sets:
                    if flag_set is matched:
                        out.print()
                        flag_set.usage(out)
                        break
        else:
            out.print("FLAGS FOR ALL COMMANDS:")
            print_flag_sets(info.flag_sets, out)

    return usage
