# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
This module implements `FlagSet`, the named option-set a chained command
line is routed to.

A `FlagSet` owns an ordered collection of `Flag` records, each backed by a
resettable `Value` that writes into a caller-owned output object. It parses
single-dash flag syntax and stops at the first positional argument, leaving
the unconsumed tail available through `args` for the next command in the
chain.

Flag syntax:
    -name               boolean switches only
    -name=value         any flag
    -name value         non-boolean flags only
    --name ...          two dashes are equivalent to one
    --                  terminates flag parsing (consumed)
    -h / -help          raises HelpSignal unless defined by the set

Error handling:
- ErrorHandling.CONTINUE: `parse` raises `FlagParseError` / `HelpSignal`.
- ErrorHandling.EXIT: the error and usage are printed and the process exits
  with status 2 (0 for help).

Example Usage:
    deploy = FlagSet("deploy")
    deploy.string_var("env", "dev", "Environment to deploy to")
    deploy.bool_var("dry-run", False, "Print actions only")
    deploy.parse(["-env", "prod", "-dry-run", "extra"])

    # deploy.output.env == "prod", deploy.output.dry_run is True
    # deploy.args == ["extra"]
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from types import SimpleNamespace
from typing import Any, Callable, Iterable, Sequence

from rich.console import Console
from rich.markup import escape

from flagchain.console import console as default_console
from flagchain.exceptions import FlagDefinitionError, FlagParseError, ValueParseError
from flagchain.logger import logger
from flagchain.signals import HelpSignal
from flagchain.slices import FloatSlice, IntSlice, StringSlice, UintSlice
from flagchain.utils import (
    coerce_enum,
    format_bool,
    format_datetime,
    format_duration,
    format_enum,
    format_float,
    format_int,
    parse_bool,
    parse_datetime,
    parse_duration,
    parse_float,
    parse_int,
    parse_uint,
)
from flagchain.values import DelegatingValue, ResettableValue, TextValue, Value

_ZERO_DEFAULTS = {"", "0", "false", "0s"}


class ErrorHandling(Enum):
    """How `FlagSet.parse` reports a failure."""

    CONTINUE = "continue"
    EXIT = "exit"


@dataclass
class Flag:
    """
    A registered flag.

    Attributes:
        name (str): Flag name without leading dashes.
        usage (str): Help text.
        value (Value): Storage cell backing the flag.
        default_text (str): Rendered default, captured at registration.
    """

    name: str
    usage: str
    value: Value
    default_text: str

    def unquote_usage(self) -> tuple[str, str]:
        """
        Split a back-quoted name out of the usage text.

        "a `directory` to search" -> ("directory", "a directory to search").
        Without back quotes the value's type name is used.
        """
        first = self.usage.find("`")
        if first >= 0:
            second = self.usage.find("`", first + 1)
            if second >= 0:
                name = self.usage[first + 1 : second]
                usage = self.usage[:first] + name + self.usage[second + 1 :]
                return name, usage
        return self.value.type_name, self.usage

    def default_is_zero(self) -> bool:
        return self.default_text in _ZERO_DEFAULTS


def dest_from_name(name: str) -> str:
    """Convert a flag name to an attribute name: "dry-run" -> "dry_run"."""
    return name.replace("-", "_").replace(".", "_")


class FlagSet:
    """
    A named set of flags, matched against a command-name token.

    Args:
        name (str): Command name used for matching and usage output.
        error_handling (ErrorHandling): Failure policy for `parse`.
        output (Any | None): Object the registered values write into. A new
            `SimpleNamespace` is used when omitted.
        console (Console | None): Console used for usage output.
    """

    def __init__(
        self,
        name: str,
        error_handling: ErrorHandling = ErrorHandling.CONTINUE,
        output: Any | None = None,
        console: Console | None = None,
    ) -> None:
        self.name: str = name
        self.error_handling: ErrorHandling = error_handling
        self.output: Any = output if output is not None else SimpleNamespace()
        self.console: Console = console or default_console
        self.usage_func: Callable[[], None] | None = None
        self._formal: dict[str, Flag] = {}
        self._actual: dict[str, Flag] = {}
        self._args: list[str] = []
        self._parsed: bool = False

    def var(
        self, value: Value | Any, name: str, usage: str = "", default_text: str = ""
    ) -> Flag:
        """
        Register a value under `name`.

        Objects that are not `Value` instances but implement `set(text)` are
        wrapped in a `DelegatingValue` that resets through `default_text`.

        Raises:
            FlagDefinitionError: If the name is invalid or already registered.
        """
        if not isinstance(value, Value):
            value = DelegatingValue(value, default_text)
        if not name or name.startswith("-") or "=" in name:
            raise FlagDefinitionError(f"flag {name!r} has an invalid name")
        if name in self._formal:
            raise FlagDefinitionError(f"{self.name} flag redefined: {name}")
        flag = Flag(name=name, usage=usage, value=value, default_text=value.render())
        self._formal[name] = flag
        return flag

    def bool_var(
        self, name: str, default: bool = False, usage: str = "", dest: str | None = None
    ) -> Value:
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            parse_bool,
            format_bool,
            is_bool=True,
        )
        self.var(value, name, usage)
        return value

    def string_var(
        self, name: str, default: str = "", usage: str = "", dest: str | None = None
    ) -> Value:
        value = ResettableValue(
            self.output, dest or dest_from_name(name), default, str, str, type_name="string"
        )
        self.var(value, name, usage)
        return value

    def int_var(
        self,
        name: str,
        default: int = 0,
        usage: str = "",
        dest: str | None = None,
        base: int = 10,
    ) -> Value:
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            lambda text: parse_int(text, base),
            format_int,
            type_name="int",
        )
        self.var(value, name, usage)
        return value

    def uint_var(
        self,
        name: str,
        default: int = 0,
        usage: str = "",
        dest: str | None = None,
        base: int = 10,
    ) -> Value:
        if default < 0:
            raise FlagDefinitionError(f"default for unsigned flag {name!r} is negative")
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            lambda text: parse_uint(text, base),
            format_int,
            type_name="uint",
        )
        self.var(value, name, usage)
        return value

    def float_var(
        self, name: str, default: float = 0.0, usage: str = "", dest: str | None = None
    ) -> Value:
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            parse_float,
            format_float,
            type_name="float",
        )
        self.var(value, name, usage)
        return value

    def duration_var(
        self,
        name: str,
        default: timedelta = timedelta(0),
        usage: str = "",
        dest: str | None = None,
    ) -> Value:
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            parse_duration,
            format_duration,
            type_name="duration",
        )
        self.var(value, name, usage)
        return value

    def datetime_var(
        self,
        name: str,
        default: datetime | None = None,
        usage: str = "",
        dest: str | None = None,
    ) -> Value:
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            parse_datetime,
            format_datetime,
            type_name="datetime",
        )
        self.var(value, name, usage)
        return value

    def enum_var(
        self,
        name: str,
        enum_type: type[Enum],
        default: Enum | None = None,
        usage: str = "",
        dest: str | None = None,
    ) -> Value:
        value = ResettableValue(
            self.output,
            dest or dest_from_name(name),
            default,
            lambda text: coerce_enum(text, enum_type),
            format_enum,
            type_name=enum_type.__name__.lower(),
        )
        self.var(value, name, usage)
        return value

    def text_var(
        self,
        name: str,
        default_text: str,
        parser: Callable[[str], Any],
        usage: str = "",
        dest: str | None = None,
        formatter: Callable[[Any], str] = str,
    ) -> Value:
        value = TextValue(
            self.output, dest or dest_from_name(name), default_text, parser, formatter
        )
        self.var(value, name, usage)
        return value

    def string_list_var(
        self,
        name: str,
        usage: str = "",
        dest: str | None = None,
        default: Iterable[str] | None = None,
    ) -> Value:
        value = StringSlice(self.output, dest or dest_from_name(name), default)
        self.var(value, name, usage)
        return value

    def int_list_var(
        self,
        name: str,
        usage: str = "",
        dest: str | None = None,
        default: Iterable[int] | None = None,
        base: int = 10,
    ) -> Value:
        value = IntSlice(self.output, dest or dest_from_name(name), default, base)
        self.var(value, name, usage)
        return value

    def uint_list_var(
        self,
        name: str,
        usage: str = "",
        dest: str | None = None,
        default: Iterable[int] | None = None,
        base: int = 10,
    ) -> Value:
        value = UintSlice(self.output, dest or dest_from_name(name), default, base)
        self.var(value, name, usage)
        return value

    def float_list_var(
        self,
        name: str,
        usage: str = "",
        dest: str | None = None,
        default: Iterable[float] | None = None,
    ) -> Value:
        value = FloatSlice(self.output, dest or dest_from_name(name), default)
        self.var(value, name, usage)
        return value

    def lookup(self, name: str) -> Flag | None:
        return self._formal.get(name)

    def set(self, name: str, text: str) -> None:
        """
        Set a flag by name, as if it had been given on the command line.

        Raises:
            FlagParseError: If the flag is unknown or the text does not parse.
        """
        flag = self._formal.get(name)
        if flag is None:
            raise FlagParseError(f"no such flag -{name}", name)
        try:
            flag.value.set(text)
        except ValueParseError as error:
            raise FlagParseError(
                f'invalid value "{text}" for flag -{name}: {error}', name
            ) from error
        self._actual[name] = flag

    @property
    def flags(self) -> list[Flag]:
        """All registered flags, sorted by name."""
        return [self._formal[name] for name in sorted(self._formal)]

    @property
    def set_flags(self) -> list[Flag]:
        """Flags explicitly set since the last reset or parse, sorted by name."""
        return [self._actual[name] for name in sorted(self._actual)]

    def reset(self) -> None:
        """Restore every flag to its default."""
        for flag in self._formal.values():
            flag.value.reset()
        self._actual = {}
        logger.debug("[%s] Reset %d flags to defaults.", self.name, len(self._formal))

    @property
    def args(self) -> list[str]:
        """Arguments left after the last parse."""
        return self._args

    @property
    def narg(self) -> int:
        return len(self._args)

    def arg(self, index: int) -> str:
        if 0 <= index < len(self._args):
            return self._args[index]
        return ""

    @property
    def parsed(self) -> bool:
        return self._parsed

    def _parse_one(self) -> bool:
        if not self._args:
            return False
        token = self._args[0]
        if len(token) < 2 or token[0] != "-":
            return False
        num_minuses = 1
        if token[1] == "-":
            num_minuses = 2
            if len(token) == 2:
                self._args = self._args[1:]
                return False
        name = token[num_minuses:]
        if not name or name[0] in ("-", "="):
            raise FlagParseError(f"bad flag syntax: {token}")

        self._args = self._args[1:]
        has_value = False
        value = ""
        if "=" in name:
            name, value = name.split("=", 1)
            has_value = True

        flag = self._formal.get(name)
        if flag is None:
            if name in ("help", "h"):
                raise HelpSignal()
            raise FlagParseError(f"flag provided but not defined: -{name}", name)

        if flag.value.is_bool_flag():
            if has_value:
                try:
                    flag.value.set(value)
                except ValueParseError as error:
                    raise FlagParseError(
                        f'invalid boolean value "{value}" for -{name}: {error}', name
                    ) from error
            else:
                try:
                    flag.value.set("true")
                except ValueParseError as error:
                    raise FlagParseError(
                        f"invalid boolean flag {name}: {error}", name
                    ) from error
        else:
            if not has_value and self._args:
                has_value = True
                value, self._args = self._args[0], self._args[1:]
            if not has_value:
                raise FlagParseError(f"flag needs an argument: -{name}", name)
            try:
                flag.value.set(value)
            except ValueParseError as error:
                raise FlagParseError(
                    f'invalid value "{value}" for flag -{name}: {error}', name
                ) from error
        self._actual[name] = flag
        return True

    def parse(self, arguments: Sequence[str]) -> None:
        """
        Parse flags from `arguments`, which must not include the command name.

        Parsing stops at the first non-flag argument or after `--`; the
        remainder is available from `args`.

        Raises:
            FlagParseError: On a syntax or value error (CONTINUE policy).
            HelpSignal: When -h / -help is given and not defined (CONTINUE policy).
        """
        self._parsed = True
        self._args = list(arguments)
        try:
            while self._parse_one():
                pass
        except HelpSignal:
            if self.error_handling == ErrorHandling.EXIT:
                self.usage()
                sys.exit(0)
            raise
        except FlagParseError as error:
            logger.debug("[%s] Parse failed: %s", self.name, error)
            if self.error_handling == ErrorHandling.EXIT:
                self.console.print(f"[bold red]error:[/] {escape(str(error))}")
                self.usage()
                sys.exit(2)
            raise

    def print_defaults(self, console: Console | None = None) -> None:
        """Print every flag with its type, usage text and non-zero default."""
        console = console or self.console
        for flag in self.flags:
            type_name, usage = flag.unquote_usage()
            flag_text = f"-{flag.name}"
            if type_name:
                flag_text = f"{flag_text} {type_name}"
            if not flag.default_is_zero():
                if isinstance(flag.value, ResettableValue) and flag.value.type_name == "string":
                    usage = f'{usage} (default "{flag.default_text}")'
                else:
                    usage = f"{usage} (default {flag.default_text})"
            line = f"  {flag_text:<30} "
            if usage and len(flag_text) > 30:
                usage = f"\n{'':<33}{usage}"
            console.print(escape(f"{line}{usage}".rstrip()))

    def usage(self, console: Console | None = None) -> None:
        """Print usage for this set, or call `usage_func` when one is installed."""
        if self.usage_func is not None:
            self.usage_func()
            return
        console = console or self.console
        console.print(f"[bold]Usage of {escape(self.name)}:[/bold]")
        self.print_defaults(console)

    def __iter__(self):
        return iter(self.flags)

    def __str__(self) -> str:
        return f"FlagSet(name={self.name!r}, flags={len(self._formal)}, parsed={self._parsed})"

    def __repr__(self) -> str:
        return str(self)
