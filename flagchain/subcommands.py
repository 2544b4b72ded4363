# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Chained subcommand parsing.

An argument vector is split into consecutive segments. Each segment starts
with a command name, is parsed against that command's `FlagSet`, and the
unconsumed tail is handed to the next round:

    deploy -env prod test -verbose
    └──── deploy ───┘ └── test ──┘

Contents:
- FlagSetIterator: the matching/reset/parse loop over a list of `FlagSet`s.
- FlagSetDefinition: name, description and output object of a command.
- FlagSets: builds one `FlagSet` per definition and starts iterations.
- CommandIterator: a `FlagSetIterator` that also reports the matched output.
- flagsets_from_struct: build `FlagSets` from a dataclass of command dataclasses.
- command_string: turn a dataclass of options back into argument tokens.

Example:
    sets = FlagSets.from_struct(Commands())
    iterator = sets.parse(sys.argv[1:])
    for output in iterator:
        handle(output)
    if iterator.err is not None:
        if not isinstance(iterator.err, (NoMatchingCommandError, HelpSignal)):
            console.print(f"error: {iterator.err}")
        usage()
        sys.exit(1)

A `--` ends one command's flags early: `deploy -env prod -- test -verbose`.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterator, Sequence

from flagchain.env import EnvMap
from flagchain.exceptions import (
    FlagchainError,
    FlagDefinitionError,
    NoMatchingCommandError,
    UnknownCommandError,
)
from flagchain.flagset import ErrorHandling, FlagSet
from flagchain.logger import logger
from flagchain.signals import HelpSignal
from flagchain.structs import COMMAND_METADATA, CommandSpec, flag_name_for, flagset_struct
from flagchain.utils import format_duration, format_float, format_int
from flagchain.values import Value


class IteratorState(Enum):
    """Where a `FlagSetIterator` is in its lifecycle."""

    IDLE = "idle"
    MATCHED = "matched"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class FlagSetIterator:
    """
    Matches argument segments to named flag sets, one segment per `step()`.

    Each step looks at the first remaining argument, finds the flag set with
    that name, resets all of its flags to their defaults, parses the rest of
    the arguments into it and keeps whatever the set did not consume.

    `args` may be modified by the caller between steps (e.g. to consume
    positional arguments); `sets` must not change during iteration.

    Duplicate set names are not validated here: the first set with a given
    name always wins.

    Args:
        args (Sequence[str]): Argument vector without the program name.
        sets (Sequence[FlagSet]): The candidate flag sets.
    """

    def __init__(self, args: Sequence[str], sets: Sequence[FlagSet]) -> None:
        self.args: list[str] = list(args)
        self.sets: list[FlagSet] = list(sets)
        self._names: dict[str, int] | None = None
        self._current: FlagSet | None = None
        self._err: BaseException | None = None
        self._parsed_one: bool = False
        self._state: IteratorState = IteratorState.IDLE

    def reinit(self, sets: Sequence[FlagSet], args: Sequence[str]) -> None:
        """Start over with new sets and arguments."""
        self.sets = list(sets)
        self.args = list(args)
        self._names = None
        self._current = None
        self._err = None
        self._parsed_one = False
        self._state = IteratorState.IDLE

    def _find_set(self, name: str) -> FlagSet | None:
        if self._names is None:
            self._names = {}
            for index, flag_set in enumerate(self.sets):
                if flag_set.name in self._names:
                    logger.debug(
                        "Flag set '%s' at position %d is shadowed by an earlier set.",
                        flag_set.name,
                        index,
                    )
                    continue
                self._names[flag_set.name] = index
        index = self._names.get(name)
        if index is None:
            return None
        return self.sets[index]

    def advance(self, count: int) -> bool:
        """
        Skip `count` arguments without matching them.

        Returns False when no arguments remain. Skipping past the end is
        allowed and leaves `args` empty.
        """
        if count < 0:
            raise ValueError("count must not be negative")
        if len(self.args) <= count:
            self.args = []
            return False
        self.args = self.args[count:]
        return True

    @property
    def flag_set(self) -> FlagSet | None:
        """
        The set matched by the last `step()`.

        After a failed parse this is still the set that failed, so callers can
        print its usage when help was requested.
        """
        return self._current

    @property
    def err(self) -> BaseException | None:
        """
        Why the last `step()` returned False, if it was not plain exhaustion.

        One of `NoMatchingCommandError`, `UnknownCommandError`, `HelpSignal`
        or the `FlagchainError` raised by the matched set's parser.
        """
        return self._err

    @property
    def state(self) -> IteratorState:
        return self._state

    def step(self) -> bool:
        """
        Match and parse the next command segment.

        Returns:
            bool: True if a flag set matched and parsed successfully.
        """
        self._err = None
        if not self.args:
            self._current = None
            if not self._parsed_one:
                self._err = NoMatchingCommandError()
                self._state = IteratorState.FAILED
            else:
                self._state = IteratorState.EXHAUSTED
            return False

        head = self.args[0]
        flag_set = self._find_set(head)
        if flag_set is None:
            logger.debug("No flag set named '%s'.", head)
            self._current = None
            self._err = UnknownCommandError(head)
            self._state = IteratorState.FAILED
            return False

        self._current = flag_set
        flag_set.reset()
        remaining = self.args[1:]
        try:
            flag_set.parse(remaining)
        except HelpSignal as signal:
            self.args = remaining
            self._err = signal
            self._state = IteratorState.FAILED
            return False
        except FlagchainError as error:
            self.args = remaining
            self._err = error
            self._state = IteratorState.FAILED
            return False

        self.args = remaining[len(remaining) - flag_set.narg :]
        self._parsed_one = True
        self._state = IteratorState.MATCHED
        logger.debug(
            "Matched '%s'; %d argument(s) left.", flag_set.name, len(self.args)
        )
        return True

    def raise_for_error(self) -> None:
        """Re-raise the error recorded by the last `step()`, if any."""
        if self._err is not None:
            raise self._err

    def __iter__(self) -> Iterator[FlagSet]:
        while self.step():
            assert self._current is not None
            yield self._current


@dataclass
class FlagSetDefinition:
    """
    Presentation record for a command.

    Attributes:
        name (str): Command name (also the flag set name).
        description (str): One-line description for usage output.
        output (Any): Dataclass instance the command's flags write into.
    """

    name: str
    description: str = ""
    output: Any = None


class FlagSets:
    """
    A fixed list of commands and the flag sets built for them.

    Command names must be unique; a duplicate raises `FlagDefinitionError`
    when the sets are built.
    """

    def __init__(
        self,
        definitions: Sequence[FlagSetDefinition],
        error_handling: ErrorHandling = ErrorHandling.CONTINUE,
    ) -> None:
        seen: set[str] = set()
        for definition in definitions:
            if definition.name in seen:
                raise FlagDefinitionError(
                    f"command '{definition.name}' is defined more than once"
                )
            seen.add(definition.name)
        self.definitions: list[FlagSetDefinition] = list(definitions)
        self.sets: list[FlagSet] = [
            flagset_struct(definition.name, error_handling, definition.output)
            for definition in self.definitions
        ]

    @classmethod
    def from_struct(
        cls, commands: Any, error_handling: ErrorHandling = ErrorHandling.CONTINUE
    ) -> FlagSets:
        return flagsets_from_struct(commands, error_handling)

    def parse(self, args: Sequence[str]) -> CommandIterator:
        return CommandIterator(self, FlagSetIterator(args, self.sets))

    def definition_for(self, flag_set: FlagSet | None) -> FlagSetDefinition | None:
        """Return the definition a flag set was built from."""
        for index, candidate in enumerate(self.sets):
            if candidate is flag_set:
                return self.definitions[index]
        return None

    def output_for(self, flag_set: FlagSet | None) -> Any:
        definition = self.definition_for(flag_set)
        if definition is None:
            return None
        return definition.output

    def __iter__(self) -> Iterator[FlagSetDefinition]:
        return iter(self.definitions)


class CommandIterator:
    """A `FlagSetIterator` that reports the matched command's output object."""

    def __init__(self, flag_sets: FlagSets, iterator: FlagSetIterator) -> None:
        self.flag_sets = flag_sets
        self.iterator = iterator

    def step(self) -> bool:
        return self.iterator.step()

    def advance(self, count: int) -> bool:
        return self.iterator.advance(count)

    @property
    def args(self) -> list[str]:
        return self.iterator.args

    @args.setter
    def args(self, value: Sequence[str]) -> None:
        self.iterator.args = list(value)

    @property
    def flag_set(self) -> FlagSet | None:
        return self.iterator.flag_set

    @property
    def definition(self) -> FlagSetDefinition | None:
        return self.flag_sets.definition_for(self.iterator.flag_set)

    @property
    def output(self) -> Any:
        return self.flag_sets.output_for(self.iterator.flag_set)

    @property
    def err(self) -> BaseException | None:
        return self.iterator.err

    def raise_for_error(self) -> None:
        self.iterator.raise_for_error()

    def __iter__(self) -> Iterator[Any]:
        while self.step():
            yield self.output


def flagsets_from_struct(
    commands: Any, error_handling: ErrorHandling = ErrorHandling.CONTINUE
) -> FlagSets:
    """
    Build `FlagSets` from a dataclass whose fields are command dataclasses.

    Field names are lower-cased to form command names unless `command(...)`
    metadata gives one; a name of "-" skips the field.

    Example:
        @dataclass
        class Commands:
            deploy: Deploy = command(Deploy, help="Deploy the application")
            test: Test = command(Test, name="test", help="Run tests")
    """
    if not is_dataclass(commands) or isinstance(commands, type):
        raise FlagDefinitionError(
            f"expected a dataclass instance, got: {type(commands).__name__}"
        )
    definitions = []
    for field_info in fields(commands):
        if field_info.name.startswith("_"):
            continue
        meta = field_info.metadata.get(COMMAND_METADATA) or CommandSpec()
        name = meta.name or field_info.name.lower()
        if name == "-":
            continue
        output = getattr(commands, field_info.name)
        if not is_dataclass(output) or isinstance(output, type):
            raise FlagDefinitionError(
                f"{field_info.name}: unsupported field type for command parsing: "
                f"{type(output).__name__}"
            )
        definitions.append(FlagSetDefinition(name, meta.help.strip(), output))
    return FlagSets(definitions, error_handling)


def _scalar_tokens(flag: str, value: Any, field_name: str) -> list[str]:
    if isinstance(value, bool):
        return [flag] if value else []
    if isinstance(value, Enum):
        return [flag, value.name]
    if isinstance(value, int):
        return [flag, format_int(value)] if value != 0 else []
    if isinstance(value, float):
        return [flag, format_float(value)] if value != 0 else []
    if isinstance(value, str):
        return [flag, value] if value != "" else []
    if isinstance(value, timedelta):
        return [flag, format_duration(value)] if value else []
    if isinstance(value, datetime):
        return [flag, value.isoformat()]
    raise FlagDefinitionError(
        f"{field_name}: unsupported field type for flag emitting: {type(value).__name__}"
    )


def _item_tokens(flag: str, value: Any, field_name: str) -> list[str]:
    if isinstance(value, bool):
        return [flag] if value else []
    if isinstance(value, int):
        return [flag, format_int(value)]
    if isinstance(value, float):
        return [flag, format_float(value)]
    if isinstance(value, str):
        return [flag, value]
    raise FlagDefinitionError(
        f"{field_name}: unsupported field type for flag emitting: {type(value).__name__}"
    )


def command_string(options: Any) -> list[str]:
    """
    Convert a dataclass of options into argument tokens.

    Zero values are omitted, `True` becomes a bare `-name`, list fields
    repeat the flag once per item and `EnvMap` fields emit one `KEY=VALUE`
    per stored value.

    Example:
        command_string(Flags(name="test", verbose=True, count=5))
        # ["-name", "test", "-verbose", "-count", "5"]

    Raises:
        FlagDefinitionError: If `options` is not a dataclass instance or holds
            an unsupported field type.
    """
    if options is None:
        return []
    if not is_dataclass(options) or isinstance(options, type):
        raise FlagDefinitionError(
            f"expected a dataclass instance, got: {type(options).__name__}"
        )
    out: list[str] = []
    for field_info in fields(options):
        if field_info.name.startswith("_"):
            continue
        name = flag_name_for(field_info)
        if name == "-":
            continue
        flag = f"-{name}"
        value = getattr(options, field_info.name)
        if value is None:
            continue
        if isinstance(value, Value):
            text = value.render()
            if text:
                out.extend([flag, text])
            continue
        if isinstance(value, EnvMap):
            for key, values in value.items():
                for item in values:
                    out.extend([flag, f"{key}={item}"])
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                out.extend(_item_tokens(flag, item, field_info.name))
        else:
            out.extend(_scalar_tokens(flag, value, field_info.name))
    return out

