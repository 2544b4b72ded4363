# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Declarative flag registration from dataclasses.

Each field of an options dataclass becomes one flag. The field's default is
the flag's default, and `option(...)` metadata can rename the flag, add help
text or change how its text is parsed.

    @dataclass
    class Deploy:
        env: str = option("dev", help="Environment to deploy to")
        replicas: int = 1
        tags: list[str] = option(default_factory=list, name="tag")
        timeout: timedelta = timedelta(seconds=30)
        secret: str = option("", name="-")          # not a flag

    deploy = flagset_struct("deploy", ErrorHandling.CONTINUE, Deploy())

Naming: a field `dry_run` becomes the flag `-dry-run`; fields starting with
an underscore are skipped.

Supported field types: bool, str, int (with `base` and `unsigned`), float,
timedelta, datetime, Enum subclasses, list[str | int | float], EnvMap, any
type given a `parser=` in its `option(...)`, and fields that already hold a
`Value`. Optional[X] is treated as X.
"""
from __future__ import annotations

import types
from dataclasses import MISSING, Field, dataclass, field, fields, is_dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Union, get_args, get_origin, get_type_hints

from flagchain.env import EnvMap, EnvMapValue
from flagchain.exceptions import FlagDefinitionError
from flagchain.flagset import ErrorHandling, FlagSet
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
from flagchain.values import ResettableValue, TextValue, Value

OPTION_METADATA = "flagchain.option"
COMMAND_METADATA = "flagchain.command"


@dataclass(frozen=True)
class OptionSpec:
    """Flag metadata attached to an options dataclass field."""

    name: str | None = None
    help: str = ""
    base: int = 10
    unsigned: bool = False
    parser: Callable[[str], Any] | None = None
    formatter: Callable[[Any], str] | None = None


@dataclass(frozen=True)
class CommandSpec:
    """Command metadata attached to a commands dataclass field."""

    name: str | None = None
    help: str = ""


def option(
    default: Any = MISSING,
    *,
    name: str | None = None,
    help: str = "",
    base: int = 10,
    unsigned: bool = False,
    parser: Callable[[str], Any] | None = None,
    formatter: Callable[[Any], str] | None = None,
    default_factory: Any = MISSING,
) -> Any:
    """Declare a dataclass field as a flag with extra metadata."""
    metadata = {
        OPTION_METADATA: OptionSpec(
            name=name,
            help=help,
            base=base,
            unsigned=unsigned,
            parser=parser,
            formatter=formatter,
        )
    }
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def command(factory: Callable[[], Any], *, name: str | None = None, help: str = "") -> Any:
    """Declare a dataclass field as a command whose options live in `factory()`."""
    return field(
        default_factory=factory,
        metadata={COMMAND_METADATA: CommandSpec(name=name, help=help)},
    )


def flag_name_for(field_info: Field) -> str:
    """Flag name for a dataclass field: explicit name, or `dry_run` -> `dry-run`."""
    meta = field_info.metadata.get(OPTION_METADATA)
    if meta is not None and meta.name:
        return meta.name
    return field_info.name.lower().replace("_", "-")


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or isinstance(annotation, types.UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def _is_enum_type(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, Enum)


def _list_value(
    target: Any, attr: str, item_type: Any, current: Any, meta: OptionSpec
) -> Value | None:
    default = list(current or [])
    if item_type is str:
        return StringSlice(target, attr, default)
    if item_type is bool:
        return None
    if item_type is int:
        if meta.unsigned:
            return UintSlice(target, attr, default, meta.base)
        return IntSlice(target, attr, default, meta.base)
    if item_type is float:
        return FloatSlice(target, attr, default)
    return None


def _field_value(
    target: Any, attr: str, annotation: Any, current: Any, meta: OptionSpec
) -> Value | None:
    if meta.parser is not None:
        formatter = meta.formatter or str
        default_text = "" if current is None else formatter(current)
        return TextValue(target, attr, default_text, meta.parser, formatter)

    annotation = _unwrap_optional(annotation)
    origin = get_origin(annotation)

    if annotation is bool:
        return ResettableValue(
            target, attr, bool(current), parse_bool, format_bool, is_bool=True
        )
    if annotation is str:
        return ResettableValue(target, attr, current or "", str, str, type_name="string")
    if annotation is int:
        base = meta.base
        if meta.unsigned:
            if current is not None and current < 0:
                raise FlagDefinitionError(
                    f"default for unsigned field {attr!r} is negative: {current}"
                )
            return ResettableValue(
                target,
                attr,
                current or 0,
                lambda text: parse_uint(text, base),
                format_int,
                type_name="uint",
            )
        return ResettableValue(
            target,
            attr,
            current or 0,
            lambda text: parse_int(text, base),
            format_int,
            type_name="int",
        )
    if annotation is float:
        return ResettableValue(
            target, attr, float(current or 0.0), parse_float, format_float, type_name="float"
        )
    if annotation is timedelta:
        return ResettableValue(
            target,
            attr,
            current or timedelta(0),
            parse_duration,
            format_duration,
            type_name="duration",
        )
    if annotation is datetime:
        return ResettableValue(
            target, attr, current, parse_datetime, format_datetime, type_name="datetime"
        )
    if _is_enum_type(annotation):
        enum_type = annotation
        return ResettableValue(
            target,
            attr,
            current,
            lambda text: coerce_enum(text, enum_type),
            format_enum,
            type_name=enum_type.__name__.lower(),
        )
    if annotation is EnvMap:
        return EnvMapValue(target, attr)
    if origin is list:
        item_args = get_args(annotation)
        item_type = item_args[0] if item_args else str
        return _list_value(target, attr, item_type, current, meta)
    return None


def struct_var(options: Any, flag_set: FlagSet) -> None:
    """
    Register every field of the dataclass instance `options` on `flag_set`.

    Values write straight into `options`, so after a parse the dataclass
    holds the parsed flags.

    Raises:
        FlagDefinitionError: If `options` is not a dataclass instance, a field
            type is unsupported, or a default cannot be applied.
    """
    if not is_dataclass(options) or isinstance(options, type):
        raise FlagDefinitionError(
            f"expected a dataclass instance, got: {type(options).__name__}"
        )
    try:
        hints = get_type_hints(type(options))
    except NameError:
        hints = {field_info.name: field_info.type for field_info in fields(options)}
    for field_info in fields(options):
        if field_info.name.startswith("_"):
            continue
        name = flag_name_for(field_info)
        if name == "-":
            continue
        meta = field_info.metadata.get(OPTION_METADATA) or OptionSpec()
        annotation = hints.get(field_info.name, Any)
        current = getattr(options, field_info.name)
        if isinstance(current, Value):
            value: Value | None = current
        else:
            value = _field_value(options, field_info.name, annotation, current, meta)
        if value is None:
            raise FlagDefinitionError(
                f"{field_info.name!r}: unsupported field type: {annotation}"
            )
        flag_set.var(value, name, meta.help)


def flagset_struct(
    name: str,
    error_handling: ErrorHandling = ErrorHandling.CONTINUE,
    options: Any = None,
) -> FlagSet:
    """Create a `FlagSet` named `name` whose flags come from `options`."""
    flag_set = FlagSet(name, error_handling, output=options)
    if options is not None:
        struct_var(options, flag_set)
    return flag_set
