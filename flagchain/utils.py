# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Text coercion helpers and logging setup for Flagchain.

Every flag value is parsed from, and rendered back to, plain text. This module
holds the parse/format pairs used by the typed values in `flagchain.values`
and `flagchain.slices`:

- parse_bool / format_bool: strict boolean spelling ("1", "t", "true", ...).
- parse_int / parse_uint / format_int: integers in an explicit base.
- parse_float / format_float: shortest round-trip float text.
- parse_duration / format_duration: `timedelta` in the "1h30m5s" grammar.
- parse_datetime / format_datetime: datetimes via `dateutil`.
- coerce_enum: resolve an Enum member by name or value.

It also provides `setup_logging`, which wires the "flagchain" logger to a
Rich console handler or a JSON formatter.
"""
from __future__ import annotations

import logging
import os
import re
import shutil
import sys
from datetime import datetime, timedelta
from enum import Enum, EnumMeta
from typing import Any

import pythonjsonlogger.json
from dateutil import parser as date_parser
from rich.logging import RichHandler

_TRUE_TEXT = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_TEXT = {"0", "f", "F", "FALSE", "false", "False"}

_DURATION_UNITS: dict[str, float] = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1_000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}
_DURATION_PART = re.compile(r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)")


def get_program_invocation() -> str:
    """Returns the recommended program invocation prefix."""
    script = sys.argv[0]
    program = shutil.which(script)
    if program:
        return os.path.basename(program)

    executable = sys.executable
    if "python" in executable:
        return f"python {script}"
    return script


def parse_bool(value: str) -> bool:
    """
    Convert text to a boolean.

    Only the strict spellings are accepted: 1, t, T, TRUE, true, True and
    0, f, F, FALSE, false, False.

    Raises:
        ValueError: If the text is not one of the accepted spellings.
    """
    if isinstance(value, bool):
        return value
    if value in _TRUE_TEXT:
        return True
    if value in _FALSE_TEXT:
        return False
    raise ValueError(f"invalid syntax for bool: {value!r}")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def _check_int_text(value: str, base: int, kind: str) -> None:
    if value != value.strip() or ("_" in value and base != 0):
        raise ValueError(f"invalid syntax for {kind}: {value!r}")


def parse_int(value: str, base: int = 10) -> int:
    """
    Parse a signed integer in the given base.

    Base 0 auto-detects 0x/0o/0b prefixes and allows `_` separators.
    Surrounding whitespace is rejected.
    """
    _check_int_text(value, base, "integer")
    return int(value, base)


def parse_uint(value: str, base: int = 10) -> int:
    """Parse an unsigned integer. A leading sign is rejected."""
    _check_int_text(value, base, "unsigned integer")
    if value.startswith(("-", "+")):
        raise ValueError(f"invalid syntax for unsigned integer: {value!r}")
    return int(value, base)


def format_int(value: int) -> str:
    return str(value)


def parse_float(value: str) -> float:
    return float(value)


def format_float(value: float) -> str:
    """Format a float with the shortest text that round-trips."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string such as "300ms", "-1.5h" or "2h45m".

    A duration is an optionally signed sequence of decimal numbers, each with
    an optional fraction and a unit suffix. Valid units are "ns", "us" (or
    "µs"), "ms", "s", "m", "h". The bare string "0" is also accepted.
    Sub-microsecond precision is rounded to the nearest microsecond.

    Raises:
        ValueError: If the text is not a valid duration.
    """
    text = value.strip()
    original = text
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {original!r}")

    total_us = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if not match or match.group(1) in ("", "."):
            raise ValueError(f"invalid duration {original!r}")
        total_us += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    return timedelta(microseconds=sign * round(total_us))


def _format_fraction(whole: int, fraction: int, digits: int) -> str:
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction:0{digits}d}".rstrip("0")


def format_duration(value: timedelta) -> str:
    """
    Format a `timedelta` in the same grammar `parse_duration` accepts.

    Examples:
        timedelta(0)                       -> "0s"
        timedelta(milliseconds=1.5)        -> "1.5ms"
        timedelta(seconds=90)              -> "1m30s"
        timedelta(hours=1)                 -> "1h0m0s"
    """
    total_us = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if total_us == 0:
        return "0s"
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)

    if total_us < 1_000:
        return f"{sign}{total_us}µs"
    if total_us < 1_000_000:
        whole, fraction = divmod(total_us, 1_000)
        return f"{sign}{_format_fraction(whole, fraction, 3)}ms"

    hours, rest = divmod(total_us, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds, micros = divmod(rest, 1_000_000)
    seconds_text = f"{_format_fraction(seconds, micros, 6)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds_text}"
    if minutes:
        return f"{sign}{minutes}m{seconds_text}"
    return f"{sign}{seconds_text}"


def parse_datetime(value: str) -> datetime:
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as error:
        raise ValueError(f"Value '{value}' could not be parsed as a datetime") from error


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat()


def coerce_enum(value: Any, enum_type: EnumMeta) -> Any:
    """
    Convert a raw value or string to an Enum instance.

    Tries to resolve by name, value, or coerced base type.

    Raises:
        ValueError: If the value cannot be resolved to a valid Enum member.
    """
    if isinstance(value, enum_type):
        return value

    if isinstance(value, str):
        try:
            return enum_type[value]
        except KeyError:
            pass

    base_type = type(next(iter(enum_type)).value)
    try:
        coerced_value = base_type(value)
        return enum_type(coerced_value)
    except (ValueError, TypeError):
        values = [str(enum.value) for enum in enum_type]
        raise ValueError(f"'{value}' should be one of {{{', '.join(values)}}}") from None


def format_enum(value: Enum | None) -> str:
    if value is None:
        return ""
    return value.name


def running_in_container() -> bool:
    try:
        with open("/proc/1/cgroup", "r", encoding="UTF-8") as f:
            content = f.read()
            return (
                "docker" in content
                or "kubepods" in content
                or "containerd" in content
                or "podman" in content
            )
    except OSError:
        return False


def setup_logging(
    mode: str | None = None,
    log_filename: str | None = None,
    json_log_to_file: bool = False,
    file_log_level: int = logging.DEBUG,
    console_log_level: int = logging.WARNING,
) -> None:
    """
    Configure logging for Flagchain with CLI-friendly or structured JSON output.

    Args:
        mode (str | None):
            Logging output mode. Can be:
                - "cli": human-readable Rich console logs (default outside containers)
                - "json": machine-readable JSON logs (default inside containers)
            If not provided, it will use the `FLAGCHAIN_LOG_MODE` environment
            variable or fallback based on container detection.
        log_filename (str | None):
            Optional path to a log file. No file handler is installed when None.
        json_log_to_file (bool):
            Whether to format file logs as JSON instead of plain text.
        file_log_level (int):
            Logging level for file output. Defaults to `logging.DEBUG`.
        console_log_level (int):
            Logging level for console output. Defaults to `logging.WARNING`.

    Raises:
        ValueError: If an invalid logging `mode` is passed.
    """
    if not mode:
        mode = os.getenv("FLAGCHAIN_LOG_MODE") or (
            "json" if running_in_container() else "cli"
        )

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    if root.hasHandlers():
        root.handlers.clear()

    if mode == "cli":
        console_handler: RichHandler | logging.StreamHandler = RichHandler(
            rich_tracebacks=True,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )
    elif mode == "json":
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            pythonjsonlogger.json.JsonFormatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s"
            )
        )
    else:
        raise ValueError(f"Invalid log mode: {mode}")

    console_handler.setLevel(console_log_level)
    root.addHandler(console_handler)

    if log_filename:
        file_handler = logging.FileHandler(log_filename, "a", "UTF-8")
        file_handler.setLevel(file_log_level)
        if json_log_to_file:
            file_handler.setFormatter(
                pythonjsonlogger.json.JsonFormatter(
                    "%(asctime)s %(name)s %(levelname)s %(message)s"
                )
            )
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(name)s] [%(levelname)s] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        root.addHandler(file_handler)

    logger = logging.getLogger("flagchain")
    logger.propagate = True
    logger.debug("Logging initialized in '%s' mode.", mode)
