import logging
from datetime import datetime, timedelta
from enum import Enum

import pytest
from pythonjsonlogger.json import JsonFormatter
from rich.logging import RichHandler

from flagchain.utils import (
    coerce_enum,
    format_duration,
    format_enum,
    format_float,
    parse_bool,
    parse_datetime,
    parse_duration,
    parse_int,
    parse_uint,
    setup_logging,
)


class Color(Enum):
    RED = "red"
    GREEN = "green"


class Level(Enum):
    LOW = 1
    HIGH = 2


@pytest.mark.parametrize("text", ["1", "t", "T", "TRUE", "true", "True"])
def test_parse_bool_true(text):
    assert parse_bool(text) is True


@pytest.mark.parametrize("text", ["0", "f", "F", "FALSE", "false", "False"])
def test_parse_bool_false(text):
    assert parse_bool(text) is False


@pytest.mark.parametrize("text", ["yes", "no", "", "tRuE", "2"])
def test_parse_bool_rejects_loose_spellings(text):
    with pytest.raises(ValueError):
        parse_bool(text)


def test_parse_int_bases():
    assert parse_int("42") == 42
    assert parse_int("-7") == -7
    assert parse_int("ff", 16) == 255
    assert parse_int("0x1f", 0) == 31


def test_parse_uint_rejects_sign():
    assert parse_uint("12") == 12
    with pytest.raises(ValueError):
        parse_uint("-1")
    with pytest.raises(ValueError):
        parse_uint("+1")


@pytest.mark.parametrize("text", [" 5", "5\n", "5 ", "1_000"])
def test_parse_int_rejects_padding_and_separators(text):
    with pytest.raises(ValueError):
        parse_int(text)
    with pytest.raises(ValueError):
        parse_uint(text)


def test_parse_int_base_zero_allows_separators():
    assert parse_int("1_000", 0) == 1000
    assert parse_uint("0x_ff", 0) == 255


def test_format_float_drops_integral_suffix():
    assert format_float(2.0) == "2"
    assert format_float(0.1) == "0.1"
    assert format_float(-1.5) == "-1.5"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0", timedelta(0)),
        ("300ms", timedelta(milliseconds=300)),
        ("1.5ms", timedelta(microseconds=1500)),
        ("250us", timedelta(microseconds=250)),
        ("250µs", timedelta(microseconds=250)),
        ("2h45m", timedelta(hours=2, minutes=45)),
        ("1m30s", timedelta(seconds=90)),
        ("-1.5h", -timedelta(hours=1, minutes=30)),
        ("+10s", timedelta(seconds=10)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "h", "1x", "-", "1h30"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


@pytest.mark.parametrize(
    "value, expected",
    [
        (timedelta(0), "0s"),
        (timedelta(microseconds=250), "250µs"),
        (timedelta(microseconds=1500), "1.5ms"),
        (timedelta(seconds=1.5), "1.5s"),
        (timedelta(seconds=90), "1m30s"),
        (timedelta(hours=1), "1h0m0s"),
        (timedelta(seconds=-90), "-1m30s"),
    ],
)
def test_format_duration(value, expected):
    assert format_duration(value) == expected


def test_format_duration_is_accepted_by_parse_duration():
    value = timedelta(hours=2, minutes=3, seconds=4, milliseconds=500)
    assert parse_duration(format_duration(value)) == value


def test_parse_datetime():
    assert parse_datetime("2024-05-01T12:30:00") == datetime(2024, 5, 1, 12, 30)
    with pytest.raises(ValueError):
        parse_datetime("not a date")


def test_coerce_enum_by_name_and_value():
    assert coerce_enum("RED", Color) is Color.RED
    assert coerce_enum("green", Color) is Color.GREEN
    assert coerce_enum("2", Level) is Level.HIGH
    with pytest.raises(ValueError):
        coerce_enum("BLUE", Color)


def test_format_enum():
    assert format_enum(Color.RED) == "RED"
    assert format_enum(None) == ""


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_json(restore_root_logger, tmp_path):
    log_file = tmp_path / "flagchain.log"
    setup_logging("json", log_filename=str(log_file), json_log_to_file=True)
    handlers = restore_root_logger.handlers
    assert len(handlers) == 2
    assert all(isinstance(handler.formatter, JsonFormatter) for handler in handlers)
    logging.getLogger("flagchain").debug("hello")
    for handler in handlers:
        handler.flush()
    assert '"message": "hello"' in log_file.read_text()


def test_setup_logging_cli_uses_rich(restore_root_logger):
    setup_logging("cli")
    assert isinstance(restore_root_logger.handlers[0], RichHandler)


def test_setup_logging_env_mode(restore_root_logger, monkeypatch):
    monkeypatch.setenv("FLAGCHAIN_LOG_MODE", "json")
    setup_logging()
    assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)


def test_setup_logging_invalid_mode(restore_root_logger):
    with pytest.raises(ValueError):
        setup_logging("xml")
