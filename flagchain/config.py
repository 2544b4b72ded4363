# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""config.py
File-based configuration for Flagchain command lines.

Three formats are understood:

- Argument files (a la pip): shell-style text whose tokens are used as-is.
  Lines whose first non-blank character is `#` are comments.

      # deploy settings
      deploy -env prod -tag "release candidate"
      test -v

- Environment files: `KEY=VALUE` lines, `#` comments at line start.
- Structured command files (YAML or TOML), validated with pydantic and
  flattened into a chained argument vector:

      commands:
        - name: deploy
          options: {env: prod, tag: [a, b], dry-run: true}
        - name: test
          args: [./...]
"""
from __future__ import annotations

import json
import shlex
from pathlib import Path
from typing import Any

import toml
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from flagchain.exceptions import ConfigFileError
from flagchain.logger import logger


def _strip_comment_lines(text: str) -> str:
    lines = [line for line in text.splitlines() if not line.lstrip().startswith("#")]
    return " ".join(lines)


def parse_config_file(text: str) -> list[str]:
    """
    Convert the contents of an argument file into command-line arguments.

    Comment lines are dropped, the remaining lines are joined with spaces
    and the result is split by shell quoting rules. A `#` anywhere else is
    ordinary text, so `http://host/#anchor` survives intact.

    Raises:
        ConfigFileError: If the text cannot be tokenized (e.g. an unclosed quote).
    """
    lexer = shlex.shlex(_strip_comment_lines(text), posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    tokens: list[str] = []
    try:
        for token in lexer:
            tokens.append(token)
    except ValueError as error:
        context = " ".join(tokens[-4:])
        raise ConfigFileError(
            f"failed to parse config file: {error} (maybe right after {json.dumps(context)})"
        ) from error
    return tokens


def read_config_file(path: str | Path) -> list[str]:
    """
    Read an argument file from disk and convert it to command-line arguments.

    Raises:
        OSError: If the file cannot be read.
        ConfigFileError: If the contents cannot be tokenized.
    """
    text = Path(path).read_text(encoding="UTF-8")
    return parse_config_file(text)


def parse_environ_file(text: str) -> list[tuple[str, str]]:
    """
    Parse environment-file text into `(key, value)` pairs.

    Lines starting with `#` and lines without `=` are ignored. Only the first
    `=` separates key from value.
    """
    pairs: list[tuple[str, str]] = []
    for line in text.split("\n"):
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        pairs.append((key, value))
    return pairs


def read_environ_file(path: str | Path) -> list[tuple[str, str]]:
    return parse_environ_file(Path(path).read_text(encoding="UTF-8"))


class RawCommandConfig(BaseModel):
    """One command entry of a structured command file."""

    name: str
    options: dict[str, Any] = Field(default_factory=dict)
    args: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value or value.startswith("-"):
            raise ValueError(f"invalid command name: {value!r}")
        return value

    @field_validator("args", mode="before")
    @classmethod
    def stringify_args(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    def to_args(self) -> list[str]:
        """Flatten this entry into `name -opt=value ... args...`."""
        tokens = [self.name]
        for key, value in self.options.items():
            tokens.extend(_option_tokens(key, value))
        tokens.extend(self.args)
        return tokens


class CommandConfigFile(BaseModel):
    """Top-level model of a structured command file."""

    commands: list[RawCommandConfig] = Field(default_factory=list)

    def to_args(self) -> list[str]:
        tokens: list[str] = []
        for entry in self.commands:
            tokens.extend(entry.to_args())
        return tokens


def _option_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _option_tokens(key: str, value: Any) -> list[str]:
    flag = f"-{key.lstrip('-')}"
    if value is None:
        return []
    if value is True:
        return [flag]
    if isinstance(value, (list, tuple)):
        return [f"{flag}={_option_text(item)}" for item in value]
    return [f"{flag}={_option_text(value)}"]


def load_command_config(file_path: str | Path) -> list[str]:
    """
    Load a YAML or TOML command file and flatten it into chained arguments.

    Option values become `-key=value` tokens, `true` becomes a bare `-key`,
    lists repeat the flag once per item and `null` omits the option.

    Args:
        file_path (str | Path): Path to a `.yaml`, `.yml` or `.toml` file.

    Returns:
        list[str]: Arguments ready for `FlagSetIterator`.

    Raises:
        FileNotFoundError: If the path is not a file.
        ConfigFileError: If the format is unsupported or the contents are invalid.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"No such config file: {file_path}")

    suffix = path.suffix
    with path.open("r", encoding="UTF-8") as config_file:
        try:
            if suffix in (".yaml", ".yml"):
                raw_config = yaml.safe_load(config_file)
            elif suffix == ".toml":
                raw_config = toml.load(config_file)
            else:
                raise ConfigFileError(f"Unsupported config format: {suffix}")
        except (yaml.YAMLError, toml.TomlDecodeError) as error:
            raise ConfigFileError(f"failed to parse config file: {error}") from error

    if not isinstance(raw_config, dict):
        raise ConfigFileError(
            "Configuration file must contain a dictionary with a list of commands.\n"
            "Example:\n"
            "commands:\n"
            "  - name: 'deploy'\n"
            "    options: {env: 'prod'}"
        )

    try:
        config = CommandConfigFile.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigFileError(f"invalid config file {path}: {error}") from error

    args = config.to_args()
    logger.debug(
        "Loaded %d command(s) from '%s': %s", len(config.commands), path, args
    )
    return args
