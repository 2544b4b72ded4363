"""
Flagchain CLI Toolkit

Copyright (c) 2025 rtj.dev LLC.
Licensed under the MIT License. See LICENSE file for details.
"""

import logging

from .exceptions import (
    ConfigFileError,
    FlagchainError,
    FlagDefinitionError,
    FlagParseError,
    MissingEnvError,
    NoMatchingCommandError,
    UnknownCommandError,
    ValueParseError,
)
from .flagset import ErrorHandling, Flag, FlagSet
from .signals import HelpSignal
from .structs import command, flagset_struct, option, struct_var
from .subcommands import (
    CommandIterator,
    FlagSetDefinition,
    FlagSetIterator,
    FlagSets,
    IteratorState,
    command_string,
    flagsets_from_struct,
)
from .values import ResettableValue, TextValue, Value

logger = logging.getLogger("flagchain")


__all__ = [
    "CommandIterator",
    "ConfigFileError",
    "ErrorHandling",
    "Flag",
    "FlagDefinitionError",
    "FlagParseError",
    "FlagSet",
    "FlagSetDefinition",
    "FlagSetIterator",
    "FlagSets",
    "FlagchainError",
    "HelpSignal",
    "IteratorState",
    "MissingEnvError",
    "NoMatchingCommandError",
    "ResettableValue",
    "TextValue",
    "UnknownCommandError",
    "Value",
    "ValueParseError",
    "command",
    "command_string",
    "flagset_struct",
    "flagsets_from_struct",
    "option",
    "struct_var",
]
