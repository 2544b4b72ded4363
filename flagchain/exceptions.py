# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines all custom exception classes used by Flagchain.

Exceptions split into two families: construction-time faults raised while a
flag set is being defined (programmer mistakes, meant to abort setup loudly),
and runtime faults raised while an argument vector is being parsed.

All exceptions inherit from `FlagchainError`.

Exception Hierarchy:
- FlagchainError
    ├── FlagDefinitionError
    ├── ValueParseError
    ├── FlagParseError
    ├── NoMatchingCommandError
    ├── UnknownCommandError
    ├── ConfigFileError
    └── MissingEnvError

`HelpSignal` (see `flagchain.signals`) is deliberately not part of this
hierarchy.
"""


class FlagchainError(Exception):
    """Base exception for Flagchain."""


class FlagDefinitionError(FlagchainError):
    """Raised when a flag or flag set is defined incorrectly.

    Examples are a default that fails to parse, a flag name registered twice,
    or an unsupported dataclass field type.
    """


class ValueParseError(FlagchainError):
    """Raised when a value cannot parse its text input."""

    def __init__(self, message: str = "parse error"):
        super().__init__(message)


class FlagParseError(FlagchainError):
    """Raised when a flag set fails to parse its arguments."""

    def __init__(self, message: str, flag_name: str | None = None):
        super().__init__(message)
        self.flag_name = flag_name


class NoMatchingCommandError(FlagchainError):
    """Raised when the arguments ran out before any command matched."""

    def __init__(self, message: str = "no matching commands"):
        super().__init__(message)


class UnknownCommandError(FlagchainError):
    """Raised when a token does not name any known command."""

    def __init__(self, command: str):
        super().__init__(f"unknown command: {command}")
        self.command = command


class ConfigFileError(FlagchainError):
    """Raised when a config file cannot be converted into arguments."""


class MissingEnvError(FlagchainError):
    """Raised when a required environment variable is not set."""

    def __init__(self, key: str, message: str):
        super().__init__(f"require env var {key}: {message}")
        self.key = key
