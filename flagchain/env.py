# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Hierarchical environment lookup.

An `Env` is a chain of key/value sources. A lookup asks the nearest source
first and falls back to its parent, so a config-provided environment can
shadow the process environment without copying it:

    system = env_system()
    local = env_file(system, ".env")
    local.get_or("REGION", "us-east-1")

Contents:
- Lookuper: protocol every source implements (`lookup`, `names`).
- EnvMap: a dict of key -> list of values; repeated keys accumulate.
- EnvMapValue: flag value collecting `-env KEY=VALUE` pairs into an EnvMap.
- CapturingEnvMap: records every lookup so callers can list the variables
  a program reads (for generating sample environment files).
- Env, env_system, env_file: the chain and its common constructors.
"""
from __future__ import annotations

import functools
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from flagchain.config import read_environ_file
from flagchain.exceptions import MissingEnvError
from flagchain.logger import logger
from flagchain.values import BoundValue


class Lookuper(Protocol):
    """A key/value source that an `Env` can consult."""

    def lookup(
        self, key: str, *, required: bool = False, default: list[str] | None = None
    ) -> list[str] | None: ...

    def names(self) -> list[str]: ...


class EnvMap(dict):
    """
    Environment variables as `key -> [values]`.

    Setting a key again appends, so the same variable can be given more than
    once on the command line.
    """

    def lookup(
        self, key: str, *, required: bool = False, default: list[str] | None = None
    ) -> list[str] | None:
        return self.get(key)

    def names(self) -> list[str]:
        return sorted(self)

    def add(self, key: str, value: str) -> None:
        self.setdefault(key, []).append(value)

    def add_assignment(self, text: str) -> None:
        """Add a `KEY=VALUE` assignment; a bare `KEY` stores an empty value."""
        key, _, value = text.partition("=")
        self.add(key, value)

    def to_text(self) -> str:
        lines = []
        for key, values in self.items():
            for value in values:
                lines.append(f"{key}={json.dumps(value)}")
        return "".join(f"{line}\n" for line in lines)


class EnvMapValue(BoundValue):
    """Accumulating flag value backed by an `EnvMap` (`-env KEY=VALUE`)."""

    type_name = "KEY=VALUE"

    def __init__(self, target: Any, attr: str) -> None:
        super().__init__(target, attr)
        self.reset()

    def set(self, text: str) -> None:
        env_map = self.get()
        if env_map is None:
            env_map = EnvMap()
            self._store(env_map)
        env_map.add_assignment(text)

    def render(self) -> str:
        env_map = self.get()
        if not env_map:
            return ""
        return env_map.to_text()

    def reset(self) -> None:
        self._store(EnvMap())


@dataclass
class EnvUsage:
    """One recorded lookup: the key, its fallback default and whether it was required."""

    key: str
    default: list[str] = field(default_factory=list)
    required: bool = False


class CapturingEnvMap:
    """
    Records lookups instead of answering them.

    Every lookup is deferred to the parent `Env`, so wrapping the real
    environment in a capturing layer does not change program behavior.
    """

    def __init__(self) -> None:
        self.usages: list[EnvUsage] = []

    def lookup(
        self, key: str, *, required: bool = False, default: list[str] | None = None
    ) -> list[str] | None:
        if default:
            self.usages.append(EnvUsage(key=key, default=list(default)))
        elif required:
            self.usages.append(EnvUsage(key=key, required=True))
        else:
            self.usages.append(EnvUsage(key=key))
        return None

    def names(self) -> list[str]:
        return []

    def usages_as_environ(self, required_value: str) -> list[tuple[str, str]]:
        """
        Render the recorded usages as unique `(key, value)` pairs.

        Defaults are used when known; required keys get `required_value`;
        anything else gets an empty value.
        """
        environ: list[tuple[str, str]] = []

        def add(pair: tuple[str, str]) -> None:
            if pair not in environ:
                environ.append(pair)

        for usage in self.usages:
            if usage.default:
                for value in usage.default:
                    add((usage.key, value))
            elif usage.required:
                add((usage.key, required_value))
            else:
                add((usage.key, ""))
        return environ


class Env:
    """
    A node in a chain of environment sources.

    Args:
        parent (Env | None): Where lookups go when this node has no answer.
        mapping (Lookuper | None): This node's own source.
    """

    def __init__(self, parent: Env | None = None, mapping: Lookuper | None = None) -> None:
        self.parent = parent
        self.mapping = mapping

    def _lookup_many(
        self, key: str, *, required: bool = False, default: list[str] | None = None
    ) -> list[str] | None:
        env: Env | None = self
        while env is not None:
            if env.mapping is not None:
                values = env.mapping.lookup(key, required=required, default=default)
                if values is not None:
                    return values
            env = env.parent
        return None

    def _lookup(
        self, key: str, *, required: bool = False, default: list[str] | None = None
    ) -> str | None:
        values = self._lookup_many(key, required=required, default=default)
        if values:
            return values[0]
        return None

    def lookup(self, key: str) -> str | None:
        """Return the first value for `key`, or None if no source has it."""
        return self._lookup(key)

    def get_or_error(self, key: str, message: str) -> str:
        value = self._lookup(key, required=True)
        if value is None:
            raise MissingEnvError(key, message)
        return value

    def get_or(self, key: str, default: str) -> str:
        value = self._lookup(key, default=[default])
        if value is None:
            return default
        return value

    def get(self, key: str) -> str:
        return self.get_or(key, "")

    def keys(self) -> list[str]:
        """All keys visible from this node: its own first, then unseen parent keys."""
        keys = list(self.mapping.names()) if self.mapping is not None else []
        if self.parent is not None:
            for key in self.parent.keys():
                if key not in keys:
                    keys.append(key)
        return keys

    def as_dict(self) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for key in self.keys():
            values = self._lookup_many(key)
            if values is not None:
                result[key] = list(values)
        return result

    def pairs(self) -> list[tuple[str, str]]:
        result: list[tuple[str, str]] = []
        for key in self.keys():
            for value in self._lookup_many(key) or []:
                result.append((key, value))
        return result


@functools.cache
def _system_env_map() -> EnvMap:
    env_map = EnvMap()
    for key, value in os.environ.items():
        env_map.add(key, value)
    return env_map


def env_system(parent: Env | None = None) -> Env:
    """An `Env` over a snapshot of the process environment taken on first use."""
    return Env(parent, _system_env_map())


def env_file(parent: Env | None, path: str | Path) -> Env:
    """
    An `Env` over the `KEY=VALUE` lines of an environment file.

    Raises:
        OSError: If the file cannot be read.
    """
    env_map = EnvMap()
    for key, value in read_environ_file(path):
        env_map.add(key, value)
    logger.debug("Loaded %d environment entries from '%s'.", len(env_map), path)
    return Env(parent, env_map)
