# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines the resettable value contract every flag in a `FlagSet` is backed by.

A value is a storage cell bound to an attribute of a caller-owned object (a
dataclass instance, a `SimpleNamespace`, ...). It parses text into that
attribute, renders it back to text, and can always be restored to the default
it was declared with. The reset capability is mandatory: `FlagSetIterator`
resets every flag of a matched set before parsing so that reusing a command
name, or reusing a set across parses, never leaks values from an earlier round.

Contents:
- Value: abstract base class for the contract (set/get/render/reset/is_bool_flag).
- ResettableValue: generic scalar value with a fixed default and parse/format pair.
- TextValue: user-defined parseable type whose default is declared as text.
- DelegatingValue: adapter for foreign objects that only know how to `set`.

Failure semantics:
- `set` raises `ValueParseError` on bad input and leaves the prior value in place.
- A default that cannot be applied raises `FlagDefinitionError` at construction.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Callable, Generic, TypeVar

from flagchain.exceptions import FlagDefinitionError, ValueParseError

T = TypeVar("T")


class Value(ABC):
    """
    Abstract storage cell for a single flag.

    Subclasses must implement `set`, `get`, `render` and `reset`. Values that
    may be given on the command line without an explicit argument (boolean
    switches) override `is_bool_flag` to return True.

    `type_name` is the short label shown next to the flag in usage output
    (e.g. "string", "int"). It is empty for boolean switches.
    """

    type_name: str = "value"

    @abstractmethod
    def set(self, text: str) -> None:
        """Parse `text` and store the result. Raises `ValueParseError` on bad input."""

    @abstractmethod
    def get(self) -> Any:
        """Return the current value."""

    @abstractmethod
    def render(self) -> str:
        """Return the current value formatted as text."""

    @abstractmethod
    def reset(self) -> None:
        """Restore the declared default, replacing any container contents."""

    def is_bool_flag(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.render()


class BoundValue(Value):
    """A value whose storage is `getattr(target, attr)`."""

    def __init__(self, target: Any, attr: str) -> None:
        self.target = target
        self.attr = attr

    def _has_storage(self) -> bool:
        return self.target is not None and hasattr(self.target, self.attr)

    def _store(self, value: Any) -> None:
        if self.target is not None:
            setattr(self.target, self.attr, value)

    def get(self) -> Any:
        if not self._has_storage():
            return None
        return getattr(self.target, self.attr)


class ResettableValue(BoundValue, Generic[T]):
    """
    Scalar value with a fixed default.

    The default is written into the target on construction. `set` is
    last-write-wins and `reset` writes a copy of the default back.

    Args:
        target (Any): Object owning the storage attribute.
        attr (str): Attribute name on `target`.
        default (T): Value restored by `reset`.
        parser (Callable[[str], T]): Converts text to a value. Any exception it
            raises is reported as a generic `ValueParseError`.
        formatter (Callable[[T], str]): Converts a value back to text.
        is_bool (bool): True for switches that may appear without a value.
        type_name (str): Label shown in usage output.
    """

    def __init__(
        self,
        target: Any,
        attr: str,
        default: T,
        parser: Callable[[str], T],
        formatter: Callable[[T], str] = str,
        is_bool: bool = False,
        type_name: str = "value",
    ) -> None:
        super().__init__(target, attr)
        self.default = default
        self.parser = parser
        self.formatter = formatter
        self.is_bool = is_bool
        self.type_name = "" if is_bool else type_name
        self._store(deepcopy(default))

    def is_bool_flag(self) -> bool:
        return self.is_bool

    def set(self, text: str) -> None:
        try:
            value = self.parser(text)
        except Exception as error:
            raise ValueParseError() from error
        self._store(value)

    def render(self) -> str:
        if not self._has_storage():
            return ""
        return self.formatter(self.get())

    def reset(self) -> None:
        self._store(deepcopy(self.default))

    def __repr__(self) -> str:
        return (
            f"ResettableValue(attr={self.attr!r}, value={self.get()!r}, "
            f"default={self.default!r})"
        )


class TextValue(BoundValue):
    """
    User-defined parseable value whose default is declared as text.

    The default text is parsed on construction; a default that does not parse
    is a programmer error and raises `FlagDefinitionError` immediately.
    `reset` parses the default text again, so each reset yields a fresh object.

    Example:
        TextValue(opts, "addr", "127.0.0.1", ipaddress.ip_address)
    """

    def __init__(
        self,
        target: Any,
        attr: str,
        default_text: str,
        parser: Callable[[str], Any],
        formatter: Callable[[Any], str] = str,
        type_name: str = "value",
    ) -> None:
        super().__init__(target, attr)
        self.default_text = default_text
        self.parser = parser
        self.formatter = formatter
        self.type_name = type_name
        try:
            self._store(parser(default_text))
        except Exception as error:
            raise FlagDefinitionError(
                f"failed to set flag value {attr!r} to default {default_text!r}: {error}"
            ) from error

    def set(self, text: str) -> None:
        try:
            value = self.parser(text)
        except Exception as error:
            raise ValueParseError() from error
        self._store(value)

    def render(self) -> str:
        if not self._has_storage():
            return ""
        value = self.get()
        if value is None:
            return ""
        try:
            return self.formatter(value)
        except Exception:
            return ""

    def reset(self) -> None:
        try:
            self._store(self.parser(self.default_text))
        except Exception as error:
            raise FlagDefinitionError(
                f"failed to reset value {self.attr!r}: {error}"
            ) from error


class DelegatingValue(Value):
    """
    Adapts an object that only implements `set(text)` into a `Value`.

    `reset` re-applies `default_text` through the wrapped object's `set`.
    The default is applied once on construction so that a default which
    cannot be set fails at definition time instead of at first use.
    """

    def __init__(self, value: Any, default_text: str) -> None:
        if not callable(getattr(value, "set", None)):
            raise FlagDefinitionError(
                f"{type(value).__name__} does not implement set(text)"
            )
        self.value = value
        self.default_text = default_text
        self.type_name = getattr(value, "type_name", "value")
        self.reset()

    def is_bool_flag(self) -> bool:
        checker = getattr(self.value, "is_bool_flag", None)
        return bool(checker()) if callable(checker) else False

    def set(self, text: str) -> None:
        try:
            self.value.set(text)
        except Exception as error:
            raise ValueParseError() from error

    def get(self) -> Any:
        getter = getattr(self.value, "get", None)
        return getter() if callable(getter) else self.value

    def render(self) -> str:
        if self.value is None:
            return ""
        renderer = getattr(self.value, "render", None)
        return renderer() if callable(renderer) else str(self.value)

    def reset(self) -> None:
        try:
            self.value.set(self.default_text)
        except Exception as error:
            raise FlagDefinitionError(
                f"failed to set flag value to {self.default_text!r}: {error}"
            ) from error
