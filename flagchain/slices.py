# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Accumulating flag values: every occurrence of the flag appends to a list.

    -tag a -tag b    ->    ["a", "b"]

`reset` binds a brand new list to the target attribute rather than clearing
the old one, so a list handed out after an earlier parse is never mutated by
a later round.

Classes:
- SliceValue: base class parameterised by an item parser and formatter.
- StringSlice, IntSlice, UintSlice, FloatSlice: the concrete item kinds.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable

from flagchain.exceptions import ValueParseError
from flagchain.utils import format_float, format_int, parse_float, parse_int, parse_uint
from flagchain.values import BoundValue


class SliceValue(BoundValue):
    """
    Base class for list-valued flags.

    An empty string passed to `set` is ignored.
    """

    type_name = "value"

    def __init__(
        self,
        target: Any,
        attr: str,
        item_parser: Callable[[str], Any],
        item_formatter: Callable[[Any], str] = str,
        default: Iterable[Any] | None = None,
    ) -> None:
        super().__init__(target, attr)
        self.item_parser = item_parser
        self.item_formatter = item_formatter
        self.default = tuple(default or ())
        self.reset()

    def set(self, text: str) -> None:
        if text == "":
            return
        try:
            item = self.item_parser(text)
        except Exception as error:
            raise ValueParseError() from error
        items = self.get()
        if items is None:
            items = []
            self._store(items)
        items.append(item)

    def render(self) -> str:
        items = self.get()
        if not items:
            return ""
        return ", ".join(self.item_formatter(item) for item in items)

    def reset(self) -> None:
        self._store(list(self.default))

    def __len__(self) -> int:
        return len(self.get() or [])


class StringSlice(SliceValue):
    type_name = "string"

    def __init__(self, target: Any, attr: str, default: Iterable[str] | None = None):
        super().__init__(target, attr, str, str, default)


class IntSlice(SliceValue):
    type_name = "int"

    def __init__(
        self,
        target: Any,
        attr: str,
        default: Iterable[int] | None = None,
        base: int = 10,
    ):
        super().__init__(target, attr, lambda text: parse_int(text, base), format_int, default)


class UintSlice(SliceValue):
    type_name = "uint"

    def __init__(
        self,
        target: Any,
        attr: str,
        default: Iterable[int] | None = None,
        base: int = 10,
    ):
        super().__init__(
            target, attr, lambda text: parse_uint(text, base), format_int, default
        )


class FloatSlice(SliceValue):
    type_name = "float"

    def __init__(self, target: Any, attr: str, default: Iterable[float] | None = None):
        super().__init__(target, attr, parse_float, format_float, default)
