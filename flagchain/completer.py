# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Provides `ChainCompleter`, a Prompt Toolkit completer for chained command lines.

The input is tokenized with shell rules and replayed the way
`FlagSetIterator` would consume it: a command name opens a segment, flags
belong to that command until the first positional argument or `--`, and the
next command name may follow. The completer suggests:

- command names wherever a command may start
- `-flag` names of the active command while its flags are being typed

Suggestions are inserted with longest-common-prefix behavior and quoted when
they contain whitespace.
"""
from __future__ import annotations

import os
import shlex
from typing import Iterable, Sequence

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from flagchain.flagset import FlagSet


class ChainCompleter(Completer):
    """
    Prompt Toolkit completer over a list of flag sets.

    Args:
        flag_sets (Sequence[FlagSet]): The commands that may appear in the chain.
    """

    def __init__(self, flag_sets: Sequence[FlagSet]):
        self.flag_sets = list(flag_sets)

    def _find_set(self, name: str) -> FlagSet | None:
        for flag_set in self.flag_sets:
            if flag_set.name == name:
                return flag_set
        return None

    def _replay(self, tokens: list[str]) -> tuple[FlagSet | None, bool]:
        """
        Replay complete tokens the way the iterator would consume them.

        Returns the command whose flags are still open (None in command
        position) and whether the last token is a flag waiting for its value.
        """
        active: FlagSet | None = None
        expecting_value = False
        for token in tokens:
            if expecting_value:
                expecting_value = False
                continue
            if active is not None and token.startswith("-") and len(token) > 1:
                if token == "--":
                    active = None
                    continue
                name = token.lstrip("-")
                if "=" in name:
                    continue
                flag = active.lookup(name)
                expecting_value = flag is not None and not flag.value.is_bool_flag()
                continue
            active = self._find_set(token)
        return active, expecting_value

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        """
        Compute completions for the current input.

        Args:
            document (Document): The current Prompt Toolkit document.
            complete_event: The triggering event; not used here.

        Yields:
            Completion: Matching command or flag names.
        """
        text = document.text_before_cursor
        try:
            tokens = shlex.split(text)
        except ValueError:
            return
        cursor_at_end_of_token = text.endswith((" ", "\t")) or not tokens
        complete_tokens = tokens if cursor_at_end_of_token else tokens[:-1]
        stub = "" if cursor_at_end_of_token else tokens[-1]

        active, expecting_value = self._replay(complete_tokens)
        if expecting_value:
            return
        suggestions = [flag_set.name for flag_set in self.flag_sets]
        if active is not None:
            if stub.startswith("-"):
                suggestions = [f"-{flag.name}" for flag in active.flags]
            elif not stub:
                suggestions = suggestions + [f"-{flag.name}" for flag in active.flags]
        yield from self._yield_lcp_completions(suggestions, stub)

    def _ensure_quote(self, text: str) -> str:
        """Quote a suggestion that contains whitespace."""
        if " " in text or "\t" in text:
            return f'"{text}"'
        return text

    def _yield_lcp_completions(self, suggestions, stub):
        """
        Yield completions for `stub` using longest-common-prefix logic.

        - A single match is inserted fully.
        - Several matches sharing a longer prefix insert the prefix and list
          every match in the menu.
        - Otherwise every match is listed.
        """
        matches = [s for s in dict.fromkeys(suggestions) if s.startswith(stub)]
        if not matches:
            return

        lcp = os.path.commonprefix(matches)

        if len(matches) == 1:
            yield Completion(
                self._ensure_quote(matches[0]),
                start_position=-len(stub),
                display=matches[0],
            )
        elif len(lcp) > len(stub) and not lcp.startswith("-"):
            yield Completion(lcp, start_position=-len(stub), display=lcp)
            for match in matches:
                yield Completion(
                    self._ensure_quote(match), start_position=-len(stub), display=match
                )
        else:
            for match in matches:
                yield Completion(
                    self._ensure_quote(match), start_position=-len(stub), display=match
                )
