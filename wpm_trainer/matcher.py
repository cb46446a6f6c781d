from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .passage import PassageBuffer

BACKSPACE = "Backspace"


class CharState(str, Enum):
    PENDING = "pending"
    CURRENT = "current"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class KeyResult(str, Enum):
    IGNORED = "ignored"
    ADVANCED = "advanced"
    RETREATED = "retreated"
    COMPLETED = "completed"


@dataclass(slots=True)
class SessionCounters:
    correct_chars: int = 0
    total_chars_typed: int = 0
    errors: int = 0


class InputMatcher:
    """Per-keystroke comparison against a passage.

    State is one ``CharState`` per passage index plus a cursor. Everything
    below the cursor is CORRECT/INCORRECT, the cursor itself is CURRENT (while
    in bounds), everything above is PENDING.

    Counters only ever grow. Backspace moves the cursor and clears marks but
    an error, once counted, stays counted.
    """

    def __init__(self, passage: PassageBuffer) -> None:
        self._passage = passage
        n = passage.length()
        self._states: list[CharState] = [CharState.CURRENT] + [CharState.PENDING] * (n - 1)
        self._cursor = 0
        self.counters = SessionCounters()

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def complete(self) -> bool:
        return self._cursor >= self._passage.length()

    def states(self) -> tuple[CharState, ...]:
        return tuple(self._states)

    @staticmethod
    def is_printable(key: object) -> bool:
        return isinstance(key, str) and len(key) == 1

    def handle(self, key: object) -> KeyResult:
        if key == BACKSPACE:
            return self.backspace()
        if not self.is_printable(key):
            return KeyResult.IGNORED
        assert isinstance(key, str)
        return self.type_char(key)

    def type_char(self, ch: str) -> KeyResult:
        if self.complete:
            return KeyResult.IGNORED

        idx = self._cursor
        self.counters.total_chars_typed += 1
        if ch == self._passage.char_at(idx):
            self._states[idx] = CharState.CORRECT
            self.counters.correct_chars += 1
        else:
            self._states[idx] = CharState.INCORRECT
            self.counters.errors += 1

        self._cursor += 1
        if self.complete:
            return KeyResult.COMPLETED
        self._states[self._cursor] = CharState.CURRENT
        return KeyResult.ADVANCED

    def backspace(self) -> KeyResult:
        if self._cursor == 0:
            return KeyResult.IGNORED
        if self._cursor < len(self._states):
            self._states[self._cursor] = CharState.PENDING
        self._cursor -= 1
        self._states[self._cursor] = CharState.CURRENT
        return KeyResult.RETREATED
