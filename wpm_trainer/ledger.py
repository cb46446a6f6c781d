"""Personal bests and recent high scores, per difficulty.

Three keys per difficulty live in the injected key/value store:

* ``typing_test_pb_<d>``  - personal-best WPM as a decimal string
* ``has_tested_<d>``      - ``"true"`` once any session has finished
* ``scores_<d>``          - JSON list of the top five ``ScoreRecord`` dicts

A missing, unreadable or corrupt value reads as its default (0, False, []).
Storage failures are logged and never raised: a broken score history must
not stop anyone from taking a test.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import Difficulty
from .persistence import KeyValueStore

MAX_RECENT_SCORES = 5

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    BASELINE = "baseline"
    NEW_RECORD = "new_record"
    ORDINARY = "ordinary"

    @property
    def headline(self) -> str:
        return _OUTCOME_TEXT[self][0]

    @property
    def subtext(self) -> str:
        return _OUTCOME_TEXT[self][1]

    @property
    def retry_label(self) -> str:
        return "Go Again" if self is Outcome.ORDINARY else "Beat This Score"


_OUTCOME_TEXT: dict[Outcome, tuple[str, str]] = {
    Outcome.BASELINE: (
        "Baseline Established!",
        "You've set the bar. Now the real challenge begins: time to beat it.",
    ),
    Outcome.NEW_RECORD: (
        "High Score Smashed!",
        "You're getting faster. That was incredible typing.",
    ),
    Outcome.ORDINARY: (
        "Test Complete!",
        "Solid run. Keep pushing to beat your high score.",
    ),
}


@dataclass(frozen=True, slots=True)
class ScoreRecord:
    wpm: int
    date: str
    id: int

    def to_dict(self) -> dict[str, Any]:
        return {"wpm": self.wpm, "date": self.date, "id": self.id}

    @classmethod
    def from_dict(cls, data: object) -> ScoreRecord | None:
        if not isinstance(data, dict):
            return None
        wpm = data.get("wpm")
        rid = data.get("id")
        if not (_is_finite_number(wpm) and _is_finite_number(rid)):
            return None
        return cls(wpm=int(wpm), date=str(data.get("date", "")), id=int(rid))


def _is_finite_number(value: object) -> bool:
    # json.loads accepts NaN and Infinity, which int() cannot convert.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def pb_key(difficulty: Difficulty) -> str:
    return f"typing_test_pb_{Difficulty(difficulty).value}"


def has_tested_key(difficulty: Difficulty) -> str:
    return f"has_tested_{Difficulty(difficulty).value}"


def scores_key(difficulty: Difficulty) -> str:
    return f"scores_{Difficulty(difficulty).value}"


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def _today() -> str:
    return dt.date.today().isoformat()


class ScoreLedger:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        id_source: Callable[[], int] | None = None,
        today: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._id_source = id_source or _wall_clock_ms
        self._today = today or _today
        self._last_id = 0
        self._last_outcome: Outcome | None = None

    def personal_best(self, difficulty: Difficulty) -> int:
        difficulty = Difficulty(difficulty)
        raw = self._read(pb_key(difficulty))
        if raw is None:
            return 0
        try:
            return max(0, int(float(raw)))
        except (ValueError, OverflowError):
            logger.warning("Ignoring corrupt personal best for %s: %r", difficulty.value, raw)
            return 0

    def has_completed(self, difficulty: Difficulty) -> bool:
        raw = self._read(has_tested_key(difficulty))
        return raw is not None and raw.strip().lower() == "true"

    def recent_scores(self, difficulty: Difficulty) -> list[ScoreRecord]:
        difficulty = Difficulty(difficulty)
        raw = self._read(scores_key(difficulty))
        if raw is None:
            return []
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring corrupt score list for %s", difficulty.value)
            return []
        if not isinstance(payload, list):
            return []

        records = [r for r in (ScoreRecord.from_dict(item) for item in payload) if r is not None]
        return _top_scores(records)

    def last_outcome(self) -> Outcome | None:
        return self._last_outcome

    def record(self, difficulty: Difficulty, wpm: int) -> Outcome:
        """Classify and store a finished session's final WPM."""

        difficulty = Difficulty(difficulty)
        wpm = max(0, int(wpm))
        previous_pb = self.personal_best(difficulty)

        if not self.has_completed(difficulty):
            outcome = Outcome.BASELINE
            self._write(has_tested_key(difficulty), "true")
        elif wpm > previous_pb:
            outcome = Outcome.NEW_RECORD
        else:
            outcome = Outcome.ORDINARY

        records = self.recent_scores(difficulty)
        records.append(ScoreRecord(wpm=wpm, date=self._today(), id=self._next_id()))
        top = _top_scores(records)
        self._write(scores_key(difficulty), json.dumps([r.to_dict() for r in top]))

        if wpm > previous_pb:
            self._write(pb_key(difficulty), str(wpm))

        self._last_outcome = outcome
        logger.info(
            "Recorded %s wpm for %s: %s (previous best %s)",
            wpm,
            difficulty.value,
            outcome.value,
            previous_pb,
        )
        return outcome

    def _next_id(self) -> int:
        candidate = int(self._id_source())
        self._last_id = candidate if candidate > self._last_id else self._last_id + 1
        return self._last_id

    def _read(self, key: str) -> str | None:
        try:
            return self._store.get(key)
        except Exception:
            logger.warning("Score store read failed for %s", key, exc_info=True)
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self._store.set(key, value)
        except Exception:
            logger.warning("Score store write failed for %s", key, exc_info=True)


def _top_scores(records: list[ScoreRecord]) -> list[ScoreRecord]:
    # Stable sort: equal scores keep insertion order.
    return sorted(records, key=lambda r: r.wpm, reverse=True)[:MAX_RECENT_SCORES]
