from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DB_PATH_ENV = "WPM_TRAINER_DB_PATH"
PASSAGES_PATH_ENV = "WPM_TRAINER_PASSAGES_PATH"
LOG_LEVEL_ENV = "WPM_TRAINER_LOG_LEVEL"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Mode(str, Enum):
    """Display preference chosen while idle. The countdown runs in every mode."""

    TIMED = "timed"
    PASSAGE = "passage"

    @property
    def label(self) -> str:
        return "Timed (60s)" if self is Mode.TIMED else "Passage"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    countdown_s: int = 60
    tick_interval_s: float = 1.0
    difficulty: Difficulty = Difficulty.HARD
    mode: Mode = Mode.TIMED

    def __post_init__(self) -> None:
        if self.countdown_s <= 0:
            raise ValueError("countdown_s must be > 0")
        if self.tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be > 0")
