"""Live typing metrics.

WPM follows the usual five-characters-per-word convention and counts only
correctly typed characters. Accuracy is correct keystrokes over all
printable keystrokes, and reads 100 before anything has been typed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

CHARS_PER_WORD = 5


@dataclass(frozen=True, slots=True)
class LiveMetrics:
    wpm: int
    accuracy: int


IDLE_METRICS = LiveMetrics(wpm=0, accuracy=100)


def round_half_up(x: float) -> int:
    # Halves round toward +inf (12.5 -> 13), unlike Python's round().
    return int(math.floor(x + 0.5))


def words_per_minute(*, correct_chars: int, elapsed_s: float | None) -> int:
    if elapsed_s is None:
        return 0
    elapsed_min = elapsed_s / 60.0
    if elapsed_min <= 0.0 or correct_chars <= 0:
        return 0
    return round_half_up(correct_chars / CHARS_PER_WORD / elapsed_min)


def accuracy_percent(*, correct_chars: int, total_chars_typed: int) -> int:
    if total_chars_typed <= 0:
        return 100
    ratio = max(0.0, min(1.0, correct_chars / total_chars_typed))
    return round_half_up(ratio * 100.0)


def compute_metrics(*, correct_chars: int, total_chars_typed: int, elapsed_s: float | None) -> LiveMetrics:
    return LiveMetrics(
        wpm=words_per_minute(correct_chars=correct_chars, elapsed_s=elapsed_s),
        accuracy=accuracy_percent(correct_chars=correct_chars, total_chars_typed=total_chars_typed),
    )
