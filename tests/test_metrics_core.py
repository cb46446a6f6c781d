from __future__ import annotations

import pytest

from wpm_trainer.metrics import (
    IDLE_METRICS,
    LiveMetrics,
    accuracy_percent,
    compute_metrics,
    round_half_up,
    words_per_minute,
)


def test_accuracy_defaults_to_100_before_input() -> None:
    assert accuracy_percent(correct_chars=0, total_chars_typed=0) == 100
    assert IDLE_METRICS == LiveMetrics(wpm=0, accuracy=100)


@pytest.mark.parametrize(
    "correct,total,expected",
    [(3, 3, 100), (2, 3, 67), (4, 5, 80), (0, 4, 0), (1, 8, 13)],
)
def test_accuracy_rounding(correct: int, total: int, expected: int) -> None:
    assert accuracy_percent(correct_chars=correct, total_chars_typed=total) == expected


def test_wpm_uses_five_chars_per_word() -> None:
    # 150 correct chars in 60s -> 30 words in 1 minute.
    assert words_per_minute(correct_chars=150, elapsed_s=60.0) == 30
    # 45 correct chars in 30s -> 9 words in 0.5 minutes.
    assert words_per_minute(correct_chars=45, elapsed_s=30.0) == 18


@pytest.mark.parametrize("elapsed", [None, 0.0, -1.0])
def test_wpm_is_zero_without_elapsed_time(elapsed: float | None) -> None:
    assert words_per_minute(correct_chars=10, elapsed_s=elapsed) == 0


def test_round_half_up() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(66.6667) == 67
    assert round_half_up(0.49) == 0


def test_compute_metrics_is_idempotent_and_bounded() -> None:
    a = compute_metrics(correct_chars=37, total_chars_typed=41, elapsed_s=17.3)
    b = compute_metrics(correct_chars=37, total_chars_typed=41, elapsed_s=17.3)
    assert a == b
    for correct in range(0, 20):
        for total in range(correct, 25):
            m = compute_metrics(correct_chars=correct, total_chars_typed=total, elapsed_s=5.0)
            assert m.wpm >= 0
            assert 0 <= m.accuracy <= 100
