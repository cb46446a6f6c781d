from __future__ import annotations

import json
from pathlib import Path

import pytest

from wpm_trainer.config import Difficulty
from wpm_trainer.passage import (
    BUILTIN_PASSAGES,
    BuiltinPassageSource,
    JsonPassageSource,
    PassageBuffer,
    PassageLoadError,
)


def test_buffer_exposes_length_and_chars() -> None:
    buf = PassageBuffer("cat")
    assert buf.length() == 3
    assert [buf.char_at(i) for i in range(3)] == ["c", "a", "t"]


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_buffer_out_of_range_fails_fast(index: int) -> None:
    with pytest.raises(IndexError):
        PassageBuffer("cat").char_at(index)


def test_buffer_rejects_empty_text() -> None:
    with pytest.raises(ValueError):
        PassageBuffer("")


def test_builtin_source_is_deterministic_per_seed() -> None:
    a = BuiltinPassageSource(seed=7)
    b = BuiltinPassageSource(seed=7)
    seq_a = [a.select_passage(Difficulty.MEDIUM) for _ in range(5)]
    seq_b = [b.select_passage(Difficulty.MEDIUM) for _ in range(5)]
    assert seq_a == seq_b
    assert all(text in BUILTIN_PASSAGES[Difficulty.MEDIUM] for text in seq_a)


def test_builtin_source_empty_pool_raises_load_error() -> None:
    src = BuiltinPassageSource(seed=1, pools={Difficulty.EASY: ("hello",)})
    assert src.select_passage(Difficulty.EASY) == "hello"
    with pytest.raises(PassageLoadError):
        src.select_passage(Difficulty.HARD)


def test_json_source_reads_difficulty_pools(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text(
        json.dumps(
            {
                "easy": [{"id": "e1", "text": "the cat sat"}],
                "hard": [{"id": "h1", "text": "Zephyr's quiz."}, {"id": "h2", "text": ""}],
            }
        ),
        encoding="utf-8",
    )
    src = JsonPassageSource(path, seed=3)
    assert src.select_passage(Difficulty.EASY) == "the cat sat"
    assert src.select_passage(Difficulty.HARD) == "Zephyr's quiz."
    with pytest.raises(PassageLoadError):
        src.select_passage(Difficulty.MEDIUM)


def test_json_source_missing_file_raises_load_error(tmp_path: Path) -> None:
    src = JsonPassageSource(tmp_path / "nope.json", seed=1)
    with pytest.raises(PassageLoadError):
        src.select_passage(Difficulty.EASY)


def test_json_source_bad_json_raises_load_error(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PassageLoadError):
        JsonPassageSource(path, seed=1).select_passage(Difficulty.EASY)
