from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from wpm_trainer.config import Difficulty
from wpm_trainer.ledger import ScoreLedger
from wpm_trainer.persistence import SqliteStore


def _key(key: int, unicode: str = "") -> object:
    import pygame

    return pygame.event.Event(pygame.KEYDOWN, {"key": key, "unicode": unicode, "mod": 0})


def test_ui_smoke_start_type_and_finish(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Headless SDL for CI.
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    passages = tmp_path / "data.json"
    passages.write_text(json.dumps({"easy": [{"id": "e1", "text": "hi"}], "hard": [{"text": "hi"}]}))
    db = tmp_path / "scores.sqlite3"
    monkeypatch.setenv("WPM_TRAINER_PASSAGES_PATH", str(passages))
    monkeypatch.setenv("WPM_TRAINER_DB_PATH", str(db))

    import pygame

    from wpm_trainer.app import run

    def inject(frame: int) -> None:
        # Easy -> start -> "h", backspace, "h", "i" -> results -> retry.
        script = {
            1: _key(pygame.K_F1),
            2: _key(pygame.K_RETURN, "\r"),
            3: _key(pygame.K_h, "h"),
            4: _key(pygame.K_BACKSPACE, "\b"),
            5: _key(pygame.K_h, "h"),
            6: _key(pygame.K_TAB, "\t"),
            8: _key(pygame.K_i, "i"),
            10: _key(pygame.K_RETURN, "\r"),
        }
        event = script.get(frame)
        if event is not None:
            pygame.event.post(event)

    assert run(max_frames=15, event_injector=inject) == 0

    with SqliteStore(db) as store:
        ledger = ScoreLedger(store)
        assert ledger.has_completed(Difficulty.EASY)
        assert len(ledger.recent_scores(Difficulty.EASY)) == 1
