from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Protocol

from .config import Difficulty

logger = logging.getLogger(__name__)


class PassageLoadError(RuntimeError):
    """A passage source could not supply text for a difficulty."""


class PassageSource(Protocol):
    def select_passage(self, difficulty: Difficulty) -> str: ...


class PassageBuffer:
    """Immutable reference text for one session."""

    __slots__ = ("_text",)

    def __init__(self, text: str) -> None:
        if not text:
            raise ValueError("passage text must be non-empty")
        self._text = str(text)

    @property
    def text(self) -> str:
        return self._text

    def length(self) -> int:
        return len(self._text)

    def char_at(self, index: int) -> str:
        # Negative indices would silently wrap in Python; reject them too.
        if not (0 <= index < len(self._text)):
            raise IndexError(f"passage index {index} out of range [0, {len(self._text)})")
        return self._text[index]

    def __len__(self) -> int:
        return len(self._text)


BUILTIN_PASSAGES: dict[Difficulty, tuple[str, ...]] = {
    Difficulty.EASY: (
        "The sun rose over the quiet town. Birds sang in the trees as people "
        "started their day. It was going to be a warm and pleasant morning.",
        "A small dog ran across the park to catch a red ball. Its owner laughed "
        "and threw the ball again, farther this time.",
        "We packed a lunch and walked down to the lake. The water was calm and "
        "clear, so we sat on the dock and watched the boats go by.",
    ),
    Difficulty.MEDIUM: (
        "Learning a new skill takes patience and consistent practice. Small, "
        "daily improvements add up over time, turning beginners into experts "
        "who make difficult tasks look effortless.",
        "The museum's newest exhibit features artifacts from ancient trade "
        "routes, including pottery, coins, and maps that reveal how goods and "
        "ideas travelled between distant cities.",
        "Before the storm arrived, the crew secured the sails, checked the "
        "radio, and plotted a course toward the sheltered harbour on the "
        "northern side of the island.",
    ),
    Difficulty.HARD: (
        "The archaeological expedition uncovered a remarkably well-preserved "
        "manuscript; its intricate illustrations (drawn c. 1450) depicted "
        "astronomical phenomena with surprising accuracy.",
        "Quantum entanglement, often described as \"spooky action at a "
        "distance,\" challenges our intuitions: measuring one particle "
        "instantaneously constrains the state of its partner, regardless of "
        "separation.",
        "In 1969, approximately 600 million viewers watched the Apollo 11 "
        "landing; Armstrong's words - \"one small step\" - were transmitted "
        "across 384,400 km of space.",
    ),
}


class BuiltinPassageSource:
    """Seeded selection from the bundled passage pools."""

    def __init__(
        self,
        *,
        seed: int,
        pools: dict[Difficulty, tuple[str, ...]] | None = None,
    ) -> None:
        self._rng = random.Random(int(seed))
        self._pools = BUILTIN_PASSAGES if pools is None else pools

    def select_passage(self, difficulty: Difficulty) -> str:
        d = Difficulty(difficulty)
        pool = self._pools.get(d, ())
        if not pool:
            raise PassageLoadError(f"no passages for difficulty {d.value!r}")
        return self._rng.choice(pool)


class JsonPassageSource:
    """Passages from a JSON file shaped ``{"easy": [{"id": ..., "text": ...}], ...}``.

    The file is read lazily on first use and cached. Any I/O, decode or shape
    problem surfaces as :class:`PassageLoadError`.
    """

    def __init__(self, path: Path, *, seed: int) -> None:
        self._path = Path(path)
        self._rng = random.Random(int(seed))
        self._pools: dict[str, list[str]] | None = None

    def select_passage(self, difficulty: Difficulty) -> str:
        d = Difficulty(difficulty)
        pool = self._load().get(d.value, [])
        if not pool:
            raise PassageLoadError(f"{self._path}: no passages for {d.value!r}")
        return self._rng.choice(pool)

    def _load(self) -> dict[str, list[str]]:
        if self._pools is not None:
            return self._pools
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PassageLoadError(f"cannot read passages from {self._path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise PassageLoadError(f"{self._path}: expected an object keyed by difficulty")

        pools: dict[str, list[str]] = {}
        for key, items in payload.items():
            if not isinstance(items, list):
                continue
            texts: list[str] = []
            for item in items:
                text = item.get("text") if isinstance(item, dict) else item
                if isinstance(text, str) and text != "":
                    texts.append(text)
            pools[str(key)] = texts

        logger.info("Loaded %d passage pools from %s", len(pools), self._path)
        self._pools = pools
        return pools
