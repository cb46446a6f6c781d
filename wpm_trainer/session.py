"""Typing session state machine: IDLE -> RUNNING -> FINISHED -> IDLE.

A ``TypingSession`` owns everything that lives for one attempt (passage
buffer, matcher, counters, countdown) and rebuilds it on every start or
retry. Time only enters through the injected ``Clock`` and ``Scheduler``, so
the whole lifecycle can be driven headlessly with a fake clock.

The countdown is armed by the first printable keystroke, not by ``start()``.
It is cancelled on every way out of RUNNING: completion, timeout, reset or
``close()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .clock import Clock, Scheduler, TickHandle
from .config import Difficulty, Mode, SessionConfig
from .ledger import Outcome, ScoreLedger, ScoreRecord
from .matcher import CharState, InputMatcher, KeyResult, SessionCounters
from .metrics import IDLE_METRICS, LiveMetrics, compute_metrics
from .passage import PassageBuffer, PassageLoadError, PassageSource

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


class TerminationCause(str, Enum):
    COMPLETED = "completed"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class SessionResult:
    difficulty: Difficulty
    mode: Mode
    cause: TerminationCause
    outcome: Outcome
    wpm: int
    accuracy: int
    correct_chars: int
    errors: int
    total_chars_typed: int
    elapsed_s: float


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """View model for the UI (pure data)."""

    state: SessionState
    difficulty: Difficulty
    mode: Mode
    passage: str
    char_states: tuple[CharState, ...]
    cursor: int
    wpm: int
    accuracy: int
    time_remaining_s: int
    elapsed_s: float
    correct_chars: int
    errors: int
    total_chars_typed: int
    timer_armed: bool
    personal_best: int
    recent_scores: tuple[ScoreRecord, ...]
    result: SessionResult | None = None
    load_error: str | None = None


class TypingSession:
    def __init__(
        self,
        *,
        passages: PassageSource,
        ledger: ScoreLedger,
        clock: Clock,
        scheduler: Scheduler,
        config: SessionConfig | None = None,
        load: bool = True,
    ) -> None:
        cfg = config or SessionConfig()
        self._config = cfg
        self._passages = passages
        self._ledger = ledger
        self._clock = clock
        self._scheduler = scheduler

        self._difficulty = cfg.difficulty
        self._mode = cfg.mode
        self._state = SessionState.IDLE

        self._passage: PassageBuffer | None = None
        self._matcher: InputMatcher | None = None
        self._start_time_s: float | None = None
        self._remaining_s: int = self._config.countdown_s
        self._ticker: TickHandle | None = None
        self._metrics: LiveMetrics = IDLE_METRICS
        self._result: SessionResult | None = None
        self._load_error: str | None = None

        self._personal_best = 0
        self._recent: tuple[ScoreRecord, ...] = ()

        self._reset_attempt()
        self._refresh_scores()
        if load:
            self.load_passage()

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def passage(self) -> PassageBuffer | None:
        return self._passage

    @property
    def cursor(self) -> int:
        return 0 if self._matcher is None else self._matcher.cursor

    @property
    def counters(self) -> SessionCounters:
        if self._matcher is None:
            return SessionCounters()
        c = self._matcher.counters
        return SessionCounters(c.correct_chars, c.total_chars_typed, c.errors)

    @property
    def metrics(self) -> LiveMetrics:
        """Figures from the last keystroke or tick; unchanged between events."""
        return self._metrics

    @property
    def timer_armed(self) -> bool:
        return self._start_time_s is not None

    @property
    def time_remaining_s(self) -> int:
        return self._remaining_s

    @property
    def result(self) -> SessionResult | None:
        return self._result

    @property
    def load_error(self) -> str | None:
        return self._load_error

    def char_states(self) -> tuple[CharState, ...]:
        return () if self._matcher is None else self._matcher.states()

    def elapsed_s(self) -> float:
        if self._start_time_s is None:
            return 0.0
        if self._result is not None:
            return self._result.elapsed_s
        return max(0.0, self._clock.now() - self._start_time_s)

    def snapshot(self) -> SessionSnapshot:
        counters = self.counters
        return SessionSnapshot(
            state=self._state,
            difficulty=self._difficulty,
            mode=self._mode,
            passage="" if self._passage is None else self._passage.text,
            char_states=self.char_states(),
            cursor=self.cursor,
            wpm=self._metrics.wpm,
            accuracy=self._metrics.accuracy,
            time_remaining_s=self._remaining_s,
            elapsed_s=self.elapsed_s(),
            correct_chars=counters.correct_chars,
            errors=counters.errors,
            total_chars_typed=counters.total_chars_typed,
            timer_armed=self.timer_armed,
            personal_best=self._personal_best,
            recent_scores=self._recent,
            result=self._result,
            load_error=self._load_error,
        )

    # -- idle-only controls ------------------------------------------------

    def load_passage(self) -> bool:
        """Ask the passage source for new text. Only honoured while IDLE.

        On failure the session stays IDLE without a passage and the error is
        kept for the UI; ``start()`` refuses until a later load succeeds.
        """

        if self._state is not SessionState.IDLE:
            return False
        try:
            text = self._passages.select_passage(self._difficulty)
            passage = PassageBuffer(text)
        except (PassageLoadError, ValueError) as exc:
            logger.warning("Passage load failed for %s: %s", self._difficulty.value, exc)
            self._passage = None
            self._load_error = str(exc)
            self._reset_attempt()
            return False

        self._passage = passage
        self._load_error = None
        self._reset_attempt()
        logger.debug("Loaded %s passage (%d chars)", self._difficulty.value, passage.length())
        return True

    def set_difficulty(self, difficulty: Difficulty) -> bool:
        if self._state is not SessionState.IDLE:
            return False
        self._difficulty = Difficulty(difficulty)
        self._refresh_scores()
        self.load_passage()
        return True

    def set_mode(self, mode: Mode) -> bool:
        if self._state is not SessionState.IDLE:
            return False
        self._mode = Mode(mode)
        return True

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> bool:
        if self._state is not SessionState.IDLE:
            return False
        if self._passage is None:
            logger.warning("Cannot start: no passage loaded")
            return False
        self._reset_attempt()
        self._state = SessionState.RUNNING
        logger.info("Session started (%s, %s)", self._difficulty.value, self._mode.value)
        return True

    def handle_key(self, key: object) -> bool:
        """Feed one key press. Returns True if it changed session state.

        ``key`` is a single character for printable input or ``"Backspace"``.
        Anything else, and anything outside RUNNING, is ignored.
        """

        if self._state is not SessionState.RUNNING:
            return False
        if self._remaining_s <= 0:
            return False
        assert self._matcher is not None

        if not self.timer_armed and InputMatcher.is_printable(key):
            self._arm_timer()

        result = self._matcher.handle(key)
        if result is KeyResult.IGNORED:
            return False

        self._recompute()
        if result is KeyResult.COMPLETED:
            self._finish(TerminationCause.COMPLETED)
        return True

    def retry(self) -> bool:
        if self._state is not SessionState.FINISHED:
            return False
        self.reset()
        return True

    def reset(self) -> None:
        """Drop the current attempt from any state and load a new passage."""

        self._cancel_timer()
        self._state = SessionState.IDLE
        self._result = None
        self._refresh_scores()
        self.load_passage()

    def close(self) -> None:
        self._cancel_timer()

    def __enter__(self) -> TypingSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- internals -----------------------------------------------------------

    def _reset_attempt(self) -> None:
        self._cancel_timer()
        self._matcher = None if self._passage is None else InputMatcher(self._passage)
        self._start_time_s = None
        self._remaining_s = self._config.countdown_s
        self._metrics = IDLE_METRICS
        self._result = None

    def _arm_timer(self) -> None:
        self._start_time_s = self._clock.now()
        self._ticker = self._scheduler.every(self._config.tick_interval_s, self._on_tick)
        logger.debug("Timer armed at %.3f", self._start_time_s)

    def _cancel_timer(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _on_tick(self) -> None:
        if self._state is not SessionState.RUNNING:
            self._cancel_timer()
            return
        self._recompute()
        self._remaining_s = max(0, self._remaining_s - 1)
        if self._remaining_s <= 0:
            self._finish(TerminationCause.TIMEOUT)

    def _recompute(self) -> None:
        assert self._matcher is not None
        c = self._matcher.counters
        elapsed = None if self._start_time_s is None else self._clock.now() - self._start_time_s
        self._metrics = compute_metrics(
            correct_chars=c.correct_chars,
            total_chars_typed=c.total_chars_typed,
            elapsed_s=elapsed,
        )

    def _finish(self, cause: TerminationCause) -> None:
        self._cancel_timer()
        assert self._matcher is not None
        elapsed = self.elapsed_s()
        self._state = SessionState.FINISHED

        final = self._metrics
        outcome = self._ledger.record(self._difficulty, final.wpm)
        c = self._matcher.counters
        self._result = SessionResult(
            difficulty=self._difficulty,
            mode=self._mode,
            cause=cause,
            outcome=outcome,
            wpm=final.wpm,
            accuracy=final.accuracy,
            correct_chars=c.correct_chars,
            errors=c.errors,
            total_chars_typed=c.total_chars_typed,
            elapsed_s=elapsed,
        )
        self._refresh_scores()
        logger.info(
            "Session finished (%s): %d wpm, %d%% accuracy, outcome %s",
            cause.value,
            final.wpm,
            final.accuracy,
            outcome.value,
        )

    def _refresh_scores(self) -> None:
        self._personal_best = self._ledger.personal_best(self._difficulty)
        self._recent = tuple(self._ledger.recent_scores(self._difficulty))
