"""Pygame UI shell for the WPM trainer.

One screen: a dashboard (WPM, accuracy, time, personal best), the passage
coloured by per-character state, and a results panel once the session ends.
Timing/scoring/persistence lives in wpm_trainer/* (core modules); this file
only turns pygame events into session calls and draws snapshots.
"""

from __future__ import annotations

import logging
import os
import random
import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import pygame

from .clock import PollingScheduler, RealClock
from .config import PASSAGES_PATH_ENV, Difficulty, Mode, SessionConfig
from .ledger import Outcome, ScoreLedger
from .matcher import BACKSPACE, CharState
from .passage import BuiltinPassageSource, JsonPassageSource, PassageSource
from .persistence import KeyValueStore, MemoryStore, SqliteStore
from .session import SessionSnapshot, SessionState, TerminationCause, TypingSession

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (18, 18, 20)
PANEL_BG = (30, 30, 36)
BORDER = (70, 70, 86)
TEXT_MAIN = (235, 235, 245)
TEXT_MUTED = (140, 140, 155)
ACCENT_BLUE = (59, 130, 246)
ACCENT_GREEN = (34, 197, 94)
ACCENT_RED = (239, 68, 68)
ACCENT_YELLOW = (234, 179, 8)

CHAR_COLOURS: dict[CharState, tuple[int, int, int]] = {
    CharState.PENDING: TEXT_MUTED,
    CharState.CURRENT: TEXT_MAIN,
    CharState.CORRECT: ACCENT_GREEN,
    CharState.INCORRECT: ACCENT_RED,
}

DIFFICULTY_KEYS = {
    pygame.K_F1: Difficulty.EASY,
    pygame.K_F2: Difficulty.MEDIUM,
    pygame.K_F3: Difficulty.HARD,
}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self) -> None:
        if self._screens:
            self._screens[-1].update()

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def format_clock(snap: SessionSnapshot) -> str:
    secs = max(0, snap.time_remaining_s)
    return f"{secs // 60}:{secs % 60:02d}"


def wrap_indices(text: str, font: pygame.font.Font, max_width: int) -> list[tuple[int, int]]:
    """Split ``text`` into (start, end) index ranges that fit ``max_width``.

    Breaks after spaces where possible so each character keeps its index.
    """

    lines: list[tuple[int, int]] = []
    start = 0
    n = len(text)
    while start < n:
        end = start
        last_break = -1
        while end < n and font.size(text[start : end + 1])[0] <= max_width:
            if text[end] == " ":
                last_break = end + 1
            end += 1
        if end < n and last_break > start:
            end = last_break
        if end == start:
            end = start + 1
        lines.append((start, end))
        start = end
    return lines


class TypingTestScreen:
    def __init__(self, app: App, *, session: TypingSession, scheduler: PollingScheduler) -> None:
        self._app = app
        self._session = session
        self._scheduler = scheduler

        self._title_font = pygame.font.Font(None, 52)
        self._stat_font = pygame.font.Font(None, 34)
        self._passage_font = pygame.font.Font(None, 36)
        self._small_font = pygame.font.Font(None, 24)
        self._passage_rect = pygame.Rect(0, 0, 0, 0)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.MOUSEBUTTONDOWN:
            if self._session.state is SessionState.IDLE and self._passage_rect.collidepoint(event.pos):
                self._session.start()
            return
        if event.type != pygame.KEYDOWN:
            return

        if event.key == pygame.K_ESCAPE:
            self._app.quit()
            return

        state = self._session.state
        if state is SessionState.IDLE:
            self._handle_idle_key(event)
        elif state is SessionState.RUNNING:
            self._handle_running_key(event)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._session.retry()

    def _handle_idle_key(self, event: pygame.event.Event) -> None:
        if event.key in DIFFICULTY_KEYS:
            self._session.set_difficulty(DIFFICULTY_KEYS[event.key])
        elif event.key == pygame.K_F4:
            nxt = Mode.PASSAGE if self._session.mode is Mode.TIMED else Mode.TIMED
            self._session.set_mode(nxt)
        elif event.key == pygame.K_F5:
            self._session.load_passage()
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._session.start()

    def _handle_running_key(self, event: pygame.event.Event) -> None:
        if event.key == pygame.K_BACKSPACE:
            self._session.handle_key(BACKSPACE)
            return
        ch = getattr(event, "unicode", "")
        # Control characters (Enter, Tab, ...) arrive as unicode too; skip them.
        if len(ch) == 1 and ch.isprintable():
            self._session.handle_key(ch)

    def update(self) -> None:
        self._scheduler.pump()

    def render(self, surface: pygame.Surface) -> None:
        snap = self._session.snapshot()
        w, h = surface.get_size()
        surface.fill(BG)

        self._render_dashboard(surface, snap, w)
        if snap.state is SessionState.FINISHED and snap.result is not None:
            self._render_results(surface, snap, w, h)
            return

        margin = 40
        self._passage_rect = pygame.Rect(margin, 110, w - margin * 2, h - 170)
        pygame.draw.rect(surface, PANEL_BG, self._passage_rect)
        pygame.draw.rect(surface, BORDER, self._passage_rect, 1)

        if snap.load_error is not None:
            msg = self._small_font.render(f"Could not load passage: {snap.load_error}", True, ACCENT_RED)
            surface.blit(msg, (self._passage_rect.x + 16, self._passage_rect.y + 16))
            hint = self._small_font.render("Press F5 to try again.", True, TEXT_MUTED)
            surface.blit(hint, (self._passage_rect.x + 16, self._passage_rect.y + 44))
            return

        self._render_passage(surface, snap)

        if snap.state is SessionState.IDLE:
            hint = "Enter or click to start  |  F1/F2/F3: Easy/Medium/Hard  |  F4: Mode  |  Esc: Quit"
        else:
            hint = "Type the passage  |  Backspace: correct  |  Esc: Quit"
        foot = self._small_font.render(hint, True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 16)))

    def _render_dashboard(self, surface: pygame.Surface, snap: SessionSnapshot, w: int) -> None:
        stats = [
            ("WPM", str(snap.wpm), TEXT_MAIN),
            ("Accuracy", f"{snap.accuracy}%", ACCENT_RED if snap.accuracy < 100 else TEXT_MAIN),
            ("Time", format_clock(snap), ACCENT_YELLOW if snap.timer_armed else TEXT_MAIN),
            ("Personal best", f"{snap.personal_best} WPM", TEXT_MAIN),
        ]
        x = 40
        for label, value, colour in stats:
            surface.blit(self._small_font.render(label, True, TEXT_MUTED), (x, 24))
            surface.blit(self._stat_font.render(value, True, colour), (x, 48))
            x += 180

        tag = f"{snap.difficulty.value.capitalize()}  |  {snap.mode.label}"
        tag_surf = self._small_font.render(tag, True, ACCENT_BLUE)
        surface.blit(tag_surf, tag_surf.get_rect(topright=(w - 40, 24)))

    def _render_passage(self, surface: pygame.Surface, snap: SessionSnapshot) -> None:
        rect = self._passage_rect.inflate(-32, -32)
        font = self._passage_font
        line_h = font.get_linesize() + 6
        y = rect.y
        for start, end in wrap_indices(snap.passage, font, rect.w):
            x = rect.x
            for idx in range(start, end):
                ch = snap.passage[idx]
                state = snap.char_states[idx] if idx < len(snap.char_states) else CharState.PENDING
                glyph = font.render(ch, True, CHAR_COLOURS[state])
                if state is CharState.CURRENT:
                    pygame.draw.line(
                        surface,
                        TEXT_MAIN,
                        (x, y + glyph.get_height()),
                        (x + max(8, glyph.get_width()), y + glyph.get_height()),
                        2,
                    )
                surface.blit(glyph, (x, y))
                x += glyph.get_width()
            y += line_h
            if y > rect.bottom:
                break

    def _render_results(self, surface: pygame.Surface, snap: SessionSnapshot, w: int, h: int) -> None:
        result = snap.result
        assert result is not None
        panel = pygame.Rect(60, 100, w - 120, h - 140)
        pygame.draw.rect(surface, PANEL_BG, panel)
        pygame.draw.rect(surface, BORDER, panel, 1)

        title_colour = ACCENT_YELLOW if result.outcome is Outcome.NEW_RECORD else TEXT_MAIN
        title = self._title_font.render(result.outcome.headline, True, title_colour)
        surface.blit(title, title.get_rect(midtop=(panel.centerx, panel.y + 16)))
        sub = self._small_font.render(result.outcome.subtext, True, TEXT_MUTED)
        surface.blit(sub, sub.get_rect(midtop=(panel.centerx, panel.y + 64)))

        cause = "Passage complete" if result.cause is TerminationCause.COMPLETED else "Time's up"
        accuracy_colour = ACCENT_GREEN if result.accuracy == 100 else ACCENT_RED
        rows = [
            ("WPM", str(result.wpm), TEXT_MAIN),
            ("Accuracy", f"{result.accuracy}%", accuracy_colour),
            ("Characters", f"{result.correct_chars}/{result.errors}", ACCENT_GREEN),
            ("Ended", cause, TEXT_MUTED),
        ]
        x = panel.x + 24
        for label, value, colour in rows:
            surface.blit(self._small_font.render(label, True, TEXT_MUTED), (x, panel.y + 104))
            surface.blit(self._stat_font.render(value, True, colour), (x, panel.y + 128))
            x += (panel.w - 48) // len(rows)

        y = panel.y + 180
        if snap.recent_scores:
            head = self._small_font.render("High scores", True, TEXT_MUTED)
            surface.blit(head, (panel.x + 24, y))
            y += 26
            for rank, rec in enumerate(snap.recent_scores, start=1):
                line = f"#{rank}   {rec.wpm} WPM   {rec.date}"
                surface.blit(self._small_font.render(line, True, TEXT_MAIN), (panel.x + 24, y))
                y += 24

        retry = self._small_font.render(f"Enter: {result.outcome.retry_label}  |  Esc: Quit", True, ACCENT_BLUE)
        surface.blit(retry, retry.get_rect(midbottom=(panel.centerx, panel.bottom - 12)))


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def _passage_source(seed: int) -> PassageSource:
    explicit = os.environ.get(PASSAGES_PATH_ENV)
    if explicit:
        return JsonPassageSource(Path(explicit).expanduser(), seed=seed)
    return BuiltinPassageSource(seed=seed)


def _open_store() -> KeyValueStore:
    path = SqliteStore.default_path()
    try:
        store = SqliteStore(path)
    except (OSError, sqlite3.Error):
        # Scores for this run are kept in memory only.
        logger.warning("Cannot open score store at %s; scores will not be saved", path, exc_info=True)
        return MemoryStore()
    logger.info("Score store: %s", store.path)
    return store


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    pygame.init()

    pygame.display.set_caption("WPM Trainer")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    frame_clock = pygame.time.Clock()

    app = App(surface=surface)

    real_clock = RealClock()
    scheduler = PollingScheduler(real_clock)
    store = _open_store()
    ledger = ScoreLedger(store)
    session = TypingSession(
        passages=_passage_source(_new_seed()),
        ledger=ledger,
        clock=real_clock,
        scheduler=scheduler,
        config=SessionConfig(),
    )
    app.push(TypingTestScreen(app, session=session, scheduler=scheduler))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        session.close()
        if isinstance(store, SqliteStore):
            store.close()
        pygame.quit()

    return 0
