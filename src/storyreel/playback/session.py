"""Drives the playback engine with real timers.

The scheduler is anything with asyncio's ``call_later(delay, callback, *args)``
signature returning a handle with ``cancel()``; by default the running event
loop. All callbacks run on that loop, so engine state has a single writer.
"""

import asyncio
import logging
from typing import Callable, Iterable, Optional

from ..core.slides import Slide
from . import engine
from .engine import PlaybackState, PlaybackView, ScheduleTimer, TimerKind, Transition

logger = logging.getLogger("StoryReel.playback.session")


class PlaybackSession:
    """One viewer's playback of an immutable slide snapshot."""

    def __init__(self, slides: Iterable[Slide], scheduler=None,
                 on_change: Optional[Callable[[PlaybackView], None]] = None):
        self.state: PlaybackState = engine.new_state(slides)
        self._scheduler = scheduler
        self._on_change = on_change
        self._handles: dict[TimerKind, tuple[int, object]] = {}

    @property
    def scheduler(self):
        if self._scheduler is None:
            return asyncio.get_running_loop()
        return self._scheduler

    # ── Viewer intents ──────────────────────────────────────────────────

    def start(self) -> PlaybackView:
        return self._apply(engine.start(self.state))

    def toggle_pause(self) -> PlaybackView:
        return self._apply(engine.toggle_pause(self.state))

    def skip_next(self) -> PlaybackView:
        return self._apply(engine.skip_next(self.state))

    def skip_prev(self) -> PlaybackView:
        return self._apply(engine.skip_prev(self.state))

    def activate_button(self, button_id: str) -> PlaybackView:
        return self._apply(engine.activate_button(self.state, button_id))

    def view(self) -> PlaybackView:
        return engine.view(self.state)

    def close(self):
        """Cancel every outstanding timer."""
        for _, handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    @property
    def pending_timers(self) -> set[TimerKind]:
        return set(self._handles)

    # ── Internals ───────────────────────────────────────────────────────

    def _fire(self, kind: TimerKind, generation: int):
        live = self._handles.get(kind)
        if live is not None and live[0] == generation:
            del self._handles[kind]
        self._apply(engine.on_timer(self.state, kind, generation))

    def _apply(self, transition: Transition) -> PlaybackView:
        changed = transition.state is not self.state
        before = (self.state.current_index, self.state.phase)
        self.state = transition.state
        for command in transition.commands:
            live = self._handles.pop(command.kind, None)
            if live is not None:
                live[1].cancel()
            if isinstance(command, ScheduleTimer):
                handle = self.scheduler.call_later(
                    command.delay_ms / 1000, self._fire, command.kind, command.generation,
                )
                self._handles[command.kind] = (command.generation, handle)

        current = self.view()
        if (self.state.current_index, self.state.phase) != before:
            logger.info(f"Slide {current.slide_number}/{current.slide_count} ({current.phase.value})")
        if changed and self._on_change is not None:
            self._on_change(current)
        return current
