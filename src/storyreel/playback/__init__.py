"""Playback package — the branching slide state machine and its driver."""

from .engine import (
    CancelTimer,
    Phase,
    PlaybackState,
    PlaybackView,
    ScheduleTimer,
    TimerKind,
    Transition,
    activate_button,
    new_state,
    on_timer,
    skip,
    skip_next,
    skip_prev,
    start,
    toggle_pause,
    view,
)
from .session import PlaybackSession
from .typewriter import (
    MIN_READ_DELAY_MS,
    READ_MS_PER_CHAR,
    REVEAL_INTERVAL_MS,
    read_delay_ms,
    reveal,
    reveal_at,
    reveal_duration_ms,
)

__all__ = [
    "PlaybackSession",
    "PlaybackState",
    "PlaybackView",
    "Phase",
    "TimerKind",
    "ScheduleTimer",
    "CancelTimer",
    "Transition",
    "new_state",
    "start",
    "toggle_pause",
    "skip",
    "skip_next",
    "skip_prev",
    "activate_button",
    "on_timer",
    "view",
    "REVEAL_INTERVAL_MS",
    "MIN_READ_DELAY_MS",
    "READ_MS_PER_CHAR",
    "read_delay_ms",
    "reveal",
    "reveal_at",
    "reveal_duration_ms",
]
