"""Branching slide playback as a pure state machine.

Every operation takes a frozen ``PlaybackState`` and returns a ``Transition``:
the next state plus the timer commands the driver must apply. Timers carry
the generation they were armed with; the state remembers the live generation
per timer kind, so a callback for a superseded timer is a no-op even if the
driver failed to cancel it.

Timer kinds:
- advance:  slide duration elapsed, go to the next slide
- response: button response read-delay elapsed, run the button action
- reveal:   typewriter tick, show one more character
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from ..core.slides import Button, CharacterPlacement, Slide, placement_for
from .typewriter import REVEAL_INTERVAL_MS, read_delay_ms, reveal

logger = logging.getLogger("StoryReel.playback.engine")


class TimerKind(str, Enum):
    ADVANCE = "advance"
    RESPONSE = "response"
    REVEAL = "reveal"


class Phase(str, Enum):
    NO_CONTENT = "no_content"
    NOT_STARTED = "not_started"
    PLAYING = "playing"
    PAUSED = "paused"
    CHOICE = "choice"
    RESPONDING = "responding"


_SLOT = {
    TimerKind.ADVANCE: "advance_gen",
    TimerKind.RESPONSE: "response_gen",
    TimerKind.REVEAL: "reveal_gen",
}


@dataclass(frozen=True)
class ScheduleTimer:
    kind: TimerKind
    delay_ms: int
    generation: int


@dataclass(frozen=True)
class CancelTimer:
    kind: TimerKind


TimerCommand = Union[ScheduleTimer, CancelTimer]


@dataclass(frozen=True)
class PlaybackState:
    slides: tuple[Slide, ...] = ()
    current_index: int = 0
    playing: bool = False
    started: bool = False
    reveal_count: int = 0
    pending_response: Optional[str] = None
    pending_button: Optional[Button] = None
    generation: int = 0
    advance_gen: Optional[int] = None
    response_gen: Optional[int] = None
    reveal_gen: Optional[int] = None

    @property
    def has_content(self) -> bool:
        return len(self.slides) > 0

    @property
    def current_slide(self) -> Optional[Slide]:
        if not self.slides:
            return None
        return self.slides[self.current_index]

    @property
    def responding(self) -> bool:
        return self.pending_response is not None

    @property
    def active_text(self) -> str:
        """The response while one is pending, otherwise the slide text."""
        if self.pending_response is not None:
            return self.pending_response
        slide = self.current_slide
        return slide.text if slide else ""

    @property
    def revealed_text(self) -> str:
        return reveal(self.active_text, self.reveal_count)

    @property
    def auto_advance_eligible(self) -> bool:
        slide = self.current_slide
        return (
            slide is not None
            and self.playing
            and self.started
            and self.pending_response is None
            and not slide.has_choices
        )

    @property
    def phase(self) -> Phase:
        if not self.has_content:
            return Phase.NO_CONTENT
        if not self.started:
            return Phase.NOT_STARTED
        if self.responding:
            return Phase.RESPONDING
        if self.current_slide.has_choices:
            return Phase.CHOICE
        return Phase.PLAYING if self.playing else Phase.PAUSED

    def timer_generation(self, kind: TimerKind) -> Optional[int]:
        return getattr(self, _SLOT[kind])


@dataclass(frozen=True)
class Transition:
    state: PlaybackState
    commands: tuple[TimerCommand, ...] = ()


def new_state(slides) -> PlaybackState:
    """Snapshot ``slides`` for one playback session."""
    return PlaybackState(slides=tuple(s.model_copy(deep=True) for s in slides))


# ── Timer bookkeeping ───────────────────────────────────────────────────

def _arm(state: PlaybackState, kind: TimerKind, delay_ms: int):
    gen = state.generation + 1
    state = replace(state, generation=gen, **{_SLOT[kind]: gen})
    return state, [ScheduleTimer(kind, delay_ms, gen)]


def _disarm(state: PlaybackState, kind: TimerKind):
    if state.timer_generation(kind) is None:
        return state, []
    return replace(state, **{_SLOT[kind]: None}), [CancelTimer(kind)]


def _restart_reveal(state: PlaybackState):
    state, commands = _disarm(replace(state, reveal_count=0), TimerKind.REVEAL)
    if state.started and state.active_text:
        state, armed = _arm(state, TimerKind.REVEAL, REVEAL_INTERVAL_MS)
        commands += armed
    return state, commands


def _sync_advance(state: PlaybackState):
    """Re-arm the advance timer from full duration if eligible, else cancel it."""
    state, commands = _disarm(state, TimerKind.ADVANCE)
    if state.auto_advance_eligible:
        state, armed = _arm(state, TimerKind.ADVANCE, state.current_slide.effective_duration)
        commands += armed
    return state, commands


def _enter_slide(state: PlaybackState, index: int) -> Transition:
    state = replace(state, current_index=index, pending_response=None, pending_button=None)
    state, commands = _disarm(state, TimerKind.RESPONSE)
    state, reveal_cmds = _restart_reveal(state)
    state, advance_cmds = _sync_advance(state)
    return Transition(state, tuple(commands + reveal_cmds + advance_cmds))


def _next_index(state: PlaybackState) -> int:
    return (state.current_index + 1) % len(state.slides)


def _target_index(state: PlaybackState, button: Button) -> int:
    target = button.jump_target
    if target is None:
        return _next_index(state)
    for i, s in enumerate(state.slides):
        if s.id == target:
            return i
    logger.debug(f"Jump target '{target}' of button '{button.id}' is missing, advancing instead")
    return _next_index(state)


# ── Operations ──────────────────────────────────────────────────────────

def start(state: PlaybackState) -> Transition:
    if not state.has_content:
        logger.info("Nothing to play: slide list is empty")
        return Transition(state)
    if state.started:
        return Transition(state)
    state = replace(state, playing=True, started=True)
    return _enter_slide(state, state.current_index)


def toggle_pause(state: PlaybackState) -> Transition:
    """Pause or resume auto-advance. Resuming restarts the full duration."""
    if not state.started:
        return Transition(state)
    state, commands = _sync_advance(replace(state, playing=not state.playing))
    return Transition(state, tuple(commands))


def skip(state: PlaybackState, step: int) -> Transition:
    """Manual navigation by ``step`` slides, wrapping at both ends.

    A pending button response is dropped along with its action.
    """
    if not state.has_content:
        return Transition(state)
    return _enter_slide(state, (state.current_index + step) % len(state.slides))


def skip_next(state: PlaybackState) -> Transition:
    return skip(state, 1)


def skip_prev(state: PlaybackState) -> Transition:
    return skip(state, -1)


def activate_button(state: PlaybackState, button_id: str) -> Transition:
    slide = state.current_slide
    if slide is None or not state.started or state.responding:
        logger.debug(f"Ignoring button '{button_id}' in phase {state.phase.value}")
        return Transition(state)
    button = slide.get_button(button_id)
    if button is None:
        logger.debug(f"Ignoring unknown button '{button_id}' on slide '{slide.id}'")
        return Transition(state)

    if not button.has_response:
        return _enter_slide(state, _target_index(state, button))

    state = replace(state, pending_response=button.response, pending_button=button)
    state, commands = _arm(state, TimerKind.RESPONSE, read_delay_ms(button.response))
    state, reveal_cmds = _restart_reveal(state)
    state, advance_cmds = _sync_advance(state)
    return Transition(state, tuple(commands + reveal_cmds + advance_cmds))


def on_timer(state: PlaybackState, kind: TimerKind, generation: int) -> Transition:
    if state.timer_generation(kind) != generation:
        logger.debug(f"Dropping stale {kind.value} timer (generation {generation})")
        return Transition(state)
    state = replace(state, **{_SLOT[kind]: None})

    if kind == TimerKind.ADVANCE:
        return _enter_slide(state, _next_index(state))

    if kind == TimerKind.RESPONSE:
        return _enter_slide(state, _target_index(state, state.pending_button))

    state = replace(state, reveal_count=state.reveal_count + 1)
    if state.reveal_count < len(state.active_text):
        state, commands = _arm(state, TimerKind.REVEAL, REVEAL_INTERVAL_MS)
        return Transition(state, tuple(commands))
    return Transition(state)


# ── View ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlaybackView:
    """What the presentation layer renders for the current state."""
    phase: Phase
    slide: Optional[Slide]
    slide_number: int
    slide_count: int
    active_text: str
    revealed_text: str
    playing: bool
    visible_buttons: tuple[Button, ...] = ()
    background_kind: str = "none"
    character_placement: Optional[CharacterPlacement] = None

    @property
    def reveal_complete(self) -> bool:
        return self.revealed_text == self.active_text

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "slide": self.slide.to_wire() if self.slide else None,
            "progress": {"current": self.slide_number, "total": self.slide_count},
            "active_text": self.active_text,
            "revealed_text": self.revealed_text,
            "reveal_complete": self.reveal_complete,
            "playing": self.playing,
            "buttons": [b.to_wire() for b in self.visible_buttons],
            "background_kind": self.background_kind,
            "character_placement": (
                self.character_placement.model_dump() if self.character_placement else None
            ),
        }


def view(state: PlaybackState) -> PlaybackView:
    slide = state.current_slide
    if slide is None:
        return PlaybackView(
            phase=state.phase, slide=None, slide_number=0, slide_count=0,
            active_text="", revealed_text="", playing=False,
        )
    buttons = tuple(slide.buttons) if state.started and not state.responding else ()
    return PlaybackView(
        phase=state.phase,
        slide=slide,
        slide_number=state.current_index + 1,
        slide_count=len(state.slides),
        active_text=state.active_text,
        revealed_text=state.revealed_text,
        playing=state.playing,
        visible_buttons=buttons,
        background_kind=slide.background_kind,
        character_placement=placement_for(slide.character_position) if slide.character_url else None,
    )
