"""Slides package — public API re-exports."""

from .slide import (
    DEFAULT_DURATION_MS,
    MIN_DURATION_MS,
    Button,
    ButtonAction,
    ButtonVariant,
    CharacterPosition,
    Slide,
    media_kind,
)
from .styles import CharacterPlacement, EntranceMotion, FloatLoop, PLACEMENTS, placement_for
from .collection import SlideCollection

__all__ = [
    "Slide",
    "Button",
    "ButtonAction",
    "ButtonVariant",
    "CharacterPosition",
    "SlideCollection",
    "CharacterPlacement",
    "EntranceMotion",
    "FloatLoop",
    "PLACEMENTS",
    "placement_for",
    "media_kind",
    "DEFAULT_DURATION_MS",
    "MIN_DURATION_MS",
]
