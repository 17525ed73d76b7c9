"""Slide and branch button data models.

Attributes are snake_case in Python; the JSON form written to ``slides.json``
and served over HTTP is camelCase (``backgroundUrl``, ``targetSlideId``).
"""

import uuid
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_DURATION_MS = 5000
MIN_DURATION_MS = 1000
VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".ogg", ".mov"})


class CharacterPosition(str, Enum):
    BOTTOM_RIGHT = "bottom-right"
    BOTTOM_LEFT = "bottom-left"
    CENTER = "center"
    FLOATING = "floating"


class ButtonAction(str, Enum):
    NEXT = "next"
    JUMP = "jump"


class ButtonVariant(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    OUTLINE = "outline"


def _new_id() -> str:
    return str(uuid.uuid4())


def media_kind(url: Optional[str]) -> str:
    """Classify a media URL as "video", "image" or "none" by its extension."""
    if not url:
        return "none"
    path = urlsplit(url).path or url
    if PurePosixPath(path).suffix.lower() in VIDEO_EXTENSIONS:
        return "video"
    return "image"


def _coerce_enum(enum_cls, value, fallback):
    # Unknown values render the way the viewer's default branch does.
    if value is None or isinstance(value, enum_cls):
        return value if value is not None else fallback
    try:
        return enum_cls(value)
    except ValueError:
        return fallback


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Button(_WireModel):
    """A viewer choice that may show a response before navigating."""
    id: str = Field(default_factory=_new_id)
    label: str = "Continue"
    action: ButtonAction = ButtonAction.NEXT
    target_slide_id: Optional[str] = None
    variant: ButtonVariant = ButtonVariant.PRIMARY
    response: Optional[str] = None

    @field_validator("action", mode="before")
    @classmethod
    def _action(cls, v):
        return _coerce_enum(ButtonAction, v, ButtonAction.NEXT)

    @field_validator("variant", mode="before")
    @classmethod
    def _variant(cls, v):
        return _coerce_enum(ButtonVariant, v, ButtonVariant.PRIMARY)

    @property
    def has_response(self) -> bool:
        return bool(self.response)

    @property
    def jump_target(self) -> Optional[str]:
        """Target slide id, or None when the button just advances."""
        if self.action == ButtonAction.JUMP and self.target_slide_id:
            return self.target_slide_id
        return None


class Slide(_WireModel):
    """One unit of the presentation.

    ``duration`` is in milliseconds. A slide with buttons waits for a choice
    instead of auto-advancing.
    """
    id: str = Field(default_factory=_new_id)
    background_url: str = ""
    character_url: str = ""
    character_position: CharacterPosition = CharacterPosition.BOTTOM_RIGHT
    text: str = ""
    duration: int = DEFAULT_DURATION_MS
    buttons: list[Button] = Field(default_factory=list)

    @field_validator("character_position", mode="before")
    @classmethod
    def _position(cls, v):
        return _coerce_enum(CharacterPosition, v, CharacterPosition.BOTTOM_RIGHT)

    @field_validator("buttons", mode="before")
    @classmethod
    def _buttons(cls, v):
        return [] if v is None else v

    @field_validator("duration", mode="before")
    @classmethod
    def _duration(cls, v):
        return DEFAULT_DURATION_MS if v is None else v

    @property
    def effective_duration(self) -> int:
        """Playback duration in ms; an unset (zero) duration plays as the default."""
        return self.duration if self.duration > 0 else DEFAULT_DURATION_MS

    @property
    def has_choices(self) -> bool:
        return len(self.buttons) > 0

    @property
    def background_kind(self) -> str:
        return media_kind(self.background_url)

    def get_button(self, button_id: str) -> Optional[Button]:
        for b in self.buttons:
            if b.id == button_id:
                return b
        return None
