"""Character placement presets — where and how a slide's character appears.

Pure data for the presentation layer. Offsets are in pixels, sizes are
fractions of the viewport.
"""

from typing import Optional
from pydantic import BaseModel

from .slide import CharacterPosition


class EntranceMotion(BaseModel):
    """Entrance animation: start offset and scale, eased to rest over ``duration``."""
    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 0.8
    duration: float = 0.8  # seconds


class FloatLoop(BaseModel):
    """Idle bobbing loop applied after the entrance."""
    amplitude: float = 20.0
    period: float = 3.0  # seconds


class CharacterPlacement(BaseModel):
    """Anchor and size limits for the character image.

    anchor: bottom-right, bottom-left, bottom-center, floating
    """
    anchor: str
    max_width: float
    max_height: float
    entrance: EntranceMotion = EntranceMotion()
    float_loop: Optional[FloatLoop] = None


PLACEMENTS: dict[CharacterPosition, CharacterPlacement] = {
    CharacterPosition.BOTTOM_RIGHT: CharacterPlacement(
        anchor="bottom-right",
        max_width=0.40,
        max_height=0.80,
        entrance=EntranceMotion(offset_x=100, offset_y=100),
    ),
    CharacterPosition.BOTTOM_LEFT: CharacterPlacement(
        anchor="bottom-left",
        max_width=0.40,
        max_height=0.80,
        entrance=EntranceMotion(offset_x=-100, offset_y=100),
    ),
    CharacterPosition.CENTER: CharacterPlacement(
        anchor="bottom-center",
        max_width=0.50,
        max_height=0.90,
        entrance=EntranceMotion(scale=0.5),
    ),
    CharacterPosition.FLOATING: CharacterPlacement(
        anchor="floating",
        max_width=0.35,
        max_height=0.70,
        entrance=EntranceMotion(offset_y=50, scale=1.0),
        float_loop=FloatLoop(),
    ),
}


def placement_for(position) -> CharacterPlacement:
    """Look up the placement for a position, defaulting to bottom-right."""
    try:
        return PLACEMENTS[CharacterPosition(position)]
    except ValueError:
        return PLACEMENTS[CharacterPosition.BOTTOM_RIGHT]
