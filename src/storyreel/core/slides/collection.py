"""Ordered slide list with the authoring operations of the admin surface."""

from typing import Any, Optional
from pydantic import BaseModel, Field, TypeAdapter

from ..errors import ButtonNotFoundError, SlideNotFoundError
from .slide import MIN_DURATION_MS, Button, Slide

_SLIDE_LIST = TypeAdapter(list[Slide])


def _check_fields(model_cls: type[BaseModel], fields: dict[str, Any]) -> None:
    unknown = set(fields) - set(model_cls.model_fields) - {"id"}
    if "id" in fields:
        raise ValueError("id cannot be changed")
    if unknown:
        raise ValueError(f"Unknown {model_cls.__name__} field(s): {', '.join(sorted(unknown))}")


class SlideCollection(BaseModel):
    """Ordered collection of slides. List order is the forward play order."""
    slides: list[Slide] = Field(default_factory=list)

    def get(self, slide_id: str) -> Optional[Slide]:
        for s in self.slides:
            if s.id == slide_id:
                return s
        return None

    def require(self, slide_id: str) -> Slide:
        slide = self.get(slide_id)
        if slide is None:
            raise SlideNotFoundError(slide_id)
        return slide

    def index_of(self, slide_id: str) -> int:
        for i, s in enumerate(self.slides):
            if s.id == slide_id:
                return i
        return -1

    def add(self, slide: Optional[Slide] = None) -> Slide:
        slide = slide or Slide()
        self.slides.append(slide)
        return slide

    def remove(self, slide_id: str) -> bool:
        original_len = len(self.slides)
        self.slides = [s for s in self.slides if s.id != slide_id]
        return len(self.slides) < original_len

    def duplicate(self, slide_id: str) -> Slide:
        """Copy a slide right after itself. The copy starts without buttons."""
        source = self.require(slide_id)
        copy = Slide(**source.model_dump(exclude={"id", "buttons"}))
        self.slides.insert(self.index_of(slide_id) + 1, copy)
        return copy

    def patch(self, slide_id: str, **fields) -> Slide:
        """Update named fields of a slide, validating each value."""
        slide = self.require(slide_id)
        _check_fields(Slide, fields)
        if "duration" in fields and fields["duration"] is not None:
            fields["duration"] = max(MIN_DURATION_MS, int(fields["duration"]))
        for name, value in fields.items():
            setattr(slide, name, value)
        return slide

    # ── Buttons ─────────────────────────────────────────────────────────

    def add_button(self, slide_id: str, button: Optional[Button] = None) -> Button:
        slide = self.require(slide_id)
        button = button or Button()
        slide.buttons = [*slide.buttons, button]
        return button

    def update_button(self, slide_id: str, button_id: str, **fields) -> Button:
        slide = self.require(slide_id)
        button = slide.get_button(button_id)
        if button is None:
            raise ButtonNotFoundError(slide_id, button_id)
        _check_fields(Button, fields)
        for name, value in fields.items():
            setattr(button, name, value)
        return button

    def remove_button(self, slide_id: str, button_id: str) -> bool:
        slide = self.require(slide_id)
        remaining = [b for b in slide.buttons if b.id != button_id]
        if len(remaining) == len(slide.buttons):
            return False
        slide.buttons = remaining
        return True

    # ── Ordering & checks ───────────────────────────────────────────────

    def reorder(self, slide_id_list: list[str]) -> bool:
        id_set = {s.id for s in self.slides}
        if len(slide_id_list) != len(self.slides) or set(slide_id_list) != id_set:
            return False

        id_to_slide = {s.id: s for s in self.slides}
        self.slides = [id_to_slide[sid] for sid in slide_id_list]
        return True

    def dangling_references(self) -> list[tuple[str, str, str]]:
        """Jump buttons whose target slide does not exist.

        Returns (slide_id, button_id, target_slide_id) triples. Playback treats
        these as "next", so this is informational only.
        """
        ids = {s.id for s in self.slides}
        return [
            (s.id, b.id, b.jump_target)
            for s in self.slides
            for b in s.buttons
            if b.jump_target and b.jump_target not in ids
        ]

    def to_summary(self) -> list[dict]:
        return [
            {
                "id": s.id,
                "index": i,
                "text_snippet": (s.text[:80] + "...") if len(s.text) > 80 else s.text,
                "duration_ms": s.duration,
                "background": s.background_kind,
                "has_character": bool(s.character_url),
                "buttons": [
                    {"id": b.id, "label": b.label, "action": b.action.value,
                     "target": b.target_slide_id}
                    for b in s.buttons
                ],
            }
            for i, s in enumerate(self.slides)
        ]

    def to_wire(self) -> list[dict]:
        return [s.to_wire() for s in self.slides]

    @classmethod
    def from_wire(cls, data: list) -> "SlideCollection":
        return cls(slides=_SLIDE_LIST.validate_python(data))
