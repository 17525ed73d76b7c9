"""Authoring session state with undo support."""

from typing import Optional
from pydantic import BaseModel, Field

from .slides import SlideCollection
from .store import SlideStore
from .workspace import Workspace

MAX_UNDO = 50


class UndoEntry(BaseModel):
    """A snapshot of slides state for undo."""
    description: str
    slides_json: str  # JSON-serialized SlideCollection
    was_dirty: bool = False


class SessionState(BaseModel):
    """Working copy of a project's slides, saved explicitly to the store."""
    workspace: Optional[Workspace] = None
    slides: SlideCollection = Field(default_factory=SlideCollection)
    undo_stack: list[UndoEntry] = Field(default_factory=list)
    dirty: bool = False

    model_config = {"arbitrary_types_allowed": True}

    @property
    def store(self) -> Optional[SlideStore]:
        if not self.workspace:
            return None
        return SlideStore(self.workspace.slides_path)

    def checkpoint(self, description: str):
        """Save current slides state to undo stack and mark the session dirty."""
        entry = UndoEntry(
            description=description,
            slides_json=self.slides.model_dump_json(),
            was_dirty=self.dirty,
        )
        self.undo_stack.append(entry)
        if len(self.undo_stack) > MAX_UNDO:
            self.undo_stack = self.undo_stack[-MAX_UNDO:]
        self.dirty = True

    def undo(self) -> Optional[str]:
        """Revert to the last checkpoint. Returns description of what was undone."""
        if not self.undo_stack:
            return None
        entry = self.undo_stack.pop()
        self.slides = SlideCollection.model_validate_json(entry.slides_json)
        self.dirty = True
        return entry.description

    def rollback(self):
        """Drop the last checkpoint after a rejected edit, as if it never happened."""
        if not self.undo_stack:
            return
        entry = self.undo_stack.pop()
        self.slides = SlideCollection.model_validate_json(entry.slides_json)
        self.dirty = entry.was_dirty

    def save(self):
        """Write the slides through the store.

        Raises SlideSaveError on failure; local edits are kept either way.
        """
        store = self.store
        if store is None:
            return
        store.save(self.slides.slides)
        self.dirty = False

    def load_slides(self):
        """Replace the working copy with what the store holds."""
        store = self.store
        if store is None:
            return
        self.slides = SlideCollection(slides=store.load())
        self.undo_stack = []
        self.dirty = False
