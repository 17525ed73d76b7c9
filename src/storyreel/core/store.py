"""File-backed slide store: the whole list is read and overwritten as one unit."""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from .errors import SlideSaveError
from .slides import Slide

logger = logging.getLogger("StoryReel.core.store")


class SlideStore:
    """Reads and replaces the slide list stored in a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[Slide]:
        """Return the stored slides, or [] when missing or unreadable."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read slides from {self.path}, using empty list: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Slides file {self.path} does not hold a list, using empty list")
            return []

        slides: list[Slide] = []
        for i, entry in enumerate(data):
            try:
                slides.append(Slide.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed slide #{i} in {self.path}: {e.error_count()} error(s)")
        return slides

    def save(self, slides: list[Slide]) -> None:
        """Replace the stored list with ``slides``."""
        payload = json.dumps([s.to_wire() for s in slides], indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".slides-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error(f"Failed to save {len(slides)} slides to {self.path}: {e}")
            raise SlideSaveError(f"Failed to save slides: {e}") from e
        logger.info(f"Saved {len(slides)} slides to {self.path}")
