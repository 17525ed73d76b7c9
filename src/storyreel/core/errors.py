"""Exceptions raised by the StoryReel SDK.

Load failures and dangling jump targets are never raised: the store degrades
to an empty list and playback falls back to the next slide.
"""


class StoryReelError(Exception):
    """Base class for SDK errors."""


class SlideSaveError(StoryReelError):
    """Persisting the slide list failed. Local state is left as it was."""


class MediaUploadError(StoryReelError):
    """Storing or fetching a media file failed. No partial file is kept."""


class SlideNotFoundError(StoryReelError, KeyError):
    def __init__(self, slide_id: str):
        super().__init__(slide_id)
        self.slide_id = slide_id

    def __str__(self) -> str:
        return f"Slide '{self.slide_id}' not found"


class ButtonNotFoundError(StoryReelError, KeyError):
    def __init__(self, slide_id: str, button_id: str):
        super().__init__(button_id)
        self.slide_id = slide_id
        self.button_id = button_id

    def __str__(self) -> str:
        return f"Button '{self.button_id}' not found on slide '{self.slide_id}'"
