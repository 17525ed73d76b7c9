"""Shared fixtures: a virtual-clock scheduler and sample slide decks."""

import heapq
import itertools

import pytest

from storyreel.core.slides import Button, ButtonAction, Slide
from storyreel.core.workspace import Workspace


class FakeHandle:
    def __init__(self, scheduler, due_ms, callback, args):
        self.scheduler = scheduler
        self.due_ms = due_ms
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Virtual-time stand-in for an event loop's ``call_later``."""

    def __init__(self):
        self.now_ms = 0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self, self.now_ms + round(delay * 1000), callback, args)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def advance(self, ms):
        """Run every callback due within the next ``ms`` milliseconds, in order."""
        target = self.now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now_ms = due
            if not handle.cancelled:
                handle.callback(*handle.args)
        self.now_ms = target

    @property
    def live(self):
        return [h for _, _, h in self._queue if not h.cancelled]


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def two_slides():
    """A(Hi, 5s) -> B(Bye, 3s), no buttons."""
    return [
        Slide(id="A", text="Hi", duration=5000),
        Slide(id="B", text="Bye", duration=3000),
    ]


@pytest.fixture
def branching_slides():
    """A asks a question; one answer responds then jumps to C, one just continues."""
    return [
        Slide(id="A", text="Pick one", buttons=[
            Button(id="yes", label="Yes", action=ButtonAction.JUMP,
                   target_slide_id="C", response="Okay then"),
            Button(id="no", label="No", action=ButtonAction.NEXT),
            Button(id="lost", label="Lost", action=ButtonAction.JUMP,
                   target_slide_id="deleted-slide"),
        ]),
        Slide(id="B", text="Sequel", duration=4000),
        Slide(id="C", text="Branch", duration=4000),
    ]


@pytest.fixture
def workspace(tmp_path):
    ws = Workspace(project_name="test_project", root_path=tmp_path / "test_project")
    ws.initialize()
    return ws
