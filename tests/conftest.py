import os
import random
from datetime import datetime, timedelta

import pytest

os.environ.setdefault("PUSH_MODE", "stub")
os.environ.setdefault("QUEUE_SCHEDULER_ENABLED", "false")
os.environ.setdefault("PUSH_INTERNAL_TOKEN", "")

from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from models import ALL_MODELS
from tracker import HydrationApp, MemoryStore, ProgressTracker


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Records call_later timers instead of running them."""

    def __init__(self):
        self.handles = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(delay, lambda: callback(*args))
        self.handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def run_next(self):
        handle = min(self.pending(), key=lambda h: h.delay)
        handle.fired = True
        handle.callback()
        return handle


class RecordingBanner:
    def __init__(self):
        self.shown = []
        self.visible = False

    def show(self, message):
        self.shown.append(message)
        self.visible = True

    def hide(self):
        self.visible = False


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 9, 0, 0))


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def tracker(store, clock):
    return ProgressTracker(store, clock=clock, rng=random.Random(7))


@pytest.fixture
def banner():
    return RecordingBanner()


@pytest.fixture
def app(store, clock, loop, banner):
    return HydrationApp(store, banner=banner, loop=loop, clock=clock, rng=random.Random(7))


@pytest.fixture
async def queue_db():
    client = AsyncMongoMockClient()
    await init_beanie(database=client["aqua_buddy_test"], document_models=ALL_MODELS)
    yield client
