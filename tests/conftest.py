"""Shared fixtures for recorder tests."""

import pytest

from recorder.session_state import SessionState
from recorder.trace_log import TraceLog
from recorder.translator import EventTranslator
from tests.fakes import FakeClock, FakePlayer, FakeVideo

MANIFEST_URL = "https://example.com/stream/manifest.mpd"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def trace(clock: FakeClock) -> TraceLog:
    return TraceLog(title="test trace", clock=clock)


@pytest.fixture
def video() -> FakeVideo:
    return FakeVideo()


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def translator(trace: TraceLog, video: FakeVideo) -> EventTranslator:
    return EventTranslator(sink=trace, video=video, url=MANIFEST_URL, autoplay=True)


@pytest.fixture
def active() -> SessionState:
    return SessionState.ACTIVE
