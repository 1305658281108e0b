import io

import pytest

import tickbar
from tickbar import ProgressBar


class FakeClock:
    """Monotonic clock that only moves when told to"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TTYStream(io.StringIO):
    """String stream that claims to be a terminal"""

    def isatty(self):
        return True


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(tickbar.time, 'monotonic', fake)
    return fake


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def make_bar(stream, clock):
    def factory(**kwargs):
        kwargs.setdefault('stream', stream)
        kwargs.setdefault('force', True)
        kwargs.setdefault('show_after', 0)
        kwargs.setdefault('width', 40)
        return ProgressBar(**kwargs)
    return factory


@pytest.fixture
def tty_stream(monkeypatch):
    monkeypatch.setenv('TERM', 'xterm-256color')
    monkeypatch.delenv('COLORTERM', raising=False)
    monkeypatch.delenv('TICKBAR_ENABLED', raising=False)
    return TTYStream()
