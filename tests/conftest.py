"""
Shared fixtures: a manually advanced clock and an isolated home directory.
"""

import pytest


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_760_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep a developer's ~/.training-tracker out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("TRAINING_TRACKER_HOME", raising=False)
    return home
