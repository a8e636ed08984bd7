# tests/conftest.py

import pytest

from book_analyzer import BookAnalyzer
from events import iter_events


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    monkeypatch.delenv("BOOK_ANALYZER_CONFIG_PATH", raising=False)


@pytest.fixture
def replay():
    """Runs raw text lines through a fresh analyzer and returns the formatted output lines."""
    def _replay(lines, target, **kwargs):
        analyzer = BookAnalyzer(target, **kwargs)
        return [e.format() for e in analyzer.run(iter_events(lines))]
    return _replay
