import os
from datetime import datetime, timezone

import pytest


@pytest.fixture
def t0():
    """A fixed review instant."""
    return datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and STUDYDECK_* settings from the developer's machine
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("STUDYDECK_"):
            monkeypatch.delenv(key)
    return home
