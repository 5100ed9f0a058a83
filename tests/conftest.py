"""Pytest bootstrap configuration.

Configuration objects read ``FILESHARE_*`` environment variables, so any
inherited from the shell are dropped before tests build their own.
"""
import os

import pytest


for _name in [name for name in os.environ if name.upper().startswith("FILESHARE_")]:
    del os.environ[_name]


class RecordingLogger:
    """Stand-in for a structlog logger that keeps emitted events."""

    def __init__(self):
        self.events = []

    def _record(self, event, **kwargs):
        self.events.append((event, kwargs))

    debug = info = warning = error = _record

    def names(self):
        return [event for event, _ in self.events]


@pytest.fixture
def config_logger(monkeypatch):
    import core.config

    recorder = RecordingLogger()
    monkeypatch.setattr(core.config, "logger", recorder)
    return recorder
