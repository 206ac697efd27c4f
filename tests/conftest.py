"""
Shared fixtures for the QuillQuiver test suite.
"""

from datetime import datetime, timedelta, timezone

import pytest

from quillquiver.config import AppConfig, AuthConfig, EditorConfig
from quillquiver.services.memory_facade import InMemoryFacade

AUTOSAVE_DELAY = 0.05


class ManualClock:
    """Clock the tests move forward by hand."""

    def __init__(self):
        self.now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def facade(clock):
    backend = InMemoryFacade(clock=clock)
    backend.add_user("a@x.com", "correct-horse")
    return backend


@pytest.fixture
def editor_config():
    return EditorConfig(autosave_delay_seconds=AUTOSAVE_DELAY)


@pytest.fixture
def auth_config():
    return AuthConfig()


@pytest.fixture
def app_config(editor_config, auth_config):
    return AppConfig(editor=editor_config, auth=auth_config)


@pytest.fixture
def user(facade):
    return facade.users["a@x.com"][1]
