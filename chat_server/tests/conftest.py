"""Pytest configuration: Django settings for the chat service and a fresh room per test."""

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chat_server.settings")
os.environ.setdefault("DJANGO_DEBUG", "1")
os.environ.setdefault("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

import django  # noqa: E402

django.setup()

import pytest  # noqa: E402

from realtime import coordinator as coordinator_module  # noqa: E402
from realtime.registry import IdentityRegistry  # noqa: E402
from realtime.session import SessionTable  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_room():
    """Every test starts with an empty process-wide room."""
    coordinator_module.reset_coordinator()
    yield
    coordinator_module.reset_coordinator()


@pytest.fixture
def registry():
    return IdentityRegistry(min_length=2, max_length=20)


@pytest.fixture
def sessions():
    return SessionTable()


class Outbox:
    """Recording stand-in for the transport's send primitive."""

    def __init__(self):
        self.sent = []

    async def __call__(self, session_id, payload):
        self.sent.append((session_id, payload))

    def for_session(self, session_id):
        return [payload for sid, payload in self.sent if sid == session_id]

    def types_for(self, session_id):
        return [payload["type"] for payload in self.for_session(session_id)]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def outbox():
    return Outbox()
