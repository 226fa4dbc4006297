"""
Tests for the room coordinator: dispatch over the session lifecycle and
fan-out through a recording transport.
"""

import asyncio
import threading
import time
from datetime import datetime, timezone

import pytest

from realtime.broadcaster import MessageBroadcaster
from realtime.coordinator import Coordinator, dispatch, get_coordinator, reset_coordinator
from realtime.events import ChatMessageEvent, DisconnectEvent, JoinEvent, TypingEvent
from realtime.session import SessionState

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def room():
    return Coordinator(clock=lambda: FIXED_NOW)


async def _open(room, *session_ids):
    for sid in session_ids:
        await room.connect(sid)


class TestDispatch:
    """The pure handler, without any transport."""

    def test_unknown_session_is_a_no_op(self, registry, sessions):
        effects = dispatch(
            registry, sessions, "ghost", JoinEvent(name="alice"),
            broadcaster=MessageBroadcaster(), now=FIXED_NOW,
        )
        assert effects == []
        assert registry.snapshot() == []

    def test_join_effects_are_resolved_from_snapshot(self, registry, sessions):
        sessions.open("s1")
        sessions.open("s2")
        effects = dispatch(
            registry, sessions, "s1", JoinEvent(name="alice"),
            broadcaster=MessageBroadcaster(), now=FIXED_NOW,
        )
        assert [e.payload()["type"] for e in effects] == ["user-joined", "user-list"]
        assert effects[0].recipients == ("s2",)
        assert effects[1].recipients == ("s1", "s2")

        # A session opened afterwards is not a recipient of already-built effects.
        sessions.open("s3")
        assert "s3" not in effects[1].recipients

    def test_failed_join_leaves_state_untouched(self, registry, sessions):
        sessions.open("s1")
        effects = dispatch(
            registry, sessions, "s1", JoinEvent(name="x"),
            broadcaster=MessageBroadcaster(), now=FIXED_NOW,
        )
        assert len(effects) == 1
        assert effects[0].recipients == ("s1",)
        assert effects[0].payload()["type"] == "error"
        assert sessions.get("s1").state is SessionState.CONNECTED
        assert registry.snapshot() == []

    def test_disconnect_of_unjoined_session_announces_nothing(self, registry, sessions):
        sessions.open("s1")
        sessions.open("s2")
        effects = dispatch(
            registry, sessions, "s1", DisconnectEvent(),
            broadcaster=MessageBroadcaster(), now=FIXED_NOW,
        )
        assert effects == []
        assert sessions.active_ids() == ["s2"]


@pytest.mark.asyncio
async def test_scenario_a_join(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)

    assert room.roster() == ["alice"]
    assert outbox.for_session("s2") == [
        {"type": "user-joined", "name": "alice"},
        {"type": "user-list", "users": ["alice"]},
    ]
    # No self-notification, but the subject does get the roster.
    assert outbox.for_session("s1") == [{"type": "user-list", "users": ["alice"]}]


@pytest.mark.asyncio
async def test_scenario_b_duplicate_name(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.handle("s2", JoinEvent(name="alice"), outbox)

    assert outbox.sent == [("s2", {"type": "error", "message": "Username already taken. Please choose another."})]
    assert room.roster() == ["alice"]
    assert room.sessions.get("s2").state is SessionState.CONNECTED


@pytest.mark.asyncio
async def test_scenario_c_echo_to_everyone_with_shared_timestamp(room, outbox):
    await _open(room, "s1", "s2", "s3")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    await room.handle("s2", JoinEvent(name="bob"), outbox)
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="hello"), outbox)

    expected = {
        "type": "chat-message",
        "name": "alice",
        "message": "hello",
        "timestamp": FIXED_NOW.isoformat(),
    }
    # Sender included, and so is s3, which is connected but has not joined.
    assert outbox.sent == [("s1", expected), ("s2", expected), ("s3", expected)]


@pytest.mark.asyncio
async def test_scenario_d_leave(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.disconnect("s1", outbox)

    assert outbox.sent == [
        ("s2", {"type": "user-left", "name": "alice"}),
        ("s2", {"type": "user-list", "users": []}),
    ]
    assert room.roster() == []


@pytest.mark.asyncio
async def test_scenario_e_typing_relay(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.handle("s1", TypingEvent(is_typing=True), outbox)
    await room.handle("s1", TypingEvent(is_typing=False), outbox)

    assert outbox.for_session("s2") == [
        {"type": "typing", "name": "alice", "isTyping": True},
        {"type": "typing", "name": "alice", "isTyping": False},
    ]
    assert outbox.for_session("s1") == []


@pytest.mark.asyncio
async def test_typing_from_unjoined_session_is_ignored(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", TypingEvent(is_typing=True), outbox)
    assert outbox.sent == []


@pytest.mark.asyncio
async def test_message_before_join_is_unauthorized(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", ChatMessageEvent(message="hi"), outbox)
    assert outbox.sent == [("s1", {"type": "error", "message": "Not authenticated"})]


@pytest.mark.asyncio
async def test_message_length_boundary(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="x" * 500), outbox)
    assert outbox.types_for("s2") == ["chat-message"]
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="x" * 501), outbox)
    assert outbox.sent == [("s1", {"type": "error", "message": "Message too long. Maximum 500 characters."})]


@pytest.mark.asyncio
async def test_message_length_is_measured_after_trimming(room, outbox):
    await _open(room, "s1")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="  " + "x" * 500 + "\n"), outbox)
    assert outbox.for_session("s1")[0]["message"] == "x" * 500


@pytest.mark.asyncio
async def test_message_is_sanitized(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="<b>hi</b>"), outbox)
    for _, payload in outbox.sent:
        assert payload["message"] == "&lt;b&gt;hi&lt;/b&gt;"


@pytest.mark.asyncio
async def test_second_join_is_rejected(room, outbox):
    await _open(room, "s1")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.handle("s1", JoinEvent(name="bob"), outbox)
    assert outbox.sent == [("s1", {"type": "error", "message": "Already joined"})]
    assert room.roster() == ["alice"]


@pytest.mark.asyncio
async def test_disconnect_twice_announces_once(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    await room.disconnect("s1", outbox)
    await room.disconnect("s1", outbox)

    assert outbox.types_for("s2") == ["user-left", "user-list"]


@pytest.mark.asyncio
async def test_events_after_disconnect_are_ignored(room, outbox):
    await _open(room, "s1", "s2")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    await room.disconnect("s1", outbox)
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="late"), outbox)
    await room.handle("s1", TypingEvent(is_typing=True), outbox)
    await room.handle("s1", JoinEvent(name="alice2"), outbox)

    assert outbox.sent == []
    assert room.roster() == []


@pytest.mark.asyncio
async def test_concurrent_joins_for_one_name(room, outbox):
    ids = [f"s{i}" for i in range(10)]
    await _open(room, *ids)

    await asyncio.gather(*(room.handle(sid, JoinEvent(name="alice"), outbox) for sid in ids))

    assert room.roster() == ["alice"]
    errors = [p for _, p in outbox.sent if p["type"] == "error"]
    assert len(errors) == 9


@pytest.mark.asyncio
async def test_uniqueness_holds_over_join_leave_sequences(room, outbox):
    ids = [f"s{i}" for i in range(6)]
    await _open(room, *ids)
    names = ["alice", "bob", "alice", "carol", "bob", "alice"]
    for sid, name in zip(ids, names):
        await room.handle(sid, JoinEvent(name=name), outbox)
        roster = room.roster()
        assert len(roster) == len(set(roster))
    assert room.roster() == ["alice", "bob", "carol"]

    await room.disconnect("s0", outbox)
    await room.handle("s2", JoinEvent(name="alice"), outbox)
    roster = room.roster()
    assert len(roster) == len(set(roster))
    assert roster == ["bob", "carol", "alice"]


@pytest.mark.asyncio
async def test_delivery_failure_does_not_stop_fan_out(room, outbox):
    await _open(room, "s1", "s2", "s3")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    async def flaky(session_id, payload):
        if session_id == "s2":
            raise RuntimeError("channel full")
        await outbox(session_id, payload)

    await room.handle("s1", ChatMessageEvent(message="hi"), flaky)
    assert [sid for sid, _ in outbox.sent] == ["s1", "s3"]


def test_process_wide_coordinator_is_shared_until_reset():
    first = get_coordinator()
    assert get_coordinator() is first
    reset_coordinator()
    assert get_coordinator() is not first


def test_threads_share_one_coordinator(monkeypatch):
    reset_coordinator()
    original_init = Coordinator.__init__

    def slow_init(self, *args, **kwargs):
        time.sleep(0.05)
        original_init(self, *args, **kwargs)

    # Any construction racing with the lookups below would now be slow enough to show up.
    monkeypatch.setattr(Coordinator, "__init__", slow_init)

    seen = []
    barrier = threading.Barrier(4)

    def lookup():
        barrier.wait()
        seen.append(get_coordinator())

    threads = [threading.Thread(target=lookup) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seen) == 4
    assert all(room is seen[0] for room in seen)


@pytest.mark.asyncio
async def test_message_length_counts_code_points(room, outbox):
    await _open(room, "s1")
    await room.handle("s1", JoinEvent(name="alice"), outbox)
    outbox.clear()

    # 500 emoji are 1000 UTF-16 units but 500 characters here.
    await room.handle("s1", ChatMessageEvent(message="\U0001F600" * 500), outbox)
    assert outbox.types_for("s1") == ["chat-message"]
    outbox.clear()

    await room.handle("s1", ChatMessageEvent(message="\U0001F600" * 501), outbox)
    assert outbox.types_for("s1") == ["error"]
