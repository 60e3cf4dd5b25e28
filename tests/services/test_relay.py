"""Tests for the relay router state machine."""

import json
import logging

import pytest

from whisper_relay.core.errors import ConnectionClosedError
from whisper_relay.services.mailbox import MailboxEntry


def _frame(**fields) -> str:
    return json.dumps(fields)


@pytest.mark.asyncio
async def test_register_binds_presence(services, make_connection) -> None:
    connection = make_connection()
    session = services.router.open_session(connection)

    await services.router.handle_frame(session, _frame(type="register", userId="alice"))

    assert session.registered
    assert services.presence.lookup("alice") is connection
    assert connection.sent == []


@pytest.mark.asyncio
async def test_register_flushes_mailbox_in_order(services, make_connection) -> None:
    services.mailbox.enqueue("alice", MailboxEntry(sender="bob", wire_message="m1"))
    services.mailbox.enqueue("alice", MailboxEntry(sender="carol", wire_message="m2"))
    connection = make_connection()
    session = services.router.open_session(connection)

    flushed = await services.router.register(session, "alice")

    assert flushed == 2
    assert connection.sent == [
        {"type": "offline-message", "from": "bob", "wireMessage": "m1"},
        {"type": "offline-message", "from": "carol", "wireMessage": "m2"},
    ]
    assert services.mailbox.drain_all("alice") == []


@pytest.mark.asyncio
async def test_flush_failure_requeues_undelivered(services, make_connection, mocker) -> None:
    for i in range(3):
        services.mailbox.enqueue("alice", MailboxEntry(sender="bob", wire_message=f"m{i}"))
    connection = make_connection()
    mocker.patch.object(
        connection,
        "send_json",
        new=mocker.AsyncMock(side_effect=[None, ConnectionClosedError("peer went away")]),
    )
    session = services.router.open_session(connection)

    flushed = await services.router.register(session, "alice")

    assert flushed == 1
    remaining = services.mailbox.drain_all("alice")
    assert [entry.wire_message for entry in remaining] == ["m1", "m2"]


@pytest.mark.asyncio
async def test_reregistration_releases_previous_identity(services, make_connection) -> None:
    connection = make_connection()
    session = services.router.open_session(connection)

    await services.router.register(session, "alice")
    await services.router.register(session, "alice-2")

    assert services.presence.lookup("alice") is None
    assert services.presence.lookup("alice-2") is connection


@pytest.mark.asyncio
async def test_signal_forwarded_to_live_recipient(services, make_connection) -> None:
    alice, bob = make_connection(), make_connection()
    alice_session = services.router.open_session(alice)
    bob_session = services.router.open_session(bob)
    await services.router.register(alice_session, "alice")
    await services.router.register(bob_session, "bob")

    await services.router.handle_frame(
        bob_session, _frame(type="signal", to="alice", signal={"sdp": "offer"})
    )

    assert alice.sent == [{"type": "signal", "from": "bob", "signal": {"sdp": "offer"}}]
    assert bob.sent == []


@pytest.mark.asyncio
async def test_signal_to_absent_recipient_is_dropped(services, make_connection, caplog) -> None:
    bob = make_connection()
    session = services.router.open_session(bob)
    await services.router.register(session, "bob")

    with caplog.at_level(logging.WARNING):
        forwarded = await services.router.forward_signal(session, "alice", {"sdp": "offer"})

    assert forwarded is False
    assert bob.sent == []
    assert services.mailbox.pending_count("alice") == 0
    assert "not connected" in caplog.text


@pytest.mark.asyncio
async def test_signal_to_closed_recipient_is_dropped(services, make_connection) -> None:
    services.presence.register("alice", make_connection(open_=False))
    session = services.router.open_session(make_connection())
    await services.router.register(session, "bob")

    assert await services.router.forward_signal(session, "alice", "x") is False


@pytest.mark.asyncio
async def test_signal_before_registration_is_ignored(services, make_connection) -> None:
    alice = make_connection()
    services.presence.register("alice", alice)
    session = services.router.open_session(make_connection())

    await services.router.handle_frame(session, _frame(type="signal", to="alice", signal="x"))

    assert alice.sent == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        _frame(type="register"),
        _frame(type="register", userId=""),
        _frame(type="signal", signal="x"),
        b"\xff\xfe",
        "[" * 100_000 + "]" * 100_000,
    ],
)
async def test_malformed_frames_are_contained(services, make_connection, raw) -> None:
    connection = make_connection()
    session = services.router.open_session(connection)

    await services.router.handle_frame(session, raw)
    await services.router.handle_frame(session, _frame(type="register", userId="alice"))

    assert services.presence.lookup("alice") is connection


@pytest.mark.asyncio
async def test_unknown_type_is_ignored(services, make_connection, caplog) -> None:
    connection = make_connection()
    session = services.router.open_session(connection)

    with caplog.at_level(logging.WARNING):
        await services.router.handle_frame(session, _frame(type="presence-ping"))

    assert not session.registered
    assert connection.sent == []
    assert "Unknown message type" in caplog.text


@pytest.mark.asyncio
async def test_close_session_unregisters_only_own_binding(services, make_connection) -> None:
    old, new = make_connection(), make_connection()
    old_session = services.router.open_session(old)
    new_session = services.router.open_session(new)
    await services.router.register(old_session, "alice")
    await services.router.register(new_session, "alice")

    services.router.close_session(old_session)
    assert services.presence.lookup("alice") is new

    services.router.close_session(new_session)
    assert services.presence.lookup("alice") is None


def test_close_unregistered_session_is_noop(services, make_connection) -> None:
    session = services.router.open_session(make_connection())
    services.router.close_session(session)
    assert services.presence.count() == 0


@pytest.mark.asyncio
async def test_reregistration_same_id_drains_again(services, make_connection) -> None:
    connection = make_connection()
    session = services.router.open_session(connection)
    services.mailbox.enqueue("alice", MailboxEntry(sender="bob", wire_message="m1"))
    await services.router.register(session, "alice")

    services.mailbox.enqueue("alice", MailboxEntry(sender="carol", wire_message="m2"))
    await services.router.handle_frame(session, _frame(type="register", userId="alice"))

    assert connection.sent == [
        {"type": "offline-message", "from": "bob", "wireMessage": "m1"},
        {"type": "offline-message", "from": "carol", "wireMessage": "m2"},
    ]
    assert services.presence.lookup("alice") is connection
    assert services.mailbox.drain_all("alice") == []


@pytest.mark.asyncio
async def test_handler_error_is_contained_to_its_frame(services, make_connection, mocker) -> None:
    connection = make_connection()
    session = services.router.open_session(connection)
    mocker.patch.object(services.presence, "lookup", side_effect=[KeyError("boom"), None])
    await services.router.register(session, "bob")

    await services.router.handle_frame(session, _frame(type="signal", to="alice", signal="x"))
    await services.router.handle_frame(session, _frame(type="signal", to="alice", signal="y"))

    assert session.registered
    assert services.presence.lookup.call_count == 2
