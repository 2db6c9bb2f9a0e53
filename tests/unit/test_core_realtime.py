"""Unit tests for zerostack.core.realtime using a fake Socket.IO transport."""
import pytest
import socketio

from tests.conftest import API_KEY, WS_URL
from zerostack.core.exceptions import ValidationError
from zerostack.core.realtime import ConnectionState, RealtimeChannel


@pytest.fixture()
def channel(transport):
    return RealtimeChannel(WS_URL, API_KEY, transport_factory=transport)


def server_event(socket, kind, node, item):
    socket.fire(f"data:{kind}", {"node": node, "item": item})


class TestConnection:
    def test_not_connected_until_first_use(self, channel, transport):
        assert channel.state is ConnectionState.DISCONNECTED
        assert transport.sockets == []

    def test_handshake_presents_api_key(self, channel, transport):
        channel.ensure_connection()
        assert transport.socket.connect_calls == [
            {"url": WS_URL, "auth": {"apiKey": API_KEY}, "socketio_path": "socket.io", "retry": False}
        ]
        assert channel.state is ConnectionState.CONNECTED

    def test_ensure_connection_is_idempotent(self, channel, transport):
        first = channel.ensure_connection()
        second = channel.ensure_connection()
        assert first is second
        assert len(transport.sockets) == 1

    def test_wires_data_and_lifecycle_events(self, channel, transport):
        channel.ensure_connection()
        assert {"data:created", "data:updated", "data:deleted",
                "connect", "disconnect", "connect_error"} <= set(transport.socket.handlers)

    def test_connect_failure_is_reported_not_raised(self, channel, transport):
        errors = []
        channel.on("connect_error", errors.append)
        transport.next_failure = socketio.exceptions.ConnectionError("Connection refused")

        socket = channel.ensure_connection()
        assert socket is transport.socket
        assert not channel.connected
        assert channel.state is ConnectionState.ERRORED
        assert errors == ["Connection refused"]

    def test_connect_failure_reported_once_when_transport_is_silent(self, channel, transport):
        errors = []
        channel.on("connect_error", errors.append)
        transport.report_error = False
        transport.next_failure = socketio.exceptions.ConnectionError("timeout")

        channel.ensure_connection()
        assert errors == ["timeout"]

    def test_failed_connect_is_retried_by_client(self, channel, transport):
        transport.next_failure = socketio.exceptions.ConnectionError("down")
        socket = channel.ensure_connection()

        assert channel.ensure_connection() is socket
        assert len(transport.sockets) == 1
        assert len(socket.background_tasks) == 1

        socket.fail_with = None
        socket.run_background_tasks()

        assert [call["retry"] for call in socket.connect_calls] == [False, True]
        assert channel.connected

    def test_exhausted_retries_leave_channel_errored(self, channel, transport):
        transport.next_failure = socketio.exceptions.ConnectionError("down")
        socket = channel.ensure_connection()

        socket.run_background_tasks()
        assert channel.state is ConnectionState.ERRORED

        assert channel.ensure_connection() is not socket
        assert len(transport.sockets) == 2
        assert channel.connected

    def test_retry_skipped_after_disconnect(self, channel, transport):
        transport.next_failure = socketio.exceptions.ConnectionError("down")
        socket = channel.ensure_connection()

        channel.disconnect()
        socket.fail_with = None
        socket.run_background_tasks()

        assert len(socket.connect_calls) == 1
        assert channel.state is ConnectionState.DISCONNECTED

    def test_late_connect_of_discarded_socket_is_ignored(self, channel, transport):
        seen = []
        channel.on("connect", lambda: seen.append("up"))
        transport.next_failure = socketio.exceptions.ConnectionError("down")
        socket = channel.ensure_connection()
        channel.disconnect()
        channel.on("connect", lambda: seen.append("up"))

        socket.reconnect()

        assert seen == []
        assert channel.state is ConnectionState.DISCONNECTED

    def test_transport_drop_and_recovery(self, channel, transport):
        seen = []
        channel.on("disconnect", lambda *args: seen.append("down"))
        channel.on("connect", lambda: seen.append("up"))
        channel.ensure_connection()

        transport.socket.drop()
        assert channel.state is ConnectionState.DISCONNECTED
        transport.socket.reconnect()
        assert channel.state is ConnectionState.CONNECTED
        assert seen == ["up", "down", "up"]

    def test_unknown_lifecycle_event_rejected(self, channel):
        with pytest.raises(ValueError, match="Unknown lifecycle event"):
            channel.on("reconnect", lambda: None)


class TestSubscriptions:
    def test_subscribe_sends_intent(self, channel, transport):
        assert channel.subscribe("messages", lambda item, kind: None) is True
        assert transport.socket.emitted == [("subscribe", {"node": "messages"})]
        assert channel.subscriptions == ["messages"]

    def test_dispatch_invokes_handler_with_item_and_kind(self, channel, transport):
        received = []
        channel.subscribe("messages", lambda item, kind: received.append((item, kind)))

        for kind in ("created", "updated", "deleted"):
            server_event(transport.socket, kind, "messages", {"_id": "m1"})

        assert received == [
            ({"_id": "m1"}, "created"),
            ({"_id": "m1"}, "updated"),
            ({"_id": "m1"}, "deleted"),
        ]

    def test_resubscribe_replaces_handler(self, channel, transport):
        calls = []
        channel.subscribe("messages", lambda item, kind: calls.append("h1"))
        channel.subscribe("messages", lambda item, kind: calls.append("h2"))

        server_event(transport.socket, "created", "messages", {"_id": "m1"})

        assert calls == ["h2"]
        assert channel.subscriptions == ["messages"]

    def test_events_routed_per_node(self, channel, transport):
        rooms, messages = [], []
        channel.subscribe("rooms", lambda item, kind: rooms.append(item["_id"]))
        channel.subscribe("messages", lambda item, kind: messages.append(item["_id"]))

        server_event(transport.socket, "created", "messages", {"_id": "m1"})
        server_event(transport.socket, "created", "rooms", {"_id": "r1"})

        assert rooms == ["r1"]
        assert messages == ["m1"]

    def test_unknown_node_dropped_silently(self, channel, transport):
        channel.ensure_connection()
        assert channel.dispatch("created", "ghost", {"_id": "x"}) is False

    def test_unsubscribe_is_local_only(self, channel, transport):
        calls = []
        channel.subscribe("messages", lambda item, kind: calls.append(item))
        channel.unsubscribe("messages")

        server_event(transport.socket, "created", "messages", {"_id": "m1"})

        assert calls == []
        assert transport.socket.emitted == [("subscribe", {"node": "messages"})]

    def test_unsubscribe_unknown_node_is_noop(self, channel):
        channel.unsubscribe("never-subscribed")

    def test_handler_error_does_not_break_dispatch(self, channel, transport):
        calls = []

        def broken(item, kind):
            raise RuntimeError("boom")

        channel.subscribe("rooms", broken)
        channel.subscribe("messages", lambda item, kind: calls.append(item["_id"]))

        server_event(transport.socket, "created", "rooms", {"_id": "r1"})
        server_event(transport.socket, "created", "messages", {"_id": "m1"})

        assert calls == ["m1"]

    def test_malformed_event_ignored(self, channel, transport):
        calls = []
        channel.subscribe("messages", lambda item, kind: calls.append(item))
        transport.socket.fire("data:created", "not-a-dict")
        assert calls == []

    def test_subscribe_while_offline_is_sent_on_connect(self, channel, transport):
        transport.next_failure = socketio.exceptions.ConnectionError("down")
        assert channel.subscribe("messages", lambda item, kind: None) is False
        assert channel.subscriptions == ["messages"]

        socket = transport.socket
        assert socket.emitted == []

        socket.fail_with = None
        socket.run_background_tasks()

        assert socket.emitted == [("subscribe", {"node": "messages"})]
        assert channel.connected

    def test_reconnect_resubscribes_every_node(self, channel, transport):
        channel.subscribe("rooms", lambda item, kind: None)
        channel.subscribe("messages", lambda item, kind: None)
        socket = transport.socket
        socket.emitted.clear()

        socket.drop()
        socket.reconnect()

        assert sorted(node["node"] for _, node in socket.emitted) == ["messages", "rooms"]

    def test_invalid_node_rejected(self, channel):
        with pytest.raises(ValidationError):
            channel.subscribe("", lambda item, kind: None)


class TestDisconnect:
    def test_full_reset(self, channel, transport):
        calls = []
        channel.subscribe("messages", lambda item, kind: calls.append(item))
        socket = transport.socket

        channel.disconnect()
        server_event(socket, "created", "messages", {"_id": "m1"})

        assert calls == []
        assert channel.subscriptions == []
        assert channel.state is ConnectionState.DISCONNECTED
        assert socket.disconnect_calls == 1

    def test_disconnect_callbacks_fire_then_clear(self, channel, transport):
        seen = []
        channel.on("disconnect", lambda *args: seen.append(args))
        channel.ensure_connection()

        channel.disconnect()
        assert seen == [("client disconnect",)]

        channel.ensure_connection()
        channel.disconnect()
        assert len(seen) == 1

    def test_fresh_connection_after_disconnect(self, channel, transport):
        channel.subscribe("messages", lambda item, kind: None)
        channel.disconnect()

        channel.subscribe("messages", lambda item, kind: None)

        assert len(transport.sockets) == 2
        assert transport.socket.emitted == [("subscribe", {"node": "messages"})]
        assert channel.connected

    def test_disconnect_without_connection(self, channel):
        channel.disconnect()
        assert channel.state is ConnectionState.DISCONNECTED
