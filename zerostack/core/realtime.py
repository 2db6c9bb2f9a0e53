"""Realtime channel multiplexing data-node events over one Socket.IO connection.

One connection per channel; each node maps to exactly one handler. The
Socket.IO client owns reconnection and backoff, and the channel only observes
its lifecycle signals and relays them.
"""
from __future__ import annotations
import logging
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import socketio

from .validators import validate_node

logger = logging.getLogger(__name__)

ItemHandler = Callable[[Dict[str, Any], str], Any]
LifecycleCallback = Callable[..., Any]

EVENT_KINDS = {
    "data:created": "created",
    "data:updated": "updated",
    "data:deleted": "deleted",
}
LIFECYCLE_EVENTS = ("connect", "disconnect", "connect_error")


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERRORED = "errored"


def default_transport() -> socketio.Client:
    """Socket.IO client with library-managed reconnection."""
    return socketio.Client(reconnection=True, logger=False, engineio_logger=False)


class RealtimeChannel:
    """Per-node event router over a single live connection.

    Usage:
        channel = RealtimeChannel("http://localhost:3002", "zs_...")
        channel.on("connect", lambda: print("online"))
        channel.subscribe("messages", lambda item, kind: print(kind, item))
        channel.unsubscribe("messages")
        channel.disconnect()
    """

    def __init__(
        self,
        ws_url: str,
        api_key: str,
        transport_factory: Optional[Callable[[], Any]] = None,
        socketio_path: str = "socket.io",
    ):
        """Initialize the channel without connecting.

        Args:
            ws_url: Socket.IO server URL (no ``/api`` suffix)
            api_key: Project API key presented at handshake
            transport_factory: Zero-argument callable returning a Socket.IO
                client-like object (``on``, ``connect``, ``emit``, ``disconnect``)
            socketio_path: Socket.IO endpoint path on the server
        """
        self.ws_url = ws_url.rstrip("/")
        self.api_key = api_key
        self.socketio_path = socketio_path
        self._transport_factory = transport_factory or default_transport
        self._socket: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._handlers: Dict[str, ItemHandler] = {}
        self._lifecycle: Dict[str, List[LifecycleCallback]] = {name: [] for name in LIFECYCLE_EVENTS}
        self._error_reported = False

    # ── State ──────────────────────────────────────────
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def subscriptions(self) -> List[str]:
        return list(self._handlers)

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self._state:
            logger.debug(f"[realtime] {self._state.value} -> {state.value}")
            self._state = state

    # ── Connection ─────────────────────────────────────
    def ensure_connection(self) -> Any:
        """Return the connection object, opening it on first use.

        Never raises for transport failures: they are reported through
        ``connect_error`` callbacks, the channel is left ``errored`` and the
        Socket.IO client keeps retrying in the background with its own
        backoff. Registered subscriptions are sent once it connects.

        Returns:
            The connection object, connected or still retrying
        """
        if self._socket is not None:
            return self._socket

        socket = self._transport_factory()
        for event, kind in EVENT_KINDS.items():
            socket.on(event, self._router(kind))
        socket.on("connect", partial(self._handle_connect, socket))
        socket.on("disconnect", self._handle_disconnect)
        socket.on("connect_error", partial(self._handle_connect_error, socket))

        self._socket = socket
        self._error_reported = False
        self._set_state(ConnectionState.CONNECTING)
        try:
            self._connect(socket)
        except socketio.exceptions.ConnectionError as exc:
            logger.warning(f"[realtime] Could not connect to {self.ws_url}: {exc}")
            if not self._error_reported:
                self._handle_connect_error(socket, str(exc))
            socket.start_background_task(self._retry_connect, socket)
        return socket

    def _connect(self, socket: Any, retry: bool = False) -> None:
        socket.connect(
            self.ws_url,
            auth={"apiKey": self.api_key},
            socketio_path=self.socketio_path,
            retry=retry,
        )

    def _retry_connect(self, socket: Any) -> None:
        """Background task: the client retries until connected or out of attempts."""
        if socket is not self._socket:
            return
        self._set_state(ConnectionState.CONNECTING)
        try:
            self._connect(socket, retry=True)
        except socketio.exceptions.ConnectionError as exc:
            logger.error(f"[realtime] Giving up on {self.ws_url}: {exc}")
            if socket is self._socket:
                self._socket = None
            return
        if socket is not self._socket:
            # Channel was reset while retrying
            socket.disconnect()

    def disconnect(self) -> None:
        """Full reset: close the connection and forget every handler."""
        socket, self._socket = self._socket, None
        if socket is not None:
            try:
                socket.disconnect()
            except socketio.exceptions.SocketIOError as exc:
                logger.warning(f"[realtime] Error while disconnecting: {exc}")
        self._handlers.clear()
        for callbacks in self._lifecycle.values():
            callbacks.clear()
        self._set_state(ConnectionState.DISCONNECTED)

    # ── Subscriptions ──────────────────────────────────
    def subscribe(self, node: str, handler: ItemHandler) -> bool:
        """Route ``node``'s events to ``handler``, replacing any previous one.

        The subscribe intent is sent one-way; the subscription is active
        locally straight away. If the connection is not up yet, the intent is
        sent when it comes up.

        Returns:
            True if the intent was sent now
        """
        node = validate_node(node)
        socket = self.ensure_connection()
        self._handlers[node] = handler
        if socket is None or not self.connected:
            return False
        return self._send_subscribe(socket, node)

    def unsubscribe(self, node: str) -> None:
        """Drop the local handler for ``node``. The server is not notified."""
        self._handlers.pop(node, None)

    def _send_subscribe(self, socket: Any, node: str) -> bool:
        try:
            socket.emit("subscribe", {"node": node})
        except socketio.exceptions.SocketIOError as exc:
            logger.warning(f"[realtime] subscribe '{node}' not sent: {exc}")
            return False
        return True

    # ── Dispatch ───────────────────────────────────────
    def dispatch(self, kind: str, node: str, item: Dict[str, Any]) -> bool:
        """Hand one server event to ``node``'s handler.

        Returns:
            True if a handler was invoked; events for unknown nodes are dropped
        """
        handler = self._handlers.get(node)
        if handler is None:
            logger.debug(f"[realtime] Dropped {kind} for unsubscribed node '{node}'")
            return False
        try:
            handler(item, kind)
        except Exception:
            logger.exception(f"[realtime] Handler for '{node}' failed on {kind}")
        return True

    def _router(self, kind: str) -> Callable[[Any], None]:
        def route(payload: Any = None) -> None:
            if not isinstance(payload, dict) or "node" not in payload:
                logger.warning(f"[realtime] Ignoring malformed {kind} event: {payload!r}")
                return
            self.dispatch(kind, payload["node"], payload.get("item") or {})
        return route

    # ── Lifecycle ──────────────────────────────────────
    def on(self, event: str, callback: LifecycleCallback) -> None:
        """Register a callback for ``connect``, ``disconnect`` or ``connect_error``."""
        if event not in self._lifecycle:
            expected = ", ".join(LIFECYCLE_EVENTS)
            raise ValueError(f"Unknown lifecycle event '{event}' (expected one of {expected})")
        self._lifecycle[event].append(callback)

    def _emit_lifecycle(self, event: str, *args: Any) -> None:
        for callback in list(self._lifecycle[event]):
            try:
                callback(*args)
            except Exception:
                logger.exception(f"[realtime] {event} callback failed")

    def _handle_connect(self, socket: Any, *args: Any) -> None:
        if socket is not self._socket:
            return
        self._set_state(ConnectionState.CONNECTED)
        logger.info(f"[realtime] Connected to {self.ws_url}")
        # Server-side rooms do not survive a reconnect.
        for node in list(self._handlers):
            self._send_subscribe(socket, node)
        self._emit_lifecycle("connect")

    def _handle_disconnect(self, *args: Any) -> None:
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info(f"[realtime] Disconnected from {self.ws_url}")
        self._emit_lifecycle("disconnect", *args)

    def _handle_connect_error(self, socket: Any, *args: Any) -> None:
        if socket is not self._socket:
            return
        self._error_reported = True
        self._set_state(ConnectionState.ERRORED)
        logger.warning(f"[realtime] Connection error: {args[0] if args else 'unknown'}")
        self._emit_lifecycle("connect_error", *args)
