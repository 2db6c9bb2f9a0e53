"""ZeroStack SDK entry point composing identity, HTTP services and realtime."""
from __future__ import annotations
import logging
from typing import Any, Callable, Optional

from .config import ClientConfig, derive_ws_url
from .core.admin import ConfigService
from .core.auth import AuthResult, AuthService
from .core.client import REQUEST_TIMEOUT, RequestClient
from .core.data import DataService
from .core.identity import IdentityResolver, Session
from .core.realtime import RealtimeChannel

logger = logging.getLogger(__name__)


class ZeroStack:
    """Client for a ZeroStack backend.

    Usage:
        zs = ZeroStack("http://localhost:3002/api", "zs_...")
        result = zs.sign_in("a@b.com", "pw")
        zs.data.create("messages", {"text": "hi"})
        zs.realtime.subscribe("messages", lambda item, kind: print(kind, item))
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        ws_url: Optional[str] = None,
        session: Optional[Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        http: Any = None,
        transport_factory: Optional[Callable[[], Any]] = None,
        socketio_path: str = "socket.io",
    ):
        self.identity = IdentityResolver(session)
        self.client = RequestClient(api_url, api_key, self.identity, timeout=timeout, http=http)
        self.auth = AuthService(self.client)
        self.data = DataService(self.client)
        self.config = ConfigService(self.client)
        self.realtime = RealtimeChannel(
            ws_url or derive_ws_url(api_url),
            api_key,
            transport_factory=transport_factory,
            socketio_path=socketio_path,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "ZeroStack":
        return cls(
            config.api_url,
            config.api_key,
            ws_url=config.ws_url,
            timeout=config.timeout,
            socketio_path=config.socketio_path,
            **kwargs,
        )

    # ── Identity ───────────────────────────────────────
    @property
    def session(self) -> Session:
        return self.identity.session

    def set_token(self, token: str) -> None:
        self.identity.set_token(token)

    def clear_token(self) -> None:
        self.identity.clear_token()

    def set_guest_id(self, guest_id: str) -> None:
        self.identity.set_guest_id(guest_id)

    def clear_guest_id(self) -> None:
        self.identity.clear_guest_id()

    def restore(self, session: Session) -> None:
        """Install a session the application saved earlier."""
        self.identity.load_session(session)

    # ── Auth flows ─────────────────────────────────────
    def sign_in(self, email: str, password: str) -> AuthResult:
        """Log in and make the returned token the active identity."""
        return self._adopt(self.auth.login(email, password))

    def sign_up(self, email: str, password: str, confirm: Optional[str] = None) -> AuthResult:
        """Register and make the returned token the active identity."""
        return self._adopt(self.auth.register(email, password, confirm))

    def _adopt(self, result: AuthResult) -> AuthResult:
        self.identity.load_session(result.to_session())
        return result

    def enter_as_guest(self, guest_id: str) -> None:
        self.identity.clear_token()
        self.identity.set_guest_id(guest_id)

    def logout(self) -> None:
        """Forget the session and fully reset the realtime channel."""
        self.identity.clear()
        self.realtime.disconnect()
        logger.info("[zerostack] Logged out")
