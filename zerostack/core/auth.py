"""ZeroStack end-user authentication (login/register)."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .client import RequestClient
from .exceptions import ProtocolError
from .identity import Session
from .validators import validate_email, validate_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login or registration."""
    user: Dict[str, Any] = field(default_factory=dict)
    access_token: str = ""
    refresh_token: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any, endpoint: str) -> "AuthResult":
        if not isinstance(payload, dict) or not payload.get("accessToken"):
            raise ProtocolError("Authentication response missing access token", 200, endpoint)
        return cls(
            user=payload.get("user") or {},
            access_token=payload["accessToken"],
            refresh_token=payload.get("refreshToken"),
        )

    def to_session(self, guest_id: Optional[str] = None) -> Session:
        return Session(
            token=self.access_token,
            guest_id=guest_id,
            refresh_token=self.refresh_token,
            user=self.user,
        )


class AuthService:
    """Service for end-user authentication against ``/auth``.

    Does not install the returned token; the caller decides when to call
    ``set_token`` (see :meth:`zerostack.sdk.ZeroStack.sign_in`).
    """

    def __init__(self, client: RequestClient):
        self.client = client

    def login(self, email: str, password: str) -> AuthResult:
        return self._authenticate("/auth/login", email, password)

    def register(self, email: str, password: str, confirm: Optional[str] = None) -> AuthResult:
        """Create an account.

        Args:
            email: Account email
            password: Chosen password
            confirm: Optional confirmation, checked before any request is sent
        """
        return self._authenticate("/auth/register", email, validate_password(password, confirm))

    def _authenticate(self, path: str, email: str, password: str) -> AuthResult:
        payload = {"email": validate_email(email), "password": validate_password(password)}
        data = self.client.execute("POST", path, payload)
        result = AuthResult.from_payload(data, path)
        logger.info(f"[auth] {path.rsplit('/', 1)[-1]} succeeded for {payload['email']}")
        return result
