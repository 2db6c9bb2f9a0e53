"""Session state and outgoing credential resolution.

The resolver never reads or writes persistent storage: applications load a
:class:`Session` from wherever they keep it and hand it over explicitly.
"""
from __future__ import annotations
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import jwt


@dataclass
class Session:
    """Credentials for one application user.

    A token always wins over a guest id for authorization purposes,
    even when both are set.
    """
    token: Optional[str] = None
    guest_id: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user,
            "token": self.token,
            "refreshToken": self.refresh_token,
            "guestId": self.guest_id,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Session":
        return cls(
            token=raw.get("token") or None,
            guest_id=raw.get("guestId") or None,
            refresh_token=raw.get("refreshToken") or None,
            user=raw.get("user"),
        )


class IdentityResolver:
    """Holds the current token and/or guest id and derives credentials from them.

    Usage:
        identity = IdentityResolver()
        identity.set_guest_id("guest_abc123")
        identity.resolve_auth_headers()   # {"x-guest-id": "guest_abc123"}
        identity.set_token(access_token)
        identity.resolve_auth_headers()   # {"Authorization": "Bearer ..."}
    """

    def __init__(self, session: Optional[Session] = None):
        self._session = Session()
        if session is not None:
            self.load_session(session)

    @property
    def session(self) -> Session:
        """Snapshot of the current session, safe to persist."""
        return replace(self._session)

    @property
    def token(self) -> Optional[str]:
        return self._session.token

    @property
    def guest_id(self) -> Optional[str]:
        return self._session.guest_id

    def load_session(self, session: Session) -> None:
        """Install a previously saved session."""
        self._session = replace(session)

    def set_token(self, token: Optional[str]) -> None:
        self._session.token = token or None

    def clear_token(self) -> None:
        self._session.token = None
        self._session.refresh_token = None

    def set_guest_id(self, guest_id: Optional[str]) -> None:
        self._session.guest_id = guest_id or None

    def clear_guest_id(self) -> None:
        self._session.guest_id = None

    def clear(self) -> None:
        """Forget everything (logout)."""
        self._session = Session()

    def resolve_auth_headers(self) -> Dict[str, str]:
        """Return the credential header for the next request.

        Returns:
            ``Authorization`` when a token is set, else ``x-guest-id`` when a
            guest id is set, else an empty dict. Never both.
        """
        if self._session.token:
            return {"Authorization": f"Bearer {self._session.token}"}
        if self._session.guest_id:
            return {"x-guest-id": self._session.guest_id}
        return {}

    def resolve_mutation_identity(self) -> Dict[str, str]:
        """Return the body fields attributing a write to an anonymous guest.

        Only applies when no token is set and a guest id is.
        """
        if self._session.guest_id and not self._session.token:
            return {"guestId": self._session.guest_id}
        return {}

    def token_claims(self) -> Dict[str, Any]:
        """Decode the bearer token's claims without verifying its signature.

        The backend is the authority on validity; this is only for display and
        for deciding when to re-authenticate. Opaque tokens yield ``{}``.
        """
        if not self._session.token:
            return {}
        try:
            return jwt.decode(
                self._session.token,
                options={"verify_signature": False, "verify_exp": False},
            )
        except jwt.exceptions.InvalidTokenError:
            return {}

    def token_expired(self, leeway: int = 0) -> bool:
        """True when the token carries an ``exp`` claim that has passed."""
        exp = self.token_claims().get("exp")
        if exp is None:
            return False
        try:
            return time.time() >= float(exp) - leeway
        except (TypeError, ValueError):
            return False
