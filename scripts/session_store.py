"""File-backed persistence for a ZeroStack session and guest identity.

The SDK core never touches storage; command-line tools use this module to
restore a :class:`~zerostack.core.identity.Session` across runs.
"""

from __future__ import annotations
import json
import logging
import os
import secrets
import string
from pathlib import Path

from zerostack.core.identity import Session

SESSION_DIR = Path(os.environ.get("ZEROSTACK_SESSION_DIR", ".runtime/session"))
SESSION_FILE = SESSION_DIR / "session.json"
GUEST_FILE = SESSION_DIR / "guest_id"

GUEST_PREFIX = "guest_"
_GUEST_ALPHABET = string.ascii_lowercase + string.digits

logger = logging.getLogger(__name__)


def _ensure_session_dir() -> None:
    """Create session directory with restricted permissions."""
    SESSION_DIR.mkdir(parents=True, exist_ok=True)
    SESSION_DIR.chmod(0o700)


def _write_private(path: Path, text: str) -> None:
    _ensure_session_dir()
    path.write_text(text, encoding="utf-8")
    path.chmod(0o600)


def generate_guest_id() -> str:
    return GUEST_PREFIX + "".join(secrets.choice(_GUEST_ALPHABET) for _ in range(8))


def get_guest_id() -> str:
    """Return the persisted guest id, creating it on first use."""
    if GUEST_FILE.exists():
        try:
            guest_id = GUEST_FILE.read_text(encoding="utf-8").strip()
            if guest_id:
                return guest_id
        except OSError as e:
            logger.warning(f"[session] Could not read {GUEST_FILE}: {e}")
    guest_id = generate_guest_id()
    _write_private(GUEST_FILE, guest_id)
    return guest_id


def save_session(session: Session) -> None:
    """Persist an authenticated session (user, token, refresh token)."""
    _write_private(SESSION_FILE, json.dumps(session.to_dict(), sort_keys=True))


def load_session() -> Session | None:
    """Load the saved session, discarding the file if it is unreadable."""
    if not SESSION_FILE.exists():
        return None
    try:
        raw = json.loads(SESSION_FILE.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("session file is not a JSON object")
    except (OSError, ValueError) as e:
        logger.warning(f"[session] Discarding corrupt session file: {e}")
        clear_session()
        return None
    return Session.from_dict(raw)


def clear_session() -> None:
    """Forget the saved authenticated session; the guest id is kept."""
    try:
        SESSION_FILE.unlink()
    except FileNotFoundError:
        pass
