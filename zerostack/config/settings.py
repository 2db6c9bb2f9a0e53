"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")

DEMO_API_URL = "http://localhost:3002/api"
DEMO_API_KEY = "zs_demo_key_change_in_production"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info(f"[settings] Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value
        except OSError as e:
            logger.warning(f"[settings] Failed to read {secret_file}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def derive_ws_url(api_url: str) -> str:
    """Socket.IO server URL for an API base: the same origin without ``/api``."""
    base = api_url.rstrip("/")
    if base.endswith("/api"):
        base = base[: -len("/api")]
    return base


@dataclass
class ClientConfig:
    """SDK connection settings."""
    api_url: str
    api_key: str
    ws_url: str = ""
    timeout: float = 10.0
    socketio_path: str = "socket.io"
    demo_mode: bool = False

    def __post_init__(self) -> None:
        self.api_url = self.api_url.rstrip("/")
        if not self.ws_url:
            self.ws_url = derive_ws_url(self.api_url)


def _get_or_default(var_name: str, demo_default: Optional[str], demo_mode: bool) -> str:
    """Get environment variable or fall back to the demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        logger.info(f"[demo-mode] Using default for {var_name}")
        return demo_default

    raise RuntimeError(f"Environment variable {var_name} is required when DEMO_MODE is false.")


def load_settings() -> ClientConfig:
    """Load SDK settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    api_url = _get_or_default("ZEROSTACK_API_URL", DEMO_API_URL, demo_mode)

    api_key = _load_secret_from_file("zerostack_api_key", "ZEROSTACK_API_KEY")
    if not api_key:
        if not demo_mode:
            raise RuntimeError("ZEROSTACK_API_KEY not found in /run/secrets or environment")
        logger.warning("[demo-mode] Using demo API key. Do not deploy with this default.")
        api_key = DEMO_API_KEY

    timeout_raw = os.environ.get("ZEROSTACK_TIMEOUT", "10")
    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise RuntimeError(f"ZEROSTACK_TIMEOUT must be a number of seconds, got {timeout_raw!r}")

    config = ClientConfig(
        api_url=api_url,
        api_key=api_key,
        ws_url=os.environ.get("ZEROSTACK_WS_URL", ""),
        timeout=timeout,
        socketio_path=os.environ.get("ZEROSTACK_SOCKETIO_PATH", "socket.io"),
        demo_mode=demo_mode,
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(f"[settings] Mode={mode_label}; api={config.api_url}; ws={config.ws_url}")
    return config
