"""Low-level HTTP client for the ZeroStack REST API.

Builds each request/response exchange and unwraps the response envelope.
"""
from __future__ import annotations
import logging
from typing import Optional, Dict, Any

import requests

from .exceptions import MalformedResponseError, NetworkError, ProtocolError
from .identity import IdentityResolver

REQUEST_TIMEOUT = 10

logger = logging.getLogger(__name__)


def _mask(secret: str) -> str:
    return f"{secret[:6]}…" if secret and len(secret) > 6 else "***"


class RequestClient:
    """HTTP client for the ZeroStack API with envelope handling.

    Every call carries the API key, a JSON content type and exactly one
    credential header from the identity resolver. Responses are read as
    ``{success, data, error}`` envelopes; callers only ever see ``data``.

    No retries are performed here.

    Usage:
        client = RequestClient("http://localhost:3002/api", "zs_...", identity)
        rooms = client.execute("GET", "/data/rooms?limit=100")
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        identity: Optional[IdentityResolver] = None,
        timeout: float = REQUEST_TIMEOUT,
        http: Any = None,
    ):
        """Initialize the client.

        Args:
            api_url: API base URL including the ``/api`` prefix
            api_key: Project API key sent as ``x-api-key``
            identity: Credential source (a fresh anonymous one by default)
            timeout: Per-request timeout in seconds
            http: Object exposing ``request()``; a ``requests.Session`` for
                connection reuse, or the ``requests`` module itself
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.identity = identity or IdentityResolver()
        self.timeout = timeout
        self._http = http or requests

    def build_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
        }
        headers.update(self.identity.resolve_auth_headers())
        return headers

    def execute(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """Perform one exchange and return the envelope's ``data``.

        Args:
            method: HTTP method
            path: Path relative to the API base, query string included
            body: JSON body, omitted when None

        Returns:
            The unwrapped ``data`` field (may be None)

        Raises:
            NetworkError: Server unreachable, timed out, or body not JSON
            ProtocolError: Envelope ``success`` is not true, or failure status
        """
        url = f"{self.api_url}{path}"
        headers = self.build_headers()
        logger.debug(f"{method} {url} (key={_mask(self.api_key)})")

        try:
            resp = self._http.request(
                method,
                url,
                headers=headers,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning(f"{method} {url} failed: {exc}")
            raise NetworkError(f"Could not reach {url}: {exc}", url) from exc

        return self._unwrap(resp, method, path)

    def _unwrap(self, resp: requests.Response, method: str, path: str) -> Any:
        """Centralized envelope handling for HTTP responses."""
        try:
            payload = resp.json()
        except ValueError:
            logger.warning(f"{method} {path}: unparsable body (status {resp.status_code})")
            raise MalformedResponseError(
                f"Malformed response body (HTTP {resp.status_code})",
                resp.status_code,
                path,
                url=resp.url,
            )

        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"Unexpected response shape (HTTP {resp.status_code})",
                resp.status_code,
                path,
                url=resp.url,
            )

        if payload.get("success") is not True or resp.status_code >= 400:
            message = payload.get("error") or "Request failed"
            logger.info(f"{method} {path} rejected [{resp.status_code}]: {message}")
            raise ProtocolError(message, resp.status_code, path)

        return payload.get("data")
