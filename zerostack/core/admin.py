"""Owner-only project configuration stored in the ``_config`` node."""
from __future__ import annotations
from typing import Any, Dict, List

from .client import RequestClient
from .exceptions import ValidationError

CONFIG_PATH = "/data/_config"


class ConfigService:
    """Service for project-level settings. Requires an owner token.

    Usage:
        config = ConfigService(client)
        config.set_public_nodes({"read": ["messages"], "create": ["messages"]})
        config.set_node_ttl({"sessions": 3600, "lobbies": 86400})
    """

    def __init__(self, client: RequestClient):
        self.client = client

    def _require_token(self) -> None:
        if not self.client.identity.token:
            raise ValidationError("Project configuration requires an owner token")

    def set_public_nodes(self, public_nodes: Dict[str, List[str]]) -> Any:
        """Declare which nodes are reachable without a token, per permission.

        Args:
            public_nodes: Permission name to list of node names
        """
        self._require_token()
        return self.client.execute("PUT", CONFIG_PATH, {"publicNodes": public_nodes})

    def set_node_ttl(self, node_ttl: Dict[str, int]) -> Any:
        """Set item time-to-live per node, in seconds."""
        self._require_token()
        for node, ttl in node_ttl.items():
            if not isinstance(ttl, int) or isinstance(ttl, bool) or ttl < 0:
                raise ValidationError(f"TTL for '{node}' must be a non-negative integer")
        return self.client.execute("PUT", CONFIG_PATH, {"nodeTTL": node_ttl})
