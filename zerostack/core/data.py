"""ZeroStack data node operations (list, create, update, delete)."""
from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from .client import RequestClient
from .exceptions import ValidationError
from .validators import validate_item_id, validate_node

DEFAULT_LIST_LIMIT = 50
DEFAULT_VISIBILITY = "public"


@dataclass(frozen=True)
class WriteOptions:
    """Per-write access options.

    Attributes:
        visibility: Access tag interpreted by the backend (create only)
        allowed: Explicit allow-list of identities, omitted when None
    """
    visibility: str = DEFAULT_VISIBILITY
    allowed: Optional[List[str]] = None

    @classmethod
    def coerce(cls, options: Union["WriteOptions", str, Dict[str, Any], None]) -> "WriteOptions":
        """Resolve the accepted option shapes into one WriteOptions.

        A bare string is shorthand for a visibility tag.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, str):
            return cls(visibility=options or DEFAULT_VISIBILITY)
        if isinstance(options, dict):
            unknown = set(options) - {"visibility", "allowed"}
            if unknown:
                raise ValidationError(f"Unknown write options: {', '.join(sorted(unknown))}")
            allowed = options.get("allowed")
            return cls(
                visibility=options.get("visibility") or DEFAULT_VISIBILITY,
                allowed=list(allowed) if allowed is not None else None,
            )
        raise ValidationError(f"Unsupported write options type: {type(options).__name__}")


def item_id(item: Dict[str, Any]) -> Optional[str]:
    """Return an item's identifier; the backend serializes it as ``_id``."""
    value = item.get("id", item.get("_id"))
    return str(value) if value is not None else None


def normalize_items(result: Any) -> List[Dict[str, Any]]:
    """Flatten a list result into a plain list of items.

    ``list`` may answer with a bare sequence or a paged ``{"items": [...]}``
    object; neither shape is treated as authoritative.
    """
    if result is None:
        return []
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        return list(result.get("items") or [])
    raise ValidationError(f"Unexpected list result type: {type(result).__name__}")


def build_list_path(
    node: str,
    limit: Optional[int] = DEFAULT_LIST_LIMIT,
    filter: Optional[Dict[str, Any]] = None,
    page: Optional[int] = None,
) -> str:
    """Build ``/data/{node}?limit=N[&page=P][&filter=...]``.

    A zero or missing page is left out. The filter is sent as compact JSON
    text, percent-encoded as one parameter.
    """
    path = f"/data/{validate_node(node)}?limit={limit or DEFAULT_LIST_LIMIT}"
    if page:
        path += f"&page={page}"
    if filter is not None:
        encoded = quote(json.dumps(filter, separators=(",", ":"), ensure_ascii=False), safe="")
        path += f"&filter={encoded}"
    return path


class DataService:
    """Service for reading and writing items in data nodes."""

    def __init__(self, client: RequestClient):
        """Initialize data service.

        Args:
            client: Request client carrying the API key and identity
        """
        self.client = client

    def list(
        self,
        node: str,
        limit: Optional[int] = DEFAULT_LIST_LIMIT,
        filter: Optional[Dict[str, Any]] = None,
        page: Optional[int] = None,
    ) -> Any:
        """List items in a node, newest first.

        Returns:
            Either a list of items or a paged object with an ``items`` field;
            see :func:`normalize_items`.
        """
        return self.client.execute("GET", build_list_path(node, limit, filter, page))

    def items(
        self,
        node: str,
        limit: Optional[int] = DEFAULT_LIST_LIMIT,
        filter: Optional[Dict[str, Any]] = None,
        page: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Like :meth:`list` but always returns a plain list."""
        return normalize_items(self.list(node, limit=limit, filter=filter, page=page))

    def create(
        self,
        node: str,
        data: Dict[str, Any],
        options: Union[WriteOptions, str, Dict[str, Any], None] = None,
    ) -> Any:
        """Create an item.

        Args:
            node: Node name
            data: Opaque item payload
            options: Visibility tag and allow-list

        Returns:
            Created item as returned by the backend
        """
        opts = WriteOptions.coerce(options)
        body: Dict[str, Any] = {"data": data, "visibility": opts.visibility}
        if opts.allowed is not None:
            body["allowed"] = opts.allowed
        body.update(self.client.identity.resolve_mutation_identity())
        return self.client.execute("POST", f"/data/{validate_node(node)}", body)

    def update(
        self,
        node: str,
        id: str,
        data: Dict[str, Any],
        options: Union[WriteOptions, str, Dict[str, Any], None] = None,
    ) -> Any:
        """Replace an item's payload; only ``allowed`` is taken from options."""
        opts = WriteOptions.coerce(options)
        body: Dict[str, Any] = {"data": data}
        if opts.allowed is not None:
            body["allowed"] = opts.allowed
        body.update(self.client.identity.resolve_mutation_identity())
        return self.client.execute(
            "PUT", f"/data/{validate_node(node)}/{validate_item_id(id)}", body
        )

    def delete(self, node: str, id: str) -> Any:
        body = self.client.identity.resolve_mutation_identity() or None
        return self.client.execute(
            "DELETE", f"/data/{validate_node(node)}/{validate_item_id(id)}", body
        )
