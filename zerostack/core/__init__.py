"""ZeroStack client core.

Architecture:
- identity.py: Session value and credential header/body resolution
- client.py: HTTP exchange with envelope unwrapping
- data.py: Data node CRUD operations
- auth.py: Login/register
- admin.py: Owner-only project configuration
- realtime.py: Socket.IO event routing per node
- append_log.py: Duplicate-free merge of history and live events
- validators.py: Caller-side input checks
- exceptions.py: Typed exceptions for error handling
"""
from .exceptions import (
    ZeroStackError,
    NetworkError,
    ProtocolError,
    MalformedResponseError,
    ValidationError,
)
from .identity import IdentityResolver, Session
from .client import RequestClient, REQUEST_TIMEOUT
from .data import DataService, WriteOptions, item_id, normalize_items, build_list_path
from .auth import AuthService, AuthResult
from .admin import ConfigService
from .realtime import RealtimeChannel, ConnectionState
from .append_log import AppendLog, Notice

__all__ = [
    # Exceptions
    "ZeroStackError",
    "NetworkError",
    "ProtocolError",
    "MalformedResponseError",
    "ValidationError",

    # Identity
    "IdentityResolver",
    "Session",

    # HTTP
    "RequestClient",
    "REQUEST_TIMEOUT",
    "DataService",
    "WriteOptions",
    "item_id",
    "normalize_items",
    "build_list_path",
    "AuthService",
    "AuthResult",
    "ConfigService",

    # Realtime
    "RealtimeChannel",
    "ConnectionState",
    "AppendLog",
    "Notice",
]
