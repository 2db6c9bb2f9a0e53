"""ZeroStack Python SDK.

To use the SDK:
    from zerostack import ZeroStack

To use individual services:
    from zerostack.core import RequestClient, DataService, RealtimeChannel
"""
from .sdk import ZeroStack
from .core import (
    AppendLog,
    ConnectionState,
    IdentityResolver,
    NetworkError,
    ProtocolError,
    Session,
    ValidationError,
    WriteOptions,
    ZeroStackError,
)

__all__ = [
    "ZeroStack",
    "AppendLog",
    "ConnectionState",
    "IdentityResolver",
    "NetworkError",
    "ProtocolError",
    "Session",
    "ValidationError",
    "WriteOptions",
    "ZeroStackError",
]
