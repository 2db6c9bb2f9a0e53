"""ZeroStack-specific exceptions for error handling."""


class ZeroStackError(Exception):
    """Base exception for all ZeroStack SDK operations."""
    pass


class NetworkError(ZeroStackError):
    """The exchange never produced a usable response.

    Raised when the backend is unreachable, the request timed out, or the
    response body could not be parsed as a JSON envelope.

    Attributes:
        message: Human-readable cause
        url: Target URL of the failed exchange
    """

    def __init__(self, message: str, url: str = ""):
        self.message = message
        self.url = url
        super().__init__(message)


class ProtocolError(ZeroStackError):
    """The backend answered with an envelope whose ``success`` is not true.

    ``str(error)`` is the server-supplied message so it can be shown as-is.

    Attributes:
        status_code: HTTP status code of the response
        message: Error message from the envelope
        endpoint: API path that failed
    """

    def __init__(self, message: str, status_code: int, endpoint: str = ""):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ProtocolError([{self.status_code}] {self.endpoint}: {self.message!r})"


class MalformedResponseError(ProtocolError, NetworkError):
    """The response body was not a JSON envelope.

    Caught by handlers for either :class:`ProtocolError` (the server did
    answer, with a status code) or :class:`NetworkError` (nothing usable came
    back).
    """

    def __init__(self, message: str, status_code: int, endpoint: str = "", url: str = ""):
        ProtocolError.__init__(self, message, status_code, endpoint)
        self.url = url


class ValidationError(ZeroStackError, ValueError):
    """Caller-side precondition failed before any request was made."""
    pass
