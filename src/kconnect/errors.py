"""Error taxonomy for Kafka Connect REST calls.

Every failed call surfaces as exactly one ConnectError subclass:
- TransportError: the server could not be reached (DNS, refused, timeout)
- UnauthorizedError: 401/403
- NotFoundError: 404
- ConflictError: 409, Kafka Connect is rebalancing
- ServerError: 5xx (and any other unexpected non-2xx status)
- MalformedResponseError: 2xx whose body does not decode
- InvalidRequestError: 400/422 and the remaining 4xx

The client never retries on its own. `retryable` tells the caller whether a
retry can possibly succeed without changing the request or the credentials.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorKind(str, Enum):
    """Classification of a failed call."""

    TRANSPORT = "transport"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"
    MALFORMED = "malformed"
    INVALID_REQUEST = "invalid_request"


class ConnectError(Exception):
    """Base exception for Kafka Connect client errors."""

    kind: ErrorKind = ErrorKind.SERVER_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        self.details = details or {}
        super().__init__(message)


class TransportError(ConnectError):
    """The request never produced an HTTP response."""

    kind = ErrorKind.TRANSPORT
    retryable = True

    def __init__(
        self,
        message: str = "Transport failure",
        timed_out: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.timed_out = timed_out


class UnauthorizedError(ConnectError):
    """Credentials missing, invalid, or not permitted (401/403)."""

    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(ConnectError):
    """Connector, task, or endpoint does not exist (404)."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(ConnectError):
    """Cluster is rebalancing or the resource already exists (409)."""

    kind = ErrorKind.CONFLICT
    retryable = True


class ServerError(ConnectError):
    """The worker failed to process the request (5xx)."""

    kind = ErrorKind.SERVER_ERROR
    retryable = True


class MalformedResponseError(ConnectError):
    """A 2xx response body did not match the expected shape."""

    kind = ErrorKind.MALFORMED

    def __init__(
        self,
        reason: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        if not reason:
            reason = "undecodable response body"
        super().__init__(
            f"Malformed response: {reason}",
            status_code=status_code,
            details={"body": body},
        )
        self.reason = reason
        self.body = body


class InvalidRequestError(ConnectError):
    """The server (or the client, before sending) rejected the request."""

    kind = ErrorKind.INVALID_REQUEST


def parse_error_body(body: bytes) -> Tuple[Optional[int], str]:
    """Extract (error_code, message) from a Kafka Connect error body.

    Kafka Connect answers errors with {"error_code": int, "message": str}.
    Anything else is returned as raw text.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return None, ""
    try:
        data = json.loads(text)
    except ValueError:
        return None, text
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        error_code = data.get("error_code")
        return error_code if isinstance(error_code, int) else None, data["message"]
    return None, text


def classify_response(status_code: int, body: bytes = b"") -> ConnectError:
    """Map a non-2xx HTTP status to the matching ConnectError."""
    _, detail = parse_error_body(body)
    suffix = f": {detail}" if detail else ""
    detail = detail or None

    if status_code in (401, 403):
        reason = "Authentication failed" if status_code == 401 else "Permission denied"
        return UnauthorizedError(f"{reason}{suffix}", status_code=status_code, detail=detail)
    elif status_code == 404:
        return NotFoundError(f"Not found{suffix}", status_code=status_code, detail=detail)
    elif status_code == 409:
        return ConflictError(
            f"Conflict, a rebalance may be needed, forthcoming, or underway{suffix}",
            status_code=status_code,
            detail=detail,
        )
    elif 400 <= status_code < 500:
        return InvalidRequestError(
            f"Invalid request ({status_code}){suffix}", status_code=status_code, detail=detail
        )
    elif status_code >= 500:
        return ServerError(f"Server error ({status_code}){suffix}", status_code=status_code, detail=detail)
    else:
        return ServerError(
            f"Unexpected HTTP status {status_code}{suffix}", status_code=status_code, detail=detail
        )
