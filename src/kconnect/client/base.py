"""Core client abstractions shared by the sync and async clients.

- AuthStrategy: how requests authenticate (NoAuth, BasicAuth)
- ClientPolicy: timeouts and default headers
- ConnectRequest: one REST exchange, described without doing any I/O
- handle_response: turns a status code and body into a result or an error
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from kconnect.errors import classify_response
from kconnect.versioning import PACKAGE_VERSION

# =============================================================================
# Authentication Strategies
# =============================================================================


class AuthType(str, Enum):
    """Type of authentication strategy."""

    NONE = "none"
    BASIC = "basic"


@dataclass(frozen=True)
class AuthStrategy:
    """Base authentication strategy (data holder)."""

    auth_type: AuthType = AuthType.NONE

    def get_headers(self) -> Dict[str, str]:
        """Get authentication headers for requests."""
        return {}


@dataclass(frozen=True)
class NoAuth(AuthStrategy):
    """No authentication; no Authorization header is sent."""

    auth_type: AuthType = field(default=AuthType.NONE, init=False)


@dataclass(frozen=True)
class BasicAuth(AuthStrategy):
    """HTTP Basic authentication.

    An empty username is allowed; the header then encodes ":<password>".
    """

    auth_type: AuthType = field(default=AuthType.BASIC, init=False)
    username: str = ""
    password: str = field(default="", repr=False)

    def get_headers(self) -> Dict[str, str]:
        """Get the Basic authorization header."""
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8"))
        return {"Authorization": f"Basic {token.decode('ascii')}"}


def auth_from_credentials(username: Optional[str], password: Optional[str]) -> AuthStrategy:
    """Basic auth when a password is given, no auth otherwise."""
    if password is None:
        return NoAuth()
    return BasicAuth(username=username or "", password=password)


# =============================================================================
# Client Policy
# =============================================================================


@dataclass(frozen=True)
class ClientPolicy:
    """Timeouts and headers applied to every request.

    There are no retry settings: each operation is exactly one
    HTTP exchange. See kconnect.retry for a caller-side retry helper.
    """

    connect_timeout: float = 10.0  # seconds
    read_timeout: float = 30.0  # seconds
    pool_timeout: float = 60.0  # seconds

    user_agent: str = f"kconnect/{PACKAGE_VERSION}"
    default_headers: Dict[str, str] = field(default_factory=dict)

    def get_timeout(self) -> httpx.Timeout:
        """Get the httpx timeout for this policy."""
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.read_timeout,
            pool=self.pool_timeout,
        )


DEFAULT_POLICY = ClientPolicy()


# =============================================================================
# Request description
# =============================================================================


Decoder = Callable[[bytes, int], Any]


@dataclass(frozen=True)
class ConnectRequest:
    """One Kafka Connect REST exchange.

    `decode` receives the body and status code of a 2xx response. When it is
    None the body is ignored and the operation returns None.
    """

    method: str
    path: str
    decode: Optional[Decoder] = None
    params: Optional[List[Tuple[str, str]]] = None
    json: Optional[Any] = None


def handle_response(request: ConnectRequest, status_code: int, body: bytes) -> Any:
    """Return the decoded result of a response, or raise its ConnectError."""
    if not 200 <= status_code < 300:
        raise classify_response(status_code, body)
    if request.decode is None:
        return None
    return request.decode(body, status_code)
