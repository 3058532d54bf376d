"""Kafka Connect REST clients.

Key components:
- ConnectClient / AsyncConnectClient: one method per REST endpoint
- AuthStrategy: NoAuth or BasicAuth, fixed at construction
- ClientPolicy: timeouts and default headers
- endpoints: the REST exchanges, described without I/O
- DummyConnectCluster: in-memory worker for offline tests
"""

from .base import (
    DEFAULT_POLICY,
    AuthStrategy,
    AuthType,
    BasicAuth,
    ClientPolicy,
    ConnectRequest,
    NoAuth,
    auth_from_credentials,
    handle_response,
)
from .dummy import DummyConnectCluster, DummyResponse
from .http_client import AsyncConnectClient, ConnectClient

__all__ = [
    # Clients
    "ConnectClient",
    "AsyncConnectClient",
    # Auth
    "AuthType",
    "AuthStrategy",
    "NoAuth",
    "BasicAuth",
    "auth_from_credentials",
    # Policy
    "ClientPolicy",
    "DEFAULT_POLICY",
    # Requests
    "ConnectRequest",
    "handle_response",
    # Dummy cluster
    "DummyConnectCluster",
    "DummyResponse",
]
