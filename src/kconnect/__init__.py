"""kconnect: client for the Kafka Connect REST API.

Example:
    from kconnect import ConnectClient

    with ConnectClient("http://connect-api:8083", "user", "password") as client:
        print(client.list_connectors())
"""

from kconnect.client import (
    AsyncConnectClient,
    BasicAuth,
    ClientPolicy,
    ConnectClient,
    DummyConnectCluster,
    DummyResponse,
    NoAuth,
)
from kconnect.errors import (
    ConflictError,
    ConnectError,
    ErrorKind,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from kconnect.health import ConnectorHealth, HealthClass, aggregate_health
from kconnect.models import (
    ClusterInfo,
    Connector,
    ConnectorOffset,
    ConnectorOffsets,
    ConnectorState,
    ConnectorStatus,
    ConnectorType,
    ExpandedConnector,
    PluginDescriptor,
    PluginType,
    State,
    TaskId,
    TaskState,
    TaskStatus,
)
from kconnect.retry import RetryPolicy, async_call_with_retry, call_with_retry
from kconnect.versioning import PACKAGE_VERSION

__version__ = PACKAGE_VERSION

__all__ = [
    # Clients
    "ConnectClient",
    "AsyncConnectClient",
    "BasicAuth",
    "NoAuth",
    "ClientPolicy",
    "DummyConnectCluster",
    "DummyResponse",
    # Errors
    "ConnectError",
    "ErrorKind",
    "TransportError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "ServerError",
    "MalformedResponseError",
    "InvalidRequestError",
    # Models
    "ClusterInfo",
    "Connector",
    "ConnectorOffset",
    "ConnectorOffsets",
    "ConnectorState",
    "ConnectorStatus",
    "ConnectorType",
    "ExpandedConnector",
    "PluginDescriptor",
    "PluginType",
    "State",
    "TaskId",
    "TaskState",
    "TaskStatus",
    # Health
    "ConnectorHealth",
    "HealthClass",
    "aggregate_health",
    # Retry
    "RetryPolicy",
    "call_with_retry",
    "async_call_with_retry",
]
