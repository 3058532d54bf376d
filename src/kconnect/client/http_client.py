"""Kafka Connect REST clients over httpx.

ConnectClient and AsyncConnectClient expose one method per REST endpoint.
Each method performs exactly one HTTP exchange: no retries, no polling, no
batching, no caching. Failures raise a kconnect.errors.ConnectError subclass.

Pause, resume and restart are asynchronous on the worker. A successful return
only means the request was accepted; poll get_status() to observe the
transition.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from kconnect.errors import InvalidRequestError, TransportError
from kconnect.health import ConnectorHealth
from kconnect.models import (
    ClusterInfo,
    Connector,
    ConnectorOffsets,
    ConnectorStatus,
    ExpandedConnector,
    PluginDescriptor,
    TaskId,
)

from . import endpoints
from .base import (
    DEFAULT_POLICY,
    AuthStrategy,
    ClientPolicy,
    ConnectRequest,
    auth_from_credentials,
    handle_response,
)

logger = logging.getLogger(__name__)


def _transport_error(exc: Exception, url: str) -> TransportError:
    """Map an httpx failure to TransportError."""
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"Request to {url} timed out: {exc}", timed_out=True)
    return TransportError(f"Failed to reach {url}: {exc}")


class _ClientBase:
    """Immutable configuration shared by both clients."""

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        policy: Optional[ClientPolicy] = None,
    ):
        if not base_url:
            raise InvalidRequestError("Kafka Connect base URL is required")
        self._base_url = base_url.rstrip("/")
        self._auth = auth_from_credentials(username, password)
        self._policy = policy or DEFAULT_POLICY

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def auth(self) -> AuthStrategy:
        return self._auth

    @property
    def policy(self) -> ClientPolicy:
        return self._policy

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self._base_url!r}, auth={self._auth.auth_type.value})"

    def _build_headers(self, request: ConnectRequest) -> Dict[str, str]:
        """Build request headers including auth and defaults."""
        headers = {"User-Agent": self._policy.user_agent, "Accept": "application/json"}
        headers.update(self._policy.default_headers)
        headers.update(self._auth.get_headers())
        if request.json is not None:
            headers["Content-Type"] = "application/json"
        return headers

    def _get_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _finish(self, request: ConnectRequest, response: httpx.Response) -> Any:
        logger.debug("%s %s -> %d", request.method, request.path, response.status_code)
        return handle_response(request, response.status_code, response.content)


class ConnectClient(_ClientBase):
    """Synchronous Kafka Connect REST client.

    Args:
        base_url: Worker REST address, e.g. http://connect-api:8083
        username: Basic auth user (used only when password is given)
        password: Basic auth password; None means no Authorization header
        policy: Timeouts and default headers
        transport: Custom httpx transport (e.g. httpx.MockTransport)
        http_client: Pre-built httpx.Client; left open by close()

    Credentials are fixed for the client's lifetime. An auth failure is
    raised per call as UnauthorizedError and never remembered.
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        policy: Optional[ClientPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(base_url, username, password, policy)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=self._policy.get_timeout(), transport=transport
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ConnectClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def execute(self, request: ConnectRequest) -> Any:
        """Perform one exchange and decode its result."""
        url = self._get_url(request.path)
        try:
            response = self._client.request(
                request.method,
                url,
                params=request.params,
                json=request.json,
                headers=self._build_headers(request),
            )
        except httpx.InvalidURL as e:
            raise InvalidRequestError(f"Invalid URL {url}: {e}") from e
        except httpx.HTTPError as e:
            raise _transport_error(e, url) from e
        return self._finish(request, response)

    def cluster_info(self) -> ClusterInfo:
        """Get the worker's version, commit and Kafka cluster id."""
        return self.execute(endpoints.cluster_info())

    def list_connectors(self) -> List[str]:
        """List connector names, in the order the server returns them."""
        return self.execute(endpoints.list_connectors())

    def list_connectors_expanded(
        self, status: bool = True, info: bool = True
    ) -> Dict[str, ExpandedConnector]:
        """List connectors with their status and/or info in one exchange."""
        return self.execute(endpoints.list_connectors_expanded(status, info))

    def get_connector(self, name: str) -> Connector:
        return self.execute(endpoints.get_connector(name))

    def get_connector_config(self, name: str) -> Dict[str, str]:
        return self.execute(endpoints.get_connector_config(name))

    def create_connector(self, name: str, config: Mapping[str, str]) -> Connector:
        """Create a connector with POST; raises ConflictError if it exists."""
        return self.execute(endpoints.create_connector(name, config))

    def create_or_update_connector(self, name: str, config: Mapping[str, str]) -> Connector:
        """Create the connector, or replace its config if it exists.

        Whether an update replaces or merges the previous config is up to
        the server; the returned Connector is what the server answered.
        Tasks are assigned asynchronously and may be empty right after
        creation.
        """
        return self.execute(endpoints.create_or_update_connector(name, config))

    def delete_connector(self, name: str) -> None:
        self.execute(endpoints.delete_connector(name))

    def get_status(self, name: str) -> ConnectorStatus:
        """Fetch the current status; never served from a cache."""
        return self.execute(endpoints.get_status(name))

    def get_health(self, name: str) -> ConnectorHealth:
        """Fetch the status and classify it."""
        return ConnectorHealth.from_status(self.get_status(name))

    def get_tasks(self, name: str) -> List[TaskId]:
        return self.execute(endpoints.get_tasks(name))

    def pause_connector(self, name: str) -> None:
        """Ask the worker to pause the connector and its tasks.

        Returns once the request is accepted (202), not once paused.
        """
        self.execute(endpoints.pause_connector(name))

    def resume_connector(self, name: str) -> None:
        """Ask the worker to resume a paused connector.

        Returns once the request is accepted (202), not once running.
        """
        self.execute(endpoints.resume_connector(name))

    def restart_connector(
        self, name: str, include_tasks: bool = False, only_failed: bool = False
    ) -> Optional[ConnectorStatus]:
        """Restart the connector, and optionally its (failed) tasks.

        Returns None when the worker restarted the connector only (204), or
        the status of the restart plan when it accepted a task restart (202).
        """
        return self.execute(endpoints.restart_connector(name, include_tasks, only_failed))

    def restart_task(self, task_id: TaskId) -> None:
        """Restart one task in isolation."""
        self.execute(endpoints.restart_task(task_id))

    def get_offsets(self, name: str) -> ConnectorOffsets:
        return self.execute(endpoints.get_offsets(name))

    def list_plugins(self) -> List[PluginDescriptor]:
        return self.execute(endpoints.list_plugins())


class AsyncConnectClient(_ClientBase):
    """Asynchronous Kafka Connect REST client.

    Same operations as ConnectClient, as coroutines. Calls share no state and
    may run concurrently as far as the underlying httpx.AsyncClient allows.

    Cancellation: asyncio.CancelledError propagates unchanged. A cancelled
    call gives no guarantee either way: the worker may or may not have
    applied the change, so check with get_status() or get_connector().
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        policy: Optional[ClientPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url, username, password, policy)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._policy.get_timeout(), transport=transport
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncConnectClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def execute(self, request: ConnectRequest) -> Any:
        """Perform one exchange and decode its result."""
        url = self._get_url(request.path)
        try:
            response = await self._client.request(
                request.method,
                url,
                params=request.params,
                json=request.json,
                headers=self._build_headers(request),
            )
        except httpx.InvalidURL as e:
            raise InvalidRequestError(f"Invalid URL {url}: {e}") from e
        except httpx.HTTPError as e:
            raise _transport_error(e, url) from e
        return self._finish(request, response)

    async def cluster_info(self) -> ClusterInfo:
        return await self.execute(endpoints.cluster_info())

    async def list_connectors(self) -> List[str]:
        return await self.execute(endpoints.list_connectors())

    async def list_connectors_expanded(
        self, status: bool = True, info: bool = True
    ) -> Dict[str, ExpandedConnector]:
        return await self.execute(endpoints.list_connectors_expanded(status, info))

    async def get_connector(self, name: str) -> Connector:
        return await self.execute(endpoints.get_connector(name))

    async def get_connector_config(self, name: str) -> Dict[str, str]:
        return await self.execute(endpoints.get_connector_config(name))

    async def create_connector(self, name: str, config: Mapping[str, str]) -> Connector:
        return await self.execute(endpoints.create_connector(name, config))

    async def create_or_update_connector(self, name: str, config: Mapping[str, str]) -> Connector:
        return await self.execute(endpoints.create_or_update_connector(name, config))

    async def delete_connector(self, name: str) -> None:
        await self.execute(endpoints.delete_connector(name))

    async def get_status(self, name: str) -> ConnectorStatus:
        return await self.execute(endpoints.get_status(name))

    async def get_health(self, name: str) -> ConnectorHealth:
        return ConnectorHealth.from_status(await self.get_status(name))

    async def get_tasks(self, name: str) -> List[TaskId]:
        return await self.execute(endpoints.get_tasks(name))

    async def pause_connector(self, name: str) -> None:
        await self.execute(endpoints.pause_connector(name))

    async def resume_connector(self, name: str) -> None:
        await self.execute(endpoints.resume_connector(name))

    async def restart_connector(
        self, name: str, include_tasks: bool = False, only_failed: bool = False
    ) -> Optional[ConnectorStatus]:
        return await self.execute(endpoints.restart_connector(name, include_tasks, only_failed))

    async def restart_task(self, task_id: TaskId) -> None:
        await self.execute(endpoints.restart_task(task_id))

    async def get_offsets(self, name: str) -> ConnectorOffsets:
        return await self.execute(endpoints.get_offsets(name))

    async def list_plugins(self) -> List[PluginDescriptor]:
        return await self.execute(endpoints.list_plugins())
