"""Tests for AsyncConnectClient.

The async client executes the same request descriptions as the sync one,
so these tests focus on the coroutine surface and async-specific failures.
"""

import asyncio

import httpx
import pytest

from kconnect.client import AsyncConnectClient, DummyConnectCluster
from kconnect.errors import ConflictError, MalformedResponseError, NotFoundError, TransportError
from kconnect.health import HealthClass
from kconnect.models import State, TaskId

from .conftest import BASE_URL, FILE_SINK_CONFIG


def _run(coro):
    return asyncio.run(coro)


class TestAsyncClient:
    """Tests for the async operations."""

    def test_create_then_status(self):
        """Create, read back and check status."""
        cluster = DummyConnectCluster()

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=cluster.transport()) as client:
                created = await client.create_or_update_connector("file-sink-1", FILE_SINK_CONFIG)
                fetched = await client.get_connector("file-sink-1")
                status = await client.get_status("file-sink-1")
                return created, fetched, status

        created, fetched, status = _run(scenario())
        assert created.config == FILE_SINK_CONFIG
        assert fetched.config == FILE_SINK_CONFIG
        assert fetched.tasks == []
        assert status.connector_state == State.UNASSIGNED

    def test_control_operations(self):
        """Pause, restart and health through the async client."""
        cluster = DummyConnectCluster()
        cluster.add_connector("c", FILE_SINK_CONFIG, tasks=2)
        cluster.set_task_state("c", 0, State.FAILED)

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=cluster.transport()) as client:
                health = await client.get_health("c")
                plan = await client.restart_connector("c", include_tasks=True, only_failed=True)
                await client.restart_task(TaskId(connector="c", task=0))
                await client.pause_connector("c")
                return health, plan, await client.get_status("c")

        health, plan, status = _run(scenario())
        assert health.health == HealthClass.DEGRADED
        assert plan.task(0).state == State.RESTARTING
        assert status.connector_state == State.PAUSED

    def test_concurrent_calls(self):
        """Independent calls may run concurrently."""
        cluster = DummyConnectCluster()
        for name in ("a", "b", "c"):
            cluster.add_connector(name, FILE_SINK_CONFIG, tasks=1)

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=cluster.transport()) as client:
                return await asyncio.gather(*(client.get_status(name) for name in "abc"))

        statuses = _run(scenario())
        assert [status.name for status in statuses] == ["a", "b", "c"]
        assert cluster.call_count("get_status") == 3

    def test_not_found(self):
        """Errors are classified as in the sync client."""
        cluster = DummyConnectCluster()

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=cluster.transport()) as client:
                await client.get_status("ghost")

        with pytest.raises(NotFoundError):
            _run(scenario())

    def test_conflict(self):
        """409 is ConflictError."""
        cluster = DummyConnectCluster()
        cluster.rebalancing = True

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=cluster.transport()) as client:
                await client.list_plugins()

        with pytest.raises(ConflictError):
            _run(scenario())

    def test_malformed(self):
        """Undecodable 2xx bodies are malformed."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"version": 3})

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
                await client.cluster_info()

        with pytest.raises(MalformedResponseError):
            _run(scenario())

    def test_transport_error(self):
        """Network failures become TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
                await client.list_connectors()

        with pytest.raises(TransportError) as exc_info:
            _run(scenario())
        assert exc_info.value.timed_out is True

    def test_cancellation_propagates(self):
        """A cancelled call raises CancelledError, not a ConnectError."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(10)
            return httpx.Response(200, json=[])

        async def scenario():
            async with AsyncConnectClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
                task = asyncio.ensure_future(client.list_connectors())
                await asyncio.sleep(0)
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

        _run(scenario())

    def test_injected_client_left_open(self):
        """aclose() does not close an injected httpx client."""
        cluster = DummyConnectCluster()

        async def scenario():
            http_client = httpx.AsyncClient(transport=cluster.transport())
            client = AsyncConnectClient(BASE_URL, http_client=http_client)
            await client.aclose()
            names = await client.list_connectors()
            closed = http_client.is_closed
            await http_client.aclose()
            return names, closed

        names, closed = _run(scenario())
        assert names == []
        assert closed is False
