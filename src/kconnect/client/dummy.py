"""In-memory Kafka Connect cluster for testing.

DummyConnectCluster answers the Kafka Connect REST interface through an
httpx.MockTransport, without any network. Used for:
- Unit tests of the clients and the CLI
- Development without a running Connect cluster

It can be configured to:
- Return canned responses (status code + body) for specific operations
- Answer 409 to everything, as a worker does during a rebalance
- Require Basic credentials
- Track requests for assertions
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, unquote

import httpx

from kconnect.models import State

from .base import BasicAuth


@dataclass
class DummyResponse:
    """Canned response for DummyConnectCluster."""

    status_code: int = 200
    json_data: Any = None
    body: Optional[bytes] = None

    def to_response(self) -> httpx.Response:
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        if self.json_data is not None:
            return httpx.Response(self.status_code, json=self.json_data)
        return httpx.Response(self.status_code)


@dataclass
class _DummyTask:
    state: State = State.RUNNING
    worker_id: str = "connect-1:8083"
    trace: Optional[str] = None


@dataclass
class _DummyConnector:
    name: str
    config: Dict[str, str]
    state: State = State.UNASSIGNED
    worker_id: str = "connect-1:8083"
    trace: Optional[str] = None
    tasks: Optional[List[_DummyTask]] = None
    offsets: Optional[List[Dict[str, Any]]] = None

    @property
    def type(self) -> str:
        connector_class = self.config.get("connector.class", "").lower()
        if "sink" in connector_class:
            return "sink"
        if "source" in connector_class:
            return "source"
        return "unknown"


DEFAULT_PLUGINS: List[Dict[str, str]] = [
    {
        "class": "org.apache.kafka.connect.file.FileStreamSinkConnector",
        "type": "sink",
        "version": "3.7.0",
    },
    {
        "class": "org.apache.kafka.connect.file.FileStreamSourceConnector",
        "type": "source",
        "version": "3.7.0",
    },
]


def _error(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"error_code": status_code, "message": message})


class DummyConnectCluster:
    """Fake Kafka Connect worker.

    New connectors start UNASSIGNED with no tasks, as on a real worker right
    after creation. Call assign_tasks() to simulate the rebalance that
    starts them.
    """

    def __init__(
        self,
        plugins: Optional[List[Dict[str, str]]] = None,
        credentials: Optional[BasicAuth] = None,
        version: str = "3.7.0",
    ):
        self.plugins = list(DEFAULT_PLUGINS if plugins is None else plugins)
        self.credentials = credentials
        self.version = version
        self.rebalancing = False
        self._connectors: Dict[str, _DummyConnector] = {}
        self._responses: Dict[str, DummyResponse] = {}
        self._call_log: List[Dict[str, Any]] = []

    # -------------------------------------------------------------------------
    # Test setup
    # -------------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        """Transport to pass to ConnectClient / AsyncConnectClient."""
        return httpx.MockTransport(self.handle)

    def add_connector(
        self,
        name: str,
        config: Dict[str, str],
        state: State = State.UNASSIGNED,
        tasks: int = 0,
    ) -> None:
        """Add a connector directly, bypassing the REST interface."""
        connector = _DummyConnector(name=name, config=dict(config), state=state)
        self._connectors[name] = connector
        if tasks:
            self.assign_tasks(name, tasks)

    def assign_tasks(self, name: str, count: int) -> None:
        """Start the connector with `count` RUNNING tasks."""
        connector = self._connectors[name]
        connector.state = State.RUNNING
        connector.tasks = [_DummyTask() for _ in range(count)]

    def set_connector_state(self, name: str, state: State, trace: Optional[str] = None) -> None:
        connector = self._connectors[name]
        connector.state = state
        connector.trace = trace

    def set_task_state(
        self, name: str, task: int, state: State, trace: Optional[str] = None
    ) -> None:
        dummy_task = (self._connectors[name].tasks or [])[task]
        dummy_task.state = state
        dummy_task.trace = trace

    def set_offsets(self, name: str, offsets: List[Dict[str, Any]]) -> None:
        self._connectors[name].offsets = offsets

    def set_response(self, operation: str, response: DummyResponse) -> None:
        """Set canned response for an operation.

        Args:
            operation: Client operation name (e.g., "get_status", "list_plugins")
            response: DummyResponse to return instead of the simulated one
        """
        self._responses[operation] = response

    def clear_responses(self) -> None:
        self._responses.clear()

    def connector_names(self) -> List[str]:
        return list(self._connectors)

    # -------------------------------------------------------------------------
    # Call log
    # -------------------------------------------------------------------------

    def get_call_log(self) -> List[Dict[str, Any]]:
        return self._call_log.copy()

    def clear_call_log(self) -> None:
        self._call_log.clear()

    def was_called(self, operation: str) -> bool:
        return any(call["operation"] == operation for call in self._call_log)

    def call_count(self, operation: str) -> int:
        return sum(1 for call in self._call_log if call["operation"] == operation)

    # -------------------------------------------------------------------------
    # Request handling
    # -------------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        """httpx.MockTransport handler."""
        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        segments = [unquote(part) for part in raw_path.strip("/").split("/") if part]
        params = parse_qsl(request.url.query.decode("ascii"))
        operation, args = self._route(request.method, segments)
        body = json.loads(request.content) if request.content else None

        self._call_log.append({
            "operation": operation,
            "args": args,
            "method": request.method,
            "path": raw_path,
            "params": params,
            "json": body,
            "headers": dict(request.headers),
        })

        if self.credentials is not None:
            expected = self.credentials.get_headers()["Authorization"]
            if request.headers.get("Authorization") != expected:
                return _error(401, "Invalid credentials")
        if operation in self._responses:
            return self._responses[operation].to_response()
        if self.rebalancing:
            return _error(409, "Cannot complete request because of a conflicting operation (e.g. worker rebalance)")
        if operation == "unknown":
            return _error(404, f"HTTP 404 Not Found: {raw_path}")

        handler = getattr(self, f"_op_{operation}")
        return handler(params=params, body=body, **args)

    def _route(self, method: str, segments: List[str]) -> Tuple[str, Dict[str, Any]]:
        routes = {
            ("GET", ()): "cluster_info",
            ("GET", ("connectors",)): "list_connectors",
            ("POST", ("connectors",)): "create_connector",
            ("GET", ("connector-plugins",)): "list_plugins",
        }
        key = (method, tuple(segments))
        if key in routes:
            return routes[key], {}
        if len(segments) < 2 or segments[0] != "connectors":
            return "unknown", {}

        name, rest = segments[1], tuple(segments[2:])
        connector_routes = {
            ("GET", ()): "get_connector",
            ("DELETE", ()): "delete_connector",
            ("GET", ("config",)): "get_connector_config",
            ("PUT", ("config",)): "create_or_update_connector",
            ("GET", ("status",)): "get_status",
            ("GET", ("tasks",)): "get_tasks",
            ("PUT", ("pause",)): "pause_connector",
            ("PUT", ("resume",)): "resume_connector",
            ("POST", ("restart",)): "restart_connector",
            ("GET", ("offsets",)): "get_offsets",
        }
        if (method, rest) in connector_routes:
            return connector_routes[(method, rest)], {"name": name}
        if method == "POST" and len(rest) == 3 and rest[0] == "tasks" and rest[2] == "restart":
            if rest[1].isdigit():
                return "restart_task", {"name": name, "task": int(rest[1])}
        return "unknown", {}

    def _lookup(self, name: str) -> Optional[_DummyConnector]:
        return self._connectors.get(name)

    def _not_found(self, name: str) -> httpx.Response:
        return _error(404, f"Connector {name} not found")

    def _info_json(self, connector: _DummyConnector) -> Dict[str, Any]:
        return {
            "name": connector.name,
            "config": dict(connector.config),
            "tasks": [
                {"connector": connector.name, "task": number}
                for number in range(len(connector.tasks or []))
            ],
            "type": connector.type,
        }

    def _status_json(self, connector: _DummyConnector) -> Dict[str, Any]:
        state: Dict[str, Any] = {"state": connector.state.value, "worker_id": connector.worker_id}
        if connector.trace is not None:
            state["trace"] = connector.trace
        tasks = []
        for number, task in enumerate(connector.tasks or []):
            entry: Dict[str, Any] = {
                "id": number,
                "state": task.state.value,
                "worker_id": task.worker_id,
            }
            if task.trace is not None:
                entry["trace"] = task.trace
            tasks.append(entry)
        return {"name": connector.name, "connector": state, "tasks": tasks, "type": connector.type}

    def _check_config(self, name: str, config: Any) -> Optional[httpx.Response]:
        if not isinstance(config, dict):
            return _error(400, "Connector config must be an object")
        if "connector.class" not in config:
            return _error(400, f"Connector config {config} contains no connector type")
        if "name" in config and config["name"] != name:
            return _error(
                400,
                f"Connector name configuration ({config['name']}) doesn't match "
                f"connector name in the URL ({name})",
            )
        return None

    def _op_cluster_info(self, **_kwargs: Any) -> httpx.Response:
        return httpx.Response(200, json={
            "version": self.version,
            "commit": "0000000000000000",
            "kafka_cluster_id": "dummy-cluster",
        })

    def _op_list_connectors(self, params: List[Tuple[str, str]], **_kwargs: Any) -> httpx.Response:
        expand = {value for key, value in params if key == "expand"}
        if not expand:
            return httpx.Response(200, json=list(self._connectors))
        result = {}
        for name, connector in self._connectors.items():
            entry = {}
            if "info" in expand:
                entry["info"] = self._info_json(connector)
            if "status" in expand:
                entry["status"] = self._status_json(connector)
            result[name] = entry
        return httpx.Response(200, json=result)

    def _op_create_connector(self, body: Any, **_kwargs: Any) -> httpx.Response:
        if not isinstance(body, dict) or not body.get("name"):
            return _error(400, "Connector name must be provided")
        name = body["name"]
        if name in self._connectors:
            return _error(409, f"Connector {name} already exists")
        invalid = self._check_config(name, body.get("config"))
        if invalid is not None:
            return invalid
        self._connectors[name] = _DummyConnector(name=name, config=dict(body["config"]))
        return httpx.Response(201, json=self._info_json(self._connectors[name]))

    def _op_get_connector(self, name: str, **_kwargs: Any) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        return httpx.Response(200, json=self._info_json(connector))

    def _op_delete_connector(self, name: str, **_kwargs: Any) -> httpx.Response:
        if self._connectors.pop(name, None) is None:
            return self._not_found(name)
        return httpx.Response(204)

    def _op_get_connector_config(self, name: str, **_kwargs: Any) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        return httpx.Response(200, json=dict(connector.config))

    def _op_create_or_update_connector(self, name: str, body: Any, **_kwargs: Any) -> httpx.Response:
        invalid = self._check_config(name, body)
        if invalid is not None:
            return invalid
        config = dict(body)
        connector = self._lookup(name)
        if connector is None:
            connector = _DummyConnector(name=name, config=config)
            self._connectors[name] = connector
            return httpx.Response(201, json=self._info_json(connector))
        connector.config = config
        return httpx.Response(200, json=self._info_json(connector))

    def _op_get_status(self, name: str, **_kwargs: Any) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        return httpx.Response(200, json=self._status_json(connector))

    def _op_get_tasks(self, name: str, **_kwargs: Any) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        return httpx.Response(200, json=[
            {"id": {"connector": name, "task": number}, "config": {"task.class": "DummyTask"}}
            for number in range(len(connector.tasks or []))
        ])

    def _set_paused(self, name: str, paused: bool) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        target, source = (State.PAUSED, State.RUNNING) if paused else (State.RUNNING, State.PAUSED)
        if connector.state == source:
            connector.state = target
        for task in connector.tasks or []:
            if task.state == source:
                task.state = target
        return httpx.Response(202)

    def _op_pause_connector(self, name: str, **_kwargs: Any) -> httpx.Response:
        return self._set_paused(name, True)

    def _op_resume_connector(self, name: str, **_kwargs: Any) -> httpx.Response:
        return self._set_paused(name, False)

    def _op_restart_connector(
        self, name: str, params: List[Tuple[str, str]], **_kwargs: Any
    ) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        flags = dict(params)
        include_tasks = flags.get("includeTasks") == "true"
        only_failed = flags.get("onlyFailed") == "true"
        if not include_tasks and not only_failed:
            return httpx.Response(204)

        if not only_failed or connector.state == State.FAILED:
            connector.state = State.RESTARTING
            connector.trace = None
        if include_tasks:
            for task in connector.tasks or []:
                if not only_failed or task.state == State.FAILED:
                    task.state = State.RESTARTING
                    task.trace = None
        return httpx.Response(202, json=self._status_json(connector))

    def _op_restart_task(self, name: str, task: int, **_kwargs: Any) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        tasks = connector.tasks or []
        if task >= len(tasks):
            return _error(404, f"Task {name}-{task} not found")
        tasks[task].state = State.RUNNING
        tasks[task].trace = None
        return httpx.Response(204)

    def _op_get_offsets(self, name: str, **_kwargs: Any) -> httpx.Response:
        connector = self._lookup(name)
        if connector is None:
            return self._not_found(name)
        return httpx.Response(200, json={"offsets": connector.offsets or []})

    def _op_list_plugins(self, **_kwargs: Any) -> httpx.Response:
        return httpx.Response(200, json=self.plugins)
