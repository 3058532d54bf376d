"""Kafka Connect REST resource models.

Every model here is a read-only snapshot of what a Connect worker answered,
following the REST interface as of Kafka Connect 3.x / Confluent Platform 7.5.
Decoding is strict: a missing field, an unexpected field, a wrong type or an
unknown state raises MalformedResponseError. Nothing is ever defaulted.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from kconnect.errors import InvalidRequestError, MalformedResponseError

_MODEL_CONFIG = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class State(str, Enum):
    """State a connector or one of its tasks may be in."""

    UNASSIGNED = "UNASSIGNED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FAILED = "FAILED"
    RESTARTING = "RESTARTING"
    STOPPED = "STOPPED"


# Connector and task states share the same values on the wire.
ConnectorState = State
TaskState = State


class ConnectorType(str, Enum):
    """Connector direction reported by the worker."""

    SINK = "sink"
    SOURCE = "source"
    UNKNOWN = "unknown"


class PluginType(str, Enum):
    """Type of an installed connector plugin."""

    SINK = "sink"
    SOURCE = "source"


class TaskId(BaseModel):
    """Identifier of one task of a connector, assigned by the server."""

    connector: str = Field(..., min_length=1)
    task: int = Field(..., ge=0)

    model_config = _MODEL_CONFIG

    def __str__(self) -> str:
        return f"{self.connector}-{self.task}"


class Connector(BaseModel):
    """A connector as returned by GET /connectors/{name}."""

    name: str = Field(..., min_length=1)
    config: Dict[str, str]
    tasks: List[TaskId]
    type: Optional[ConnectorType] = None

    model_config = _MODEL_CONFIG


class TaskStatus(BaseModel):
    """Worker-level state of a single task."""

    task_id: TaskId
    state: State
    worker_id: str
    trace: Optional[str] = None

    model_config = _MODEL_CONFIG

    @property
    def id(self) -> int:
        return self.task_id.task


class ConnectorStatus(BaseModel):
    """Status of a connector and of each of its tasks.

    The connector state and the task states are independent: a FAILED
    connector may still have RUNNING tasks, and a RUNNING connector may have
    FAILED tasks. Both levels are kept as reported.
    """

    name: str
    connector_state: State
    worker_id: str
    trace: Optional[str] = None
    tasks: List[TaskStatus] = Field(default_factory=list)
    type: Optional[ConnectorType] = None

    model_config = _MODEL_CONFIG

    def task(self, task_number: int) -> Optional[TaskStatus]:
        """Get the status of one task by number, if the server reported it."""
        for task in self.tasks:
            if task.id == task_number:
                return task
        return None

    def tasks_in(self, *states: State) -> List[TaskStatus]:
        """Get all tasks currently in any of the given states."""
        return [task for task in self.tasks if task.state in states]

    @property
    def failed_tasks(self) -> List[TaskStatus]:
        return self.tasks_in(State.FAILED)


class PluginDescriptor(BaseModel):
    """An installed connector plugin (GET /connector-plugins)."""

    class_name: str = Field(..., alias="class")
    type: PluginType
    version: str

    model_config = _MODEL_CONFIG


class ClusterInfo(BaseModel):
    """Worker version information (GET /)."""

    version: str
    commit: str
    kafka_cluster_id: str

    model_config = _MODEL_CONFIG


class ExpandedConnector(BaseModel):
    """One entry of GET /connectors?expand=status&expand=info."""

    name: str
    info: Optional[Connector] = None
    status: Optional[ConnectorStatus] = None

    model_config = _MODEL_CONFIG


class ConnectorOffset(BaseModel):
    """One partition/offset pair of a connector.

    Source connectors use their own partition and offset shapes. Sink
    connectors use {"kafka_topic", "kafka_partition"} and {"kafka_offset"}.
    """

    partition: Dict[str, Any]
    offset: Optional[Dict[str, Any]] = None

    model_config = _MODEL_CONFIG

    @property
    def is_sink(self) -> bool:
        return "kafka_topic" in self.partition and "kafka_partition" in self.partition

    @property
    def kafka_topic(self) -> Optional[str]:
        return self.partition.get("kafka_topic")

    @property
    def kafka_partition(self) -> Optional[int]:
        return self.partition.get("kafka_partition")

    @property
    def kafka_offset(self) -> Optional[int]:
        if self.offset is None:
            return None
        return self.offset.get("kafka_offset")


class ConnectorOffsets(BaseModel):
    """Offsets of a connector (GET /connectors/{name}/offsets)."""

    offsets: List[ConnectorOffset]

    model_config = _MODEL_CONFIG


# =============================================================================
# Wire shapes that differ from the public models
# =============================================================================


class _StateWire(BaseModel):
    state: State
    worker_id: str
    trace: Optional[str] = None
    version: Optional[str] = None

    model_config = _MODEL_CONFIG


class _TaskStateWire(_StateWire):
    id: int = Field(..., ge=0)


class _StatusWire(BaseModel):
    name: str
    connector: _StateWire
    tasks: List[_TaskStateWire]
    type: Optional[ConnectorType] = None

    model_config = _MODEL_CONFIG

    def to_status(self) -> ConnectorStatus:
        return ConnectorStatus(
            name=self.name,
            connector_state=self.connector.state,
            worker_id=self.connector.worker_id,
            trace=self.connector.trace,
            tasks=[
                TaskStatus(
                    task_id=TaskId(connector=self.name, task=task.id),
                    state=task.state,
                    worker_id=task.worker_id,
                    trace=task.trace,
                )
                for task in self.tasks
            ],
            type=self.type,
        )


class _TaskInfoWire(BaseModel):
    id: TaskId
    config: Dict[str, str]

    model_config = _MODEL_CONFIG


class _ExpandedWire(BaseModel):
    info: Optional[Connector] = None
    status: Optional[_StatusWire] = None

    model_config = _MODEL_CONFIG


_NAMES = TypeAdapter(List[str])
_CONFIG = TypeAdapter(Dict[str, str])
_TASKS = TypeAdapter(List[_TaskInfoWire])
_PLUGINS = TypeAdapter(List[PluginDescriptor])
_EXPANDED = TypeAdapter(Dict[str, _ExpandedWire])
_CONNECTOR = TypeAdapter(Connector)
_STATUS = TypeAdapter(_StatusWire)
_CLUSTER_INFO = TypeAdapter(ClusterInfo)
_OFFSETS = TypeAdapter(ConnectorOffsets)


# =============================================================================
# Request bodies
# =============================================================================


def validate_name(name: str) -> str:
    """Reject connector names the server could never accept."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequestError(f"Connector name must be a non-empty string, got {name!r}")
    return name


def validate_config(config: Mapping[str, str]) -> Dict[str, str]:
    """Copy a connector config, rejecting anything but string keys and values."""
    if not isinstance(config, Mapping):
        raise InvalidRequestError(f"Connector config must be a mapping, got {type(config).__name__}")
    bad_keys = [
        repr(key)
        for key, value in config.items()
        if not isinstance(key, str) or not isinstance(value, str)
    ]
    if bad_keys:
        raise InvalidRequestError(
            f"Connector config keys and values must be strings: {', '.join(bad_keys)}"
        )
    return dict(config)


def build_create_body(name: str, config: Mapping[str, str]) -> Dict[str, Any]:
    """Body for POST /connectors."""
    return {"name": validate_name(name), "config": validate_config(config)}


def build_config_body(config: Mapping[str, str]) -> Dict[str, str]:
    """Body for PUT /connectors/{name}/config."""
    return validate_config(config)


# =============================================================================
# Response decoding
# =============================================================================


def _body_text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def _validate(adapter: TypeAdapter, body: bytes, what: str, status_code: Optional[int]) -> Any:
    if not body.strip():
        raise MalformedResponseError(f"empty body, expected {what}", status_code, "")
    try:
        return adapter.validate_json(body, strict=True)
    except PydanticValidationError as e:
        raise MalformedResponseError(
            f"expected {what}: {e}", status_code, _body_text(body)
        ) from e


def decode_connector_names(body: bytes, status_code: Optional[int] = None) -> List[str]:
    return _validate(_NAMES, body, "a list of connector names", status_code)


def decode_connector(body: bytes, status_code: Optional[int] = None) -> Connector:
    return _validate(_CONNECTOR, body, "a connector", status_code)


def decode_connector_config(body: bytes, status_code: Optional[int] = None) -> Dict[str, str]:
    return _validate(_CONFIG, body, "a connector config", status_code)


def decode_task_ids(body: bytes, status_code: Optional[int] = None) -> List[TaskId]:
    """Decode GET /connectors/{name}/tasks, keeping only the task ids."""
    tasks = _validate(_TASKS, body, "a list of tasks", status_code)
    return [task.id for task in tasks]


def decode_status(body: bytes, status_code: Optional[int] = None) -> ConnectorStatus:
    wire = _validate(_STATUS, body, "a connector status", status_code)
    return wire.to_status()


def decode_plugins(body: bytes, status_code: Optional[int] = None) -> List[PluginDescriptor]:
    return _validate(_PLUGINS, body, "a list of connector plugins", status_code)


def decode_cluster_info(body: bytes, status_code: Optional[int] = None) -> ClusterInfo:
    return _validate(_CLUSTER_INFO, body, "cluster info", status_code)


def decode_expanded_connectors(
    body: bytes, status_code: Optional[int] = None
) -> Dict[str, ExpandedConnector]:
    wire = _validate(_EXPANDED, body, "expanded connectors", status_code)
    return {
        name: ExpandedConnector(
            name=name,
            info=entry.info,
            status=entry.status.to_status() if entry.status is not None else None,
        )
        for name, entry in wire.items()
    }


def decode_offsets(body: bytes, status_code: Optional[int] = None) -> ConnectorOffsets:
    return _validate(_OFFSETS, body, "connector offsets", status_code)
