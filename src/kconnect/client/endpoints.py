"""Kafka Connect REST endpoints as ConnectRequest values.

Each function validates its input and describes exactly one HTTP exchange.
The sync and async clients execute the same descriptions.
"""

from typing import List, Mapping, Optional, Tuple
from urllib.parse import quote

from kconnect.errors import InvalidRequestError
from kconnect.models import (
    ConnectorStatus,
    TaskId,
    build_config_body,
    build_create_body,
    decode_cluster_info,
    decode_connector,
    decode_connector_config,
    decode_connector_names,
    decode_expanded_connectors,
    decode_offsets,
    decode_plugins,
    decode_status,
    decode_task_ids,
    validate_name,
)

from .base import ConnectRequest


def connector_path(name: str, *parts: str) -> str:
    """Build /connectors/{name}/... with the name percent-encoded."""
    path = f"/connectors/{quote(validate_name(name), safe='')}"
    if parts:
        path += "/" + "/".join(parts)
    return path


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def _decode_restart(body: bytes, status_code: int) -> Optional[ConnectorStatus]:
    # 202 carries the status of the restart plan; 200/204 carry nothing useful
    if status_code == 202:
        return decode_status(body, status_code)
    return None


def cluster_info() -> ConnectRequest:
    return ConnectRequest("GET", "/", decode=decode_cluster_info)


def list_connectors() -> ConnectRequest:
    return ConnectRequest("GET", "/connectors", decode=decode_connector_names)


def list_connectors_expanded(status: bool = True, info: bool = True) -> ConnectRequest:
    if not (status or info):
        raise InvalidRequestError(
            "Expand at least one of status or info; use list_connectors() for names only"
        )
    params: List[Tuple[str, str]] = []
    if status:
        params.append(("expand", "status"))
    if info:
        params.append(("expand", "info"))
    return ConnectRequest("GET", "/connectors", decode=decode_expanded_connectors, params=params)


def get_connector(name: str) -> ConnectRequest:
    return ConnectRequest("GET", connector_path(name), decode=decode_connector)


def get_connector_config(name: str) -> ConnectRequest:
    return ConnectRequest("GET", connector_path(name, "config"), decode=decode_connector_config)


def create_connector(name: str, config: Mapping[str, str]) -> ConnectRequest:
    return ConnectRequest(
        "POST", "/connectors", decode=decode_connector, json=build_create_body(name, config)
    )


def create_or_update_connector(name: str, config: Mapping[str, str]) -> ConnectRequest:
    return ConnectRequest(
        "PUT",
        connector_path(name, "config"),
        decode=decode_connector,
        json=build_config_body(config),
    )


def delete_connector(name: str) -> ConnectRequest:
    return ConnectRequest("DELETE", connector_path(name))


def get_status(name: str) -> ConnectRequest:
    return ConnectRequest("GET", connector_path(name, "status"), decode=decode_status)


def get_tasks(name: str) -> ConnectRequest:
    return ConnectRequest("GET", connector_path(name, "tasks"), decode=decode_task_ids)


def pause_connector(name: str) -> ConnectRequest:
    return ConnectRequest("PUT", connector_path(name, "pause"))


def resume_connector(name: str) -> ConnectRequest:
    return ConnectRequest("PUT", connector_path(name, "resume"))


def restart_connector(
    name: str, include_tasks: bool = False, only_failed: bool = False
) -> ConnectRequest:
    return ConnectRequest(
        "POST",
        connector_path(name, "restart"),
        decode=_decode_restart,
        params=[
            ("includeTasks", _bool_param(include_tasks)),
            ("onlyFailed", _bool_param(only_failed)),
        ],
    )


def restart_task(task_id: TaskId) -> ConnectRequest:
    return ConnectRequest(
        "POST", connector_path(task_id.connector, "tasks", str(task_id.task), "restart")
    )


def get_offsets(name: str) -> ConnectRequest:
    return ConnectRequest("GET", connector_path(name, "offsets"), decode=decode_offsets)


def list_plugins() -> ConnectRequest:
    return ConnectRequest("GET", "/connector-plugins", decode=decode_plugins)
