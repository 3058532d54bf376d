"""Connector health derived from a status snapshot.

Kafka Connect reports the connector controller and each task separately.
The classification here follows that split:

- DOWN: the connector itself is FAILED or UNASSIGNED, whatever its tasks say
- PAUSED: the connector was paused or stopped on purpose
- DEGRADED: the connector runs but not every task does
- HEALTHY: the connector and every task are RUNNING
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict

from kconnect.models import ConnectorStatus, State, TaskStatus


class HealthClass(str, Enum):
    """Overall health of a connector."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    PAUSED = "paused"
    DOWN = "down"


_DOWN_STATES = {State.FAILED, State.UNASSIGNED}
_PAUSED_STATES = {State.PAUSED, State.STOPPED}


def aggregate_health(status: ConnectorStatus) -> HealthClass:
    """Classify a connector from its own state and its tasks' states."""
    if status.connector_state in _DOWN_STATES:
        return HealthClass.DOWN
    if status.connector_state in _PAUSED_STATES:
        return HealthClass.PAUSED
    if status.connector_state == State.RESTARTING:
        return HealthClass.DEGRADED
    if all(task.state == State.RUNNING for task in status.tasks):
        return HealthClass.HEALTHY
    return HealthClass.DEGRADED


class ConnectorHealth(BaseModel):
    """A status snapshot together with its health classification."""

    status: ConnectorStatus
    health: HealthClass

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_status(cls, status: ConnectorStatus) -> "ConnectorHealth":
        return cls(status=status, health=aggregate_health(status))

    @property
    def name(self) -> str:
        return self.status.name

    @property
    def unhealthy_tasks(self) -> List[TaskStatus]:
        """Tasks that are not RUNNING, in server order."""
        return [task for task in self.status.tasks if task.state != State.RUNNING]

    @property
    def is_healthy(self) -> bool:
        return self.health == HealthClass.HEALTHY
