"""
Lifecycle State Changes
=======================

Internal task/container lifecycle states and the events the agent emits when
they change. ECS only understands RUNNING and STOPPED; to_remote_status()
decides which internal states are reported at all.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

REMOTE_RUNNING = "RUNNING"
REMOTE_STOPPED = "STOPPED"
REMOTE_STATUSES = (REMOTE_RUNNING, REMOTE_STOPPED)


class TaskStatus(str, Enum):
    NONE    = "NONE"
    UNKNOWN = "UNKNOWN"
    PULLED  = "PULLED"
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    DEAD    = "DEAD"


class ContainerStatus(str, Enum):
    NONE    = "NONE"
    UNKNOWN = "UNKNOWN"
    PULLED  = "PULLED"
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    DEAD    = "DEAD"


def to_remote_status(status) -> Optional[str]:
    """
    Map an internal status onto the ECS vocabulary.
    Returns None for states ECS is never told about.
    """
    name = status.value if isinstance(status, Enum) else str(status)
    if name == "DEAD":
        name = REMOTE_STOPPED
    return name if name in REMOTE_STATUSES else None


@dataclass(frozen=True)
class PortBinding:
    container_port: int
    host_port:      int
    bind_ip:        str = "0.0.0.0"

    def to_payload(self) -> dict:
        return {
            "bindIP":        self.bind_ip,
            "hostPort":      self.host_port,
            "containerPort": self.container_port,
        }


@dataclass
class ContainerStateChange:
    """
    One lifecycle transition. Task submissions read task_status, container
    submissions read status, container_name, exit_code and port_bindings.
    """
    task_arn:       str
    container_name: str = ""
    status:         ContainerStatus = ContainerStatus.NONE
    task_status:    TaskStatus = TaskStatus.NONE
    exit_code:      Optional[int] = None
    port_bindings:  list[PortBinding] = field(default_factory=list)
    reason:         Optional[str] = None
