"""
State Change Submission
=======================

Reports task and container transitions to ECS. One transition in, at most
one request out. Transitions ECS has no word for are skipped and reported as
SubmitOutcome.IGNORED; channel failures come back as a retriable
StateChangeError so the caller can apply its own retry policy.
"""

from __future__ import annotations
import logging
from enum import Enum

from .errors import ECSClientError, InvalidStateChangeError, StateChangeError
from .statechange import ContainerStateChange, TaskStatus, to_remote_status

log = logging.getLogger(__name__)


class SubmitOutcome(str, Enum):
    SUBMITTED = "SUBMITTED"
    IGNORED   = "IGNORED"       # status has no ECS equivalent, nothing sent


class StateChangeSubmitter:
    def __init__(self, channel):
        self.channel = channel

    def submit_task_state_change(self, cluster: str, change: ContainerStateChange) -> SubmitOutcome:
        if change.task_status == TaskStatus.NONE:
            log.warning(f"SubmitTaskStateChange called with an invalid change: {change}")
            raise InvalidStateChangeError("SubmitTaskStateChange called with an invalid change")

        status = to_remote_status(change.task_status)
        if status is None:
            log.debug(f"Not submitting unsupported upstream task state {change.task_status.value}")
            return SubmitOutcome.IGNORED

        request = {
            "cluster": cluster,
            "task":    change.task_arn,
            "status":  status,
        }
        if change.reason:
            request["reason"] = change.reason

        self._submit("SubmitTaskStateChange", request, change)
        return SubmitOutcome.SUBMITTED

    def submit_container_state_change(self, cluster: str, change: ContainerStateChange) -> SubmitOutcome:
        status = to_remote_status(change.status)
        if status is None:
            log.info(f"Not submitting unsupported upstream container state {change.status.value}")
            return SubmitOutcome.IGNORED

        request = {
            "cluster":         cluster,
            "task":            change.task_arn,
            "containerName":   change.container_name,
            "status":          status,
            "networkBindings": [b.to_payload() for b in change.port_bindings],
        }
        if change.exit_code is not None:
            request["exitCode"] = change.exit_code
        if change.reason:
            request["reason"] = change.reason

        self._submit("SubmitContainerStateChange", request, change)
        return SubmitOutcome.SUBMITTED

    def _submit(self, operation: str, request: dict, change: ContainerStateChange):
        try:
            self.channel.call(operation, request)
        except ECSClientError as e:
            log.warning(f"Could not submit a state change ({operation}) for {change.task_arn}: {e}")
            raise StateChangeError(f"{operation} failed: {e}", cause=e) from e
