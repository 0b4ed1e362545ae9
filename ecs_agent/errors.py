"""
Errors
======

Everything the ECS client raises derives from ECSClientError.

  RpcError                transport or remote-service failure (always propagated)
  ClusterInactiveError    the default cluster exists but is not ACTIVE (policy)
  StateChangeError        a state change could not be submitted, see retry()
  InvalidStateChangeError the change was rejected locally, never retriable
  MetadataError           the instance metadata service could not be read
  ConfigError             the agent configuration is unusable
"""

from __future__ import annotations
from typing import Optional


class ECSClientError(Exception):
    """Base class for every error raised by ecs_agent."""


class ConfigError(ECSClientError):
    pass


class MetadataError(ECSClientError):
    def __init__(self, resource: str, message: str):
        super().__init__(f"metadata resource {resource!r}: {message}")
        self.resource = resource


class RpcError(ECSClientError):
    """
    A call to the ECS API failed.

    `operation` names the API action (RegisterContainerInstance, ...),
    `error_type` is the service's __type when the service answered,
    `status_code` is None for connection-level failures.
    """

    def __init__(
        self,
        operation:   str,
        message:     str,
        error_type:  Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(f"{operation}: {message}")
        self.operation   = operation
        self.message     = message
        self.error_type  = error_type
        self.status_code = status_code


class ClusterInactiveError(ECSClientError):
    def __init__(self, cluster: str, status: str):
        super().__init__(f"Cluster is not available for registration: {cluster} is {status}")
        self.cluster = cluster
        self.status  = status


class StateChangeError(ECSClientError):
    """Wraps a failed task/container state change submission."""

    retriable = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def retry(self) -> bool:
        return self.retriable


class InvalidStateChangeError(StateChangeError):
    retriable = False
