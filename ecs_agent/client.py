"""
ECS Client
==========

The control-plane surface the rest of the agent talks to:

  register_container_instance()      once at startup, resolves the cluster
  submit_task_state_change()         per task transition
  submit_container_state_change()    per container transition
  discover_poll_endpoint()           where to poll for work
  deregister_container_instance()    on shutdown

register_container_instance() is the only writer of config.cluster_arn and
must finish before any concurrent submissions start. Every other call builds
its request from call-local data and is safe to run concurrently.
"""

from __future__ import annotations
import logging
from typing import Optional

from .config import Config
from .ec2 import EC2MetadataClient
from .errors import RpcError
from .registration import ClusterRegistrar, Registration
from .rpc import SignedChannel
from .statechange import ContainerStateChange
from .submitter import StateChangeSubmitter, SubmitOutcome

log = logging.getLogger(__name__)


class ECSClient:
    def __init__(
        self,
        config:              Config,
        credential_provider = None,
        channel             = None,
        metadata:            Optional[EC2MetadataClient] = None,
    ):
        self.config    = config
        self.channel   = channel or SignedChannel(config, credential_provider)
        self.registrar = ClusterRegistrar(self.channel, config.reserved_ports, metadata)
        self.submitter = StateChangeSubmitter(self.channel)
        self._credential_provider = credential_provider

    def credential_provider(self):
        return getattr(self.channel, "credential_provider", self._credential_provider)

    @property
    def cluster_arn(self) -> str:
        return self.config.cluster_arn

    # ─── Registration ─────────────────────────────────────────────────────────

    def register_container_instance(self) -> str:
        registration: Registration = self.registrar.register(self.config.cluster_arn)
        # From here on every call targets the cluster we actually joined
        self.config.cluster_arn = registration.cluster_arn
        return registration.container_instance_arn

    def create_cluster(self, name: str) -> str:
        return self.registrar.create_cluster(name)

    def deregister_container_instance(self, container_instance_arn: str):
        self.channel.call("DeregisterContainerInstance", {
            "cluster":           self.cluster_arn,
            "containerInstance": container_instance_arn,
        })
        log.info(f"Deregistered {container_instance_arn}")

    # ─── Work ─────────────────────────────────────────────────────────────────

    def discover_poll_endpoint(self, container_instance_arn: str) -> str:
        resp = self.channel.call("DiscoverPollEndpoint", {
            "cluster":           self.cluster_arn,
            "containerInstance": container_instance_arn,
        })
        endpoint = resp.get("endpoint")
        if not endpoint:
            raise RpcError("DiscoverPollEndpoint", "response carried no endpoint")
        return endpoint

    def submit_task_state_change(self, change: ContainerStateChange) -> SubmitOutcome:
        return self.submitter.submit_task_state_change(self.cluster_arn, change)

    def submit_container_state_change(self, change: ContainerStateChange) -> SubmitOutcome:
        return self.submitter.submit_container_state_change(self.cluster_arn, change)
