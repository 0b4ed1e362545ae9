"""
Cluster Registration
====================

Registers this instance with ECS and returns the cluster it ended up in.

With an explicit cluster the agent registers exactly once and surfaces any
failure. Nothing is created on behalf of an explicit cluster.

Without one, the default cluster is bootstrapped:
  1. register optimistically (needs no DescribeClusters permission when the
     cluster already exists)
  2. on failure, describe the default cluster
       describe fails          → that error is raised, nothing is created
       status not ACTIVE       → ClusterInactiveError, nothing is created
       absent (empty status)   → CreateCluster
  3. register again against the resolved cluster
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_CLUSTER_NAME
from .ec2 import EC2MetadataClient
from .errors import ClusterInactiveError, ECSClientError, MetadataError, RpcError
from .resources import build_resources

log = logging.getLogger(__name__)

CLUSTER_STATUS_ACTIVE = "ACTIVE"


@dataclass(frozen=True)
class ClusterDescriptor:
    cluster_name: str
    cluster_arn:  str
    status:       str = ""          # "" when the cluster does not exist

    @property
    def exists(self) -> bool:
        return self.status != ""


@dataclass(frozen=True)
class InstanceRegistration:
    cluster:            str
    identity_document:  bytes
    identity_signature: bytes
    resources:          tuple

    def to_payload(self) -> dict:
        return {
            "cluster":                           self.cluster,
            "instanceIdentityDocument":          self.identity_document.decode("utf-8", "replace"),
            "instanceIdentityDocumentSignature": self.identity_signature.decode("utf-8", "replace"),
            "totalResources":                    [r.to_payload() for r in self.resources],
        }


@dataclass(frozen=True)
class Registration:
    """Outcome of a successful registration: the cluster we joined and our arn."""
    cluster_arn:            str
    container_instance_arn: str


class ClusterRegistrar:
    def __init__(self, channel, reserved_ports: list[int], metadata: Optional[EC2MetadataClient] = None):
        self.channel        = channel
        self.reserved_ports = list(reserved_ports)
        self.metadata       = metadata or EC2MetadataClient()

    # ─── Bootstrap ────────────────────────────────────────────────────────────

    def register(self, configured_cluster: str) -> Registration:
        if configured_cluster:
            arn = self.register_container_instance(configured_cluster)
            return Registration(configured_cluster, arn)

        cluster = DEFAULT_CLUSTER_NAME
        try:
            arn = self.register_container_instance(cluster)
            return Registration(cluster, arn)
        except ECSClientError as e:
            log.info(f"Registration into {cluster!r} failed ({e}), checking whether the cluster exists")

        cluster = self._ensure_cluster(cluster)
        arn = self.register_container_instance(cluster)
        return Registration(cluster, arn)

    def _ensure_cluster(self, name: str) -> str:
        descriptor = self.describe_cluster(name)
        if descriptor.exists and descriptor.status != CLUSTER_STATUS_ACTIVE:
            # An inactive cluster was deactivated on purpose; never recreate it
            log.error(f"Cluster is not available for registration: {name} is {descriptor.status}")
            raise ClusterInactiveError(name, descriptor.status)
        if descriptor.exists:
            return descriptor.cluster_arn or name
        self._create(name)
        return name

    # ─── Steps ────────────────────────────────────────────────────────────────

    def describe_cluster(self, name: str) -> ClusterDescriptor:
        try:
            resp = self.channel.call("DescribeClusters", {"clusters": [name]})
        except ECSClientError as e:
            log.error(f"Unable to describe cluster {name}: {e}")
            raise
        for cluster in resp.get("clusters", []):
            if cluster.get("clusterName") == name:
                return ClusterDescriptor(
                    cluster_name = name,
                    cluster_arn  = cluster.get("clusterArn", ""),
                    status       = cluster.get("status") or "",
                )
        return ClusterDescriptor(cluster_name=name, cluster_arn="")

    def create_cluster(self, name: str) -> str:
        arn = (self._create(name).get("cluster") or {}).get("clusterArn")
        if not arn:
            raise RpcError("CreateCluster", "response carried no cluster.clusterArn")
        return arn

    def _create(self, name: str) -> dict:
        try:
            resp = self.channel.call("CreateCluster", {"clusterName": name})
        except ECSClientError as e:
            log.critical(f"Could not create cluster {name}: {e}")
            raise
        log.info(f"Created a cluster! {name}")
        return resp

    def register_container_instance(self, cluster: str) -> str:
        request = self.build_registration(cluster)
        try:
            resp = self.channel.call("RegisterContainerInstance", request.to_payload())
        except ECSClientError as e:
            log.error(f"Could not register into {cluster}: {e}")
            raise
        arn = (resp.get("containerInstance") or {}).get("containerInstanceArn")
        if not arn:
            raise RpcError("RegisterContainerInstance", "response carried no containerInstance.containerInstanceArn")
        log.info(f"Registered! {arn}")
        return arn

    # ─── Request ──────────────────────────────────────────────────────────────

    def build_registration(self, cluster: str) -> InstanceRegistration:
        document, signature = self._identity()
        return InstanceRegistration(
            cluster            = cluster,
            identity_document  = document,
            identity_signature = signature,
            resources          = tuple(build_resources(self.reserved_ports)),
        )

    def _identity(self) -> tuple[bytes, bytes]:
        """Identity document and signature; no signature is fetched without a document."""
        try:
            document = self.metadata.instance_identity_document()
        except MetadataError as e:
            log.error(f"Unable to get instance identity document: {e}")
            return b"", b""
        try:
            signature = self.metadata.instance_identity_signature()
        except MetadataError as e:
            log.error(f"Unable to get instance identity signature: {e}")
            signature = b""
        return document, signature
