"""
Shared pytest fixtures.
"""

from __future__ import annotations

import pytest

from ecs_agent import resources
from ecs_agent.config import Config
from ecs_agent.ec2 import EC2MetadataClient
from ecs_agent.errors import MetadataError, RpcError


class FakeChannel:
    """
    Records every call. Responses are scripted per operation: a dict is
    returned, an exception is raised, a list is consumed one entry per call.
    """

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def call(self, operation, payload):
        self.calls.append((operation, payload))
        scripted = self.responses.get(operation, {})
        if isinstance(scripted, list):
            scripted = scripted.pop(0)
        if isinstance(scripted, BaseException):
            raise scripted
        return scripted

    def operations(self):
        return [op for op, _ in self.calls]

    def payloads(self, operation):
        return [p for op, p in self.calls if op == operation]


class FakeMetadata:
    def __init__(self, document=b'{"region": "us-west-2"}', signature=b"sig", fail_document=False, fail_signature=False):
        self.document = document
        self.signature = signature
        self.fail_document = fail_document
        self.fail_signature = fail_signature
        self.reads = []

    def instance_identity_document(self):
        self.reads.append("document")
        if self.fail_document:
            raise MetadataError("instance-identity/document", "unreachable")
        return self.document

    def instance_identity_signature(self):
        self.reads.append("signature")
        if self.fail_signature:
            raise MetadataError("instance-identity/signature", "unreachable")
        return self.signature

    default_region = EC2MetadataClient.default_region


def registered(arn="arn:aws:ecs:us-west-2:123:container-instance/abc"):
    return {"containerInstance": {"containerInstanceArn": arn}}


def rpc_error(operation, message="boom", error_type="ClientException", status_code=400):
    return RpcError(operation, message, error_type=error_type, status_code=status_code)


@pytest.fixture
def config():
    return Config(aws_region="us-west-2", reserved_ports=[22, 2375, 2376, 51678]).complete()


@pytest.fixture
def metadata():
    return FakeMetadata()


@pytest.fixture
def fixed_host(monkeypatch):
    """Pin the host probe to 4 cores / 8 GiB."""
    monkeypatch.setattr(resources, "get_cpu_and_memory", lambda: (4 * 1024, 8192))
