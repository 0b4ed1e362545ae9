import pytest
import requests

from ecs_agent import ec2
from ecs_agent.ec2 import EC2MetadataClient
from ecs_agent.errors import MetadataError


class FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content
        self.ok = status_code < 400


@pytest.fixture
def metadata_service(monkeypatch):
    served = {}
    requested = []

    def fake_get(url, timeout=None):
        requested.append(url)
        served_value = served.get(url.rsplit("/dynamic/", 1)[1])
        if served_value is None:
            return FakeResponse(404)
        if isinstance(served_value, Exception):
            raise served_value
        return FakeResponse(200, served_value)

    monkeypatch.setattr(ec2.requests, "get", fake_get)
    return served, requested


def test_reads_document_and_signature(metadata_service):
    served, requested = metadata_service
    served["instance-identity/document"] = b'{"region": "us-west-2"}'
    served["instance-identity/signature"] = b"c2lnbmF0dXJl"
    client = EC2MetadataClient()

    assert client.instance_identity_document() == b'{"region": "us-west-2"}'
    assert client.instance_identity_signature() == b"c2lnbmF0dXJl"
    assert requested[0] == "http://169.254.169.254/2014-02-25/dynamic/instance-identity/document"


def test_http_error(metadata_service):
    with pytest.raises(MetadataError) as excinfo:
        EC2MetadataClient().instance_identity_signature()
    assert excinfo.value.resource == "instance-identity/signature"


def test_connection_error(metadata_service):
    served, _ = metadata_service
    served["instance-identity/document"] = requests.ConnectTimeout("timed out")
    with pytest.raises(MetadataError):
        EC2MetadataClient().instance_identity_document()


def test_default_region(metadata_service):
    served, _ = metadata_service
    served["instance-identity/document"] = b'{"region": "ap-southeast-2", "instanceId": "i-0"}'
    assert EC2MetadataClient().default_region() == "ap-southeast-2"


def test_default_region_missing(metadata_service):
    served, _ = metadata_service
    served["instance-identity/document"] = b'{"instanceId": "i-0"}'
    with pytest.raises(MetadataError):
        EC2MetadataClient().default_region()
