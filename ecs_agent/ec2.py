"""
EC2 Instance Metadata
=====================

Reads the instance identity document and its signature from the local
metadata service. Both are attached to the registration request so ECS can
verify which instance is joining the cluster.
"""

from __future__ import annotations
import json
import logging

import requests

from .errors import MetadataError

log = logging.getLogger(__name__)

EC2_METADATA_SERVICE_URL = "http://169.254.169.254/2014-02-25/dynamic/"

INSTANCE_IDENTITY_DOCUMENT_RESOURCE           = "instance-identity/document"
INSTANCE_IDENTITY_DOCUMENT_SIGNATURE_RESOURCE = "instance-identity/signature"


class EC2MetadataClient:
    def __init__(self, base_url: str = EC2_METADATA_SERVICE_URL, timeout: float = 2.0):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout  = timeout

    def read_resource(self, path: str) -> bytes:
        url = self.base_url + path
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise MetadataError(path, str(e)) from e
        if not resp.ok:
            raise MetadataError(path, f"HTTP {resp.status_code}")
        return resp.content

    def instance_identity_document(self) -> bytes:
        return self.read_resource(INSTANCE_IDENTITY_DOCUMENT_RESOURCE)

    def instance_identity_signature(self) -> bytes:
        return self.read_resource(INSTANCE_IDENTITY_DOCUMENT_SIGNATURE_RESOURCE)

    def default_region(self) -> str:
        """Region this instance runs in, from the identity document."""
        doc = self.instance_identity_document()
        try:
            return json.loads(doc)["region"]
        except (ValueError, KeyError) as e:
            raise MetadataError(INSTANCE_IDENTITY_DOCUMENT_RESOURCE, f"no region in document: {e}") from e
