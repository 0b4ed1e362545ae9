"""
Signed RPC Channel
==================

Speaks the ECS JSON 1.1 protocol:

  POST https://ecs.<region>.amazonaws.com/
  X-Amz-Target: AmazonEC2ContainerServiceV20141113.<Operation>
  Content-Type: application/x-amz-json-1.1

Every request is signed with SigV4 (botocore) and sent with a fresh
requests call. No connection pool or response state is kept between calls.
Any failure comes back as RpcError carrying the operation name.
"""

from __future__ import annotations
import json
import logging
from typing import Optional

import requests
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.session import get_session

from .config import Config
from .errors import RpcError

log = logging.getLogger(__name__)

ECS_SERVICE    = "ecs"
TARGET_PREFIX  = "AmazonEC2ContainerServiceV20141113"
CONTENT_TYPE   = "application/x-amz-json-1.1"


def default_credential_provider():
    """botocore's standard chain: env vars, shared config, instance role."""
    return get_session()


class SignedChannel:
    def __init__(self, config: Config, credential_provider=None):
        self.config              = config
        self.credential_provider = credential_provider or default_credential_provider()

    @property
    def url(self) -> str:
        endpoint = self.config.api_endpoint
        if "://" in endpoint:
            return endpoint.rstrip("/") + "/"
        return f"https://{endpoint}:{self.config.api_port}/"

    def call(self, operation: str, payload: dict) -> dict:
        """Send one signed request and return the decoded JSON response body."""
        body    = json.dumps(payload).encode("utf-8")
        headers = {
            "Content-Type": CONTENT_TYPE,
            "X-Amz-Target": f"{TARGET_PREFIX}.{operation}",
        }
        headers = self._sign(operation, body, headers)

        try:
            resp = requests.post(
                self.url,
                data    = body,
                headers = headers,
                timeout = self.config.api_timeout,
                verify  = not self.config.insecure_skip_verify,
            )
        except requests.RequestException as e:
            log.error(f"{operation} request to {self.url} failed: {e}")
            raise RpcError(operation, str(e)) from e

        if not resp.ok:
            error_type, message = _parse_error(resp)
            raise RpcError(operation, message, error_type=error_type, status_code=resp.status_code)

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise RpcError(operation, f"undecodable response body: {resp.text[:200]}",
                           status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise RpcError(operation, f"unexpected response body: {resp.text[:200]}",
                           status_code=resp.status_code)
        return data

    def _sign(self, operation: str, body: bytes, headers: dict) -> dict:
        credentials = self.credential_provider.get_credentials()
        if credentials is None:
            raise RpcError(operation, "unable to locate AWS credentials")

        request = AWSRequest(method="POST", url=self.url, data=body, headers=headers)
        SigV4Auth(credentials, ECS_SERVICE, self.config.aws_region).add_auth(request)
        return dict(request.headers.items())


def _parse_error(resp: requests.Response) -> tuple[Optional[str], str]:
    """Pull __type and message out of an ECS error body."""
    try:
        data = resp.json()
    except ValueError:
        return None, f"HTTP {resp.status_code}: {resp.text[:200]}"
    if not isinstance(data, dict):
        return None, f"HTTP {resp.status_code}: {resp.text[:200]}"

    error_type = data.get("__type")
    if error_type and "#" in error_type:
        error_type = error_type.rsplit("#", 1)[1]
    message = data.get("message") or data.get("Message") or f"HTTP {resp.status_code}"
    return error_type, message
