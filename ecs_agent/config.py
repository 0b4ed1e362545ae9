"""
Agent Configuration
===================

Resolution order (later wins):
  1. Built-in defaults
  2. JSON config file (default /etc/ecs/ecs.config.json)
  3. Environment variables

Environment:
  ECS_CLUSTER               cluster name or arn to register into
  AWS_DEFAULT_REGION        region of the ECS endpoint
  ECS_BACKEND_HOST          override the ECS API host
  ECS_BACKEND_PORT          override the ECS API port
  ECS_RESERVED_PORTS        JSON list of host ports the agent reserves
  ECS_INSECURE_SKIP_VERIFY  "true" to skip TLS verification (testing only)
"""

from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from .errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_CLUSTER_NAME   = "default"
DEFAULT_API_PORT       = 443
DEFAULT_RESERVED_PORTS = [22, 2375, 2376, 51678]
DEFAULT_API_TIMEOUT    = 10.0

CONFIG_PATH = Path(os.getenv("ECS_AGENT_CONFIG_FILE_PATH", "/etc/ecs/ecs.config.json"))

_TRUTHY = ("1", "true", "yes")


@dataclass
class Config:
    cluster_arn:          str = ""
    aws_region:           str = ""
    api_endpoint:         str = ""
    api_port:             int = DEFAULT_API_PORT
    reserved_ports:       list[int] = field(default_factory=lambda: list(DEFAULT_RESERVED_PORTS))
    insecure_skip_verify: bool = False
    api_timeout:          float = DEFAULT_API_TIMEOUT

    def complete(self) -> "Config":
        """Fill in values derived from others (the regional endpoint)."""
        if not self.api_endpoint and self.aws_region:
            self.api_endpoint = f"ecs.{self.aws_region}.amazonaws.com"
        return self

    def validate(self):
        if not self.aws_region:
            raise ConfigError("aws_region is not set (AWS_DEFAULT_REGION)")
        if not self.api_endpoint:
            raise ConfigError("api_endpoint could not be determined")
        if not 0 < self.api_port < 65536:
            raise ConfigError(f"api_port out of range: {self.api_port}")
        for port in self.reserved_ports:
            if not 0 < port < 65536:
                raise ConfigError(f"reserved port out of range: {port}")

    @classmethod
    def from_dict(cls, raw: dict) -> "Config":
        known = {k: v for k, v in raw.items() if k in cls.__dataclass_fields__}
        unknown = set(raw) - set(known)
        if unknown:
            log.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        return cls(**{k: _coerce(k, v) for k, v in known.items()})

    def to_dict(self) -> dict:
        return asdict(self)


# ─── Loading ──────────────────────────────────────────────────────────────────

_STR_FIELDS = ("cluster_arn", "aws_region", "api_endpoint")


def _coerce(key: str, value):
    """Convert a raw file value to the field's type, or raise ConfigError."""
    try:
        if key in _STR_FIELDS:
            if not isinstance(value, str):
                raise TypeError("expected a string")
            return value
        if key == "api_port":
            if isinstance(value, bool):
                raise TypeError("expected a port number")
            return int(value)
        if key == "api_timeout":
            if isinstance(value, bool):
                raise TypeError("expected seconds")
            return float(value)
        if key == "insecure_skip_verify":
            if isinstance(value, str):
                return value.lower() in _TRUTHY
            if not isinstance(value, bool):
                raise TypeError("expected true or false")
            return value
        if key == "reserved_ports":
            if not isinstance(value, list):
                raise TypeError("expected a list of ports")
            return [int(p) for p in value]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r} ({e})")
    return value


def _env_overrides(env) -> dict:
    overrides: dict = {}
    if env.get("ECS_CLUSTER"):
        overrides["cluster_arn"] = env["ECS_CLUSTER"]
    if env.get("AWS_DEFAULT_REGION"):
        overrides["aws_region"] = env["AWS_DEFAULT_REGION"]
    if env.get("ECS_BACKEND_HOST"):
        overrides["api_endpoint"] = env["ECS_BACKEND_HOST"]
    if env.get("ECS_BACKEND_PORT"):
        try:
            overrides["api_port"] = int(env["ECS_BACKEND_PORT"])
        except ValueError:
            raise ConfigError(f"ECS_BACKEND_PORT is not a number: {env['ECS_BACKEND_PORT']!r}")
    if env.get("ECS_RESERVED_PORTS"):
        try:
            ports = json.loads(env["ECS_RESERVED_PORTS"])
            overrides["reserved_ports"] = [int(p) for p in ports]
        except (ValueError, TypeError):
            raise ConfigError(f"ECS_RESERVED_PORTS must be a JSON list of ports: {env['ECS_RESERVED_PORTS']!r}")
    if env.get("ECS_INSECURE_SKIP_VERIFY"):
        overrides["insecure_skip_verify"] = env["ECS_INSECURE_SKIP_VERIFY"].lower() in _TRUTHY
    return overrides


def load_config(path: Path = CONFIG_PATH, env: Optional[dict] = None) -> Config:
    raw: dict = {}
    if path.exists():
        try:
            raw = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}")
    else:
        log.debug(f"No config file at {path}, using defaults")

    raw.update(_env_overrides(os.environ if env is None else env))
    return Config.from_dict(raw).complete()


def save_config(path: Path, cfg: Config):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg.to_dict(), indent=2))
