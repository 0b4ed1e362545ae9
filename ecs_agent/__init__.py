"""
ECS Agent Control-Plane Client
==============================

The part of the container agent that talks to the ECS control plane.

What it does:
  1. Register this instance into a cluster, creating the default cluster
     when none is configured and it does not exist yet
  2. Discover the endpoint the agent polls for work
  3. Report task and container state changes (RUNNING / STOPPED)
  4. Deregister the instance on shutdown

Requirements:
  pip install requests botocore psutil

Usage:
  ecs-agent register
  python -m ecs_agent.agent --help
"""

from .client import ECSClient
from .config import Config, load_config
from .errors import (
    ClusterInactiveError,
    ECSClientError,
    InvalidStateChangeError,
    RpcError,
    StateChangeError,
)
from .statechange import ContainerStateChange, ContainerStatus, PortBinding, TaskStatus
from .submitter import SubmitOutcome

__version__ = "0.1.0"
