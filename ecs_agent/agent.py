"""
ECS Agent: Command Line
=======================

Operator entry point for the control-plane client.

  ecs-agent register
      Register this instance (bootstrapping the default cluster if no
      cluster is configured), persist the resolved cluster, and print the
      container instance arn and poll endpoint.

  ecs-agent discover <container-instance-arn>
  ecs-agent deregister <container-instance-arn>
  ecs-agent submit-task <task-arn> <status>
  ecs-agent submit-container <task-arn> <container-name> <status>
            [--exit-code N] [--port HOST:CONTAINER[:IP]] ...

Config comes from --config (default /etc/ecs/ecs.config.json) plus the
ECS_* environment variables; see ecs_agent.config.
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .client import ECSClient
from .config import CONFIG_PATH, Config, load_config, save_config
from .ec2 import EC2MetadataClient
from .errors import ECSClientError, MetadataError
from .statechange import ContainerStateChange, ContainerStatus, PortBinding, TaskStatus

log = logging.getLogger("ecs_agent")


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level  = logging.DEBUG if verbose else logging.INFO,
        format = "[%(asctime)s] %(levelname)s %(name)s — %(message)s",
        datefmt= "%Y-%m-%dT%H:%M:%S",
    )


# ─── Config ───────────────────────────────────────────────────────────────────

def resolve_config(path: Path, metadata: Optional[EC2MetadataClient] = None) -> Config:
    cfg = load_config(path)
    if not cfg.aws_region:
        metadata = metadata or EC2MetadataClient()
        try:
            cfg.aws_region = metadata.default_region()
            log.info(f"Region from instance metadata: {cfg.aws_region}")
        except MetadataError as e:
            log.warning(f"Could not determine region from instance metadata: {e}")
    cfg.complete().validate()
    return cfg


def parse_port(spec: str) -> PortBinding:
    """HOST:CONTAINER or HOST:CONTAINER:IP"""
    parts = spec.split(":", 2)
    if len(parts) < 2:
        raise argparse.ArgumentTypeError(f"expected HOST:CONTAINER[:IP], got {spec!r}")
    try:
        host_port, container_port = int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"ports must be numbers: {spec!r}")
    if len(parts) == 3:
        return PortBinding(container_port=container_port, host_port=host_port, bind_ip=parts[2])
    return PortBinding(container_port=container_port, host_port=host_port)


# ─── Commands ─────────────────────────────────────────────────────────────────

def cmd_register(client: ECSClient, args) -> int:
    arn = client.register_container_instance()
    # Restarts register into the cluster resolved here
    try:
        save_config(args.config, client.config)
    except OSError as e:
        log.error(f"Could not persist cluster {client.cluster_arn} to {args.config}: {e}")
    endpoint = client.discover_poll_endpoint(arn)
    log.info(f"Registered into cluster {client.cluster_arn}")
    print(arn)
    print(endpoint)
    return 0


def cmd_discover(client: ECSClient, args) -> int:
    print(client.discover_poll_endpoint(args.container_instance_arn))
    return 0


def cmd_deregister(client: ECSClient, args) -> int:
    client.deregister_container_instance(args.container_instance_arn)
    return 0


def cmd_submit_task(client: ECSClient, args) -> int:
    change = ContainerStateChange(
        task_arn    = args.task_arn,
        task_status = TaskStatus(args.status),
        reason      = args.reason,
    )
    print(client.submit_task_state_change(change).value)
    return 0


def cmd_submit_container(client: ECSClient, args) -> int:
    change = ContainerStateChange(
        task_arn       = args.task_arn,
        container_name = args.container_name,
        status         = ContainerStatus(args.status),
        exit_code      = args.exit_code,
        port_bindings  = args.port or [],
        reason         = args.reason,
    )
    print(client.submit_container_state_change(change).value)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecs-agent", description="ECS control-plane client")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("register", help="register this instance")
    p.set_defaults(func=cmd_register)

    p = sub.add_parser("discover", help="print the poll endpoint")
    p.add_argument("container_instance_arn")
    p.set_defaults(func=cmd_discover)

    p = sub.add_parser("deregister", help="deregister a container instance")
    p.add_argument("container_instance_arn")
    p.set_defaults(func=cmd_deregister)

    statuses = [s.value for s in TaskStatus]

    p = sub.add_parser("submit-task", help="report a task state change")
    p.add_argument("task_arn")
    p.add_argument("status", choices=statuses)
    p.add_argument("--reason")
    p.set_defaults(func=cmd_submit_task)

    p = sub.add_parser("submit-container", help="report a container state change")
    p.add_argument("task_arn")
    p.add_argument("container_name")
    p.add_argument("status", choices=statuses)
    p.add_argument("--exit-code", type=int)
    p.add_argument("--port", type=parse_port, action="append", help="HOST:CONTAINER[:IP]")
    p.add_argument("--reason")
    p.set_defaults(func=cmd_submit_container)

    return parser


# ─── Entry Point ──────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        client = ECSClient(resolve_config(args.config))
        return args.func(client, args)
    except ECSClientError as e:
        log.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
