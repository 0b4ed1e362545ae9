"""
Host Resources
==============

Probes this host's CPU and memory with psutil and builds the resource list
sent with RegisterContainerInstance. Exactly three resources are reported:

  CPU     INTEGER    logical cores × 1024 (CPU units)
  MEMORY  INTEGER    total memory in MiB
  PORTS   STRINGSET  host ports reserved by the agent
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Union

import psutil  # type: ignore

log = logging.getLogger(__name__)

INTEGER   = "INTEGER"
STRINGSET = "STRINGSET"

CPU_UNITS_PER_CORE = 1024


@dataclass(frozen=True)
class Resource:
    name:  str
    type:  str                      # INTEGER or STRINGSET
    value: Union[int, tuple]

    def to_payload(self) -> dict:
        payload = {"name": self.name, "type": self.type}
        if self.type == INTEGER:
            payload["integerValue"] = self.value
        else:
            payload["stringSetValue"] = list(self.value)
        return payload


def get_cpu_and_memory() -> tuple[int, int]:
    """
    CPU units and memory in MiB. A failed memory probe reports 0 rather than
    blocking registration.
    """
    cpu = (psutil.cpu_count(logical=True) or 1) * CPU_UNITS_PER_CORE
    try:
        mem = psutil.virtual_memory().total // (1024 * 1024)
    except Exception as e:
        log.error(f"Unable to get memory info: {e}")
        mem = 0
    return cpu, mem


def build_resources(reserved_ports: list[int]) -> list[Resource]:
    cpu, mem = get_cpu_and_memory()
    return [
        Resource("CPU",    INTEGER,   cpu),
        Resource("MEMORY", INTEGER,   mem),
        Resource("PORTS",  STRINGSET, tuple(str(p) for p in reserved_ports)),
    ]
