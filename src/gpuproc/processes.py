"""Process table capture and workload matching for gpuproc."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

import psutil

from gpuproc.models import GpuSnapshot, ProcessRecord, SingleProcessInfo

logger = logging.getLogger(__name__)


class MatchPolicy(Enum):
    """Which workload wins when several resolve to the target name."""

    FIRST = "first"
    LAST = "last"


@dataclass(slots=True, frozen=True)
class ProcessTable:
    """Snapshot of the OS process table, indexed by pid."""

    records: Mapping[int, ProcessRecord] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, pid: object) -> bool:
        return pid in self.records

    @classmethod
    def from_records(cls, records: list[ProcessRecord]) -> "ProcessTable":
        """Build a table from records; later duplicates of a pid win."""
        return cls(records={record.pid: record for record in records})

    @classmethod
    def capture(cls) -> "ProcessTable":
        """
        Enumerate every running process once.

        Processes that exit mid-enumeration or deny access are skipped.
        """
        records: list[ProcessRecord] = []

        for proc in psutil.process_iter(attrs=["pid", "name"]):
            try:
                info = proc.info
                records.append(ProcessRecord(pid=info["pid"], name=info.get("name") or ""))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        logger.debug("Captured %d processes", len(records))
        return cls.from_records(records)


def resolve(table: ProcessTable, pid: int) -> str:
    """Return the name of ``pid``, or an empty string if it is not in the table."""
    record = table.records.get(pid)
    return record.name if record is not None else ""


def match(
    snapshot: GpuSnapshot,
    table: ProcessTable,
    target_name: str,
    policy: MatchPolicy = MatchPolicy.LAST,
) -> SingleProcessInfo | None:
    """
    Find the graphics workload whose process name equals ``target_name``.

    Matching is exact and case-sensitive. When several workloads match, the
    policy picks the first or last one in the order the driver reported them.
    Returns None when nothing matches.
    """
    if not target_name:
        return None

    matches = [
        SingleProcessInfo(name=target_name, memory_usage_mb=entry.memory_usage_mb)
        for entry in snapshot.graphics_workloads
        if resolve(table, entry.pid) == target_name
    ]
    logger.debug("%d workloads match %r", len(matches), target_name)

    if not matches:
        return None
    return matches[0] if policy is MatchPolicy.FIRST else matches[-1]
