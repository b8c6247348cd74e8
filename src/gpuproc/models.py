"""Data models for gpuproc."""

from dataclasses import dataclass

MB_SHIFT = 20


def bytes_to_mb(size: int | None) -> int:
    """Convert a byte count to whole megabytes (floor). Unknown sizes count as 0."""
    if size is None:
        return 0
    if size < 0:
        raise ValueError(f"byte count must be non-negative, got {size}")
    return size >> MB_SHIFT


def capitalize(text: str) -> str:
    """Uppercase the first character and ASCII-lowercase the rest."""
    if not text:
        return ""
    return text[0].upper() + "".join(c.lower() if c.isascii() else c for c in text[1:])


@dataclass(slots=True, frozen=True)
class WorkloadEntry:
    """A graphics workload as reported by the driver."""

    pid: int
    used_memory_bytes: int | None  # None when the driver cannot tell

    @property
    def memory_usage_mb(self) -> int:
        return bytes_to_mb(self.used_memory_bytes)


@dataclass(slots=True, frozen=True)
class GpuSnapshot:
    """Immutable snapshot of a single GPU."""

    name: str
    total_utilization_percent: int
    memory_used_mb: int
    memory_total_mb: int
    temperature_c: int
    graphics_workloads: tuple[WorkloadEntry, ...] = ()

    @property
    def total_utilization(self) -> str:
        """Utilization rendered as a percentage string, e.g. ``55%``."""
        return f"{self.total_utilization_percent}%"


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Entry of the OS process table."""

    pid: int
    name: str


@dataclass(slots=True, frozen=True)
class SingleProcessInfo:
    """GPU memory usage of the matched target process."""

    name: str
    memory_usage_mb: int
