"""GPU snapshot collection through NVML."""

import logging
from collections.abc import Callable
from types import ModuleType
from typing import TypeVar

import pynvml

from gpuproc.errors import DeviceUnavailable
from gpuproc.models import GpuSnapshot, WorkloadEntry, bytes_to_mb

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GpuSnapshotCollector:
    """
    Captures the state of a single GPU using the NVML bindings.

    Each capture initializes NVML, reads every metric once and shuts NVML
    down again. Any NVML failure is reported as DeviceUnavailable.
    """

    def __init__(self, device_index: int = 0, nvml: ModuleType = pynvml) -> None:
        """
        Initialize the collector.

        Args:
            device_index: Index of the GPU to query. Default 0.
            nvml: NVML bindings module; replaced by a fake in tests.
        """
        if device_index < 0:
            raise ValueError(f"device index must be non-negative, got {device_index}")
        self._device_index = device_index
        self._nvml = nvml

    @property
    def device_index(self) -> int:
        """Get the queried device index."""
        return self._device_index

    def capture(self) -> GpuSnapshot:
        """Capture a snapshot of the device."""
        nvml = self._nvml
        try:
            nvml.nvmlInit()
        except nvml.NVMLError as exc:
            raise DeviceUnavailable(f"failed to initialize NVML: {exc}") from exc

        try:
            return self._collect_snapshot()
        finally:
            try:
                nvml.nvmlShutdown()
            except nvml.NVMLError:
                logger.debug("NVML shutdown failed", exc_info=True)

    def _query(self, what: str, func: Callable[..., T], *args: object) -> T:
        """Run one NVML call, mapping driver errors to DeviceUnavailable."""
        try:
            return func(*args)
        except self._nvml.NVMLError as exc:
            raise DeviceUnavailable(
                f"failed to query {what} of GPU {self._device_index}: {exc}"
            ) from exc

    def _collect_snapshot(self) -> GpuSnapshot:
        nvml = self._nvml
        handle = self._query("device handle", nvml.nvmlDeviceGetHandleByIndex, self._device_index)

        name = self._query("name", nvml.nvmlDeviceGetName, handle)
        # Older bindings return bytes
        if isinstance(name, bytes):
            name = name.decode("utf-8", errors="replace")

        utilization = self._query("utilization", nvml.nvmlDeviceGetUtilizationRates, handle)
        memory = self._query("memory info", nvml.nvmlDeviceGetMemoryInfo, handle)
        temperature = self._query(
            "temperature", nvml.nvmlDeviceGetTemperature, handle, nvml.NVML_TEMPERATURE_GPU
        )
        processes = self._query(
            "graphics processes", nvml.nvmlDeviceGetGraphicsRunningProcesses, handle
        )

        workloads = tuple(
            WorkloadEntry(pid=proc.pid, used_memory_bytes=proc.usedGpuMemory)
            for proc in processes
        )
        logger.debug("GPU %d (%s): %d graphics workloads", self._device_index, name, len(workloads))

        return GpuSnapshot(
            name=name,
            total_utilization_percent=int(utilization.gpu),
            memory_used_mb=bytes_to_mb(memory.used),
            memory_total_mb=bytes_to_mb(memory.total),
            temperature_c=int(temperature),
            graphics_workloads=workloads,
        )
