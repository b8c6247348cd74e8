"""Exceptions raised by gpuproc."""


class GpuProcError(Exception):
    """Base class for all gpuproc errors."""


class DeviceUnavailable(GpuProcError):
    """The GPU driver could not be initialized or queried."""


class ProcessNotFound(GpuProcError):
    """No graphics workload resolved to the target process name."""

    def __init__(self, target_name: str) -> None:
        super().__init__(f"process not found: {target_name}")
        self.target_name = target_name


class NotificationDeliveryFailure(GpuProcError):
    """The desktop notification could not be shown."""


class LogWriteFailure(GpuProcError):
    """The log file could not be created or appended to."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"cannot write log file {path}: {cause}")
        self.path = path
