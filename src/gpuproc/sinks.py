"""Output sinks: console, desktop notification and log file."""

import logging
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TextIO

from gpuproc.errors import LogWriteFailure, NotificationDeliveryFailure
from gpuproc.models import GpuSnapshot, SingleProcessInfo, capitalize
from gpuproc.processes import ProcessTable, resolve

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "GPU Usage"
NOTIFICATION_ICON = "dialog-information"
APP_NAME = "gpuproc"

NotifyBackend = Callable[[str, str, str], None]


def format_info(snapshot: GpuSnapshot, info: SingleProcessInfo | None = None) -> str:
    """Render the snapshot and optional target usage as console text."""
    lines = [
        f"Name: {snapshot.name}",
        f"Total utilization: {snapshot.total_utilization}",
        f"Memory usage: {snapshot.memory_used_mb}/{snapshot.memory_total_mb} MB",
        f"Temperature: {snapshot.temperature_c}°C",
    ]
    if info is not None:
        lines.append(f"{info.name} memory usage: {info.memory_usage_mb} MB")
    return "\n".join(lines)


def print_info(
    snapshot: GpuSnapshot,
    info: SingleProcessInfo | None = None,
    file: TextIO | None = None,
) -> None:
    """Print the snapshot to stdout (or ``file``)."""
    print(format_info(snapshot, info), file=file or sys.stdout)


def notify2_backend(summary: str, body: str, icon: str) -> None:
    """Show a desktop notification over D-Bus using notify2."""
    import notify2

    notify2.init(APP_NAME)
    notify2.Notification(summary, body, icon).show()


class NotificationSink:
    """Sends the target's memory usage as a desktop alert."""

    def __init__(self, backend: NotifyBackend | None = None) -> None:
        self._backend = backend or notify2_backend

    @staticmethod
    def format_body(info: SingleProcessInfo) -> str:
        return f"{capitalize(info.name)} is utilizing {info.memory_usage_mb} MB of memory"

    def send(self, info: SingleProcessInfo) -> None:
        """
        Deliver the alert.

        Raises:
            NotificationDeliveryFailure: The backend failed or is not installed.
        """
        body = self.format_body(info)
        try:
            self._backend(NOTIFICATION_TITLE, body, NOTIFICATION_ICON)
        except Exception as exc:
            raise NotificationDeliveryFailure(f"cannot show notification: {exc}") from exc
        logger.debug("Notification sent: %s", body)


def format_timestamp(moment: datetime) -> str:
    """Format in UTC as ``Mon Oct  5 09:03:07 2026``; the day is space-padded."""
    moment = moment.astimezone(timezone.utc)
    return f"{moment:%a %b} {moment.day:2d} {moment:%H:%M:%S %Y}"


def format_log_line(
    snapshot: GpuSnapshot,
    timestamp: str,
    table: ProcessTable,
    info: SingleProcessInfo | None = None,
    delimiter: str = ", ",
) -> str:
    """
    Build one log record, terminated by a newline.

    With a target, a single segment for it is written. Without one, every
    graphics workload gets its own segment with the resolved, capitalized name.
    """
    fields = [
        snapshot.name,
        f"Total utilization: {snapshot.total_utilization}",
        f"Memory usage: {snapshot.memory_used_mb}/{snapshot.memory_total_mb} MB",
        f"Temperature: {snapshot.temperature_c}°C",
    ]
    if info is not None:
        fields.append(f"{info.name} memory usage: {info.memory_usage_mb} MB")
    else:
        for entry in snapshot.graphics_workloads:
            name = capitalize(resolve(table, entry.pid))
            fields.append(f"{name} memory usage: {entry.memory_usage_mb} MB")

    return f"{timestamp} | {delimiter.join(fields)}\n"


class LogAppender:
    """
    Appends records to a UTF-8 log file, creating it if needed.

    Existing content is never truncated. There is no file locking, so
    concurrent runs writing the same file may interleave their lines.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def append(self, line: str) -> None:
        """
        Write ``line`` in a single call.

        Raises:
            LogWriteFailure: The file could not be opened or written.
        """
        try:
            with open(self._path, "a", encoding="utf-8") as log_file:
                log_file.write(line)
        except OSError as exc:
            raise LogWriteFailure(self._path, exc) from exc
        logger.debug("Appended log record to %s", self._path)

    def log(
        self,
        snapshot: GpuSnapshot,
        table: ProcessTable,
        info: SingleProcessInfo | None = None,
        delimiter: str = ", ",
        now: datetime | None = None,
    ) -> str:
        """Format and append a record for ``snapshot``; returns the written line."""
        moment = now or datetime.now(timezone.utc)
        line = format_log_line(snapshot, format_timestamp(moment), table, info, delimiter)
        self.append(line)
        return line
