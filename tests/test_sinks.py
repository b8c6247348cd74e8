"""Tests for the console, notification and log sinks."""

import io
from datetime import datetime, timedelta, timezone

import pytest

from gpuproc.errors import LogWriteFailure, NotificationDeliveryFailure
from gpuproc.models import GpuSnapshot, ProcessRecord, SingleProcessInfo, WorkloadEntry
from gpuproc.processes import ProcessTable
from gpuproc.sinks import (
    NOTIFICATION_ICON,
    NOTIFICATION_TITLE,
    LogAppender,
    NotificationSink,
    format_info,
    format_log_line,
    format_timestamp,
    print_info,
)

SNAPSHOT = GpuSnapshot(
    name="RTX 4090",
    total_utilization_percent=55,
    memory_used_mb=2048,
    memory_total_mb=24576,
    temperature_c=63,
    graphics_workloads=(WorkloadEntry(pid=100, used_memory_bytes=104857600),),
)
TABLE = ProcessTable.from_records([ProcessRecord(100, "firefox")])
FIREFOX = SingleProcessInfo(name="firefox", memory_usage_mb=100)


class TestConsole:
    """Tests for console output."""

    def test_format_info_with_target(self):
        """Test the console text includes the target line."""
        assert format_info(SNAPSHOT, FIREFOX) == (
            "Name: RTX 4090\n"
            "Total utilization: 55%\n"
            "Memory usage: 2048/24576 MB\n"
            "Temperature: 63°C\n"
            "firefox memory usage: 100 MB"
        )

    def test_format_info_without_target(self):
        """Test the console text without a target has four lines."""
        assert len(format_info(SNAPSHOT).splitlines()) == 4

    def test_print_info(self):
        """Test print_info writes to the given stream."""
        out = io.StringIO()
        print_info(SNAPSHOT, FIREFOX, file=out)
        assert out.getvalue().endswith("firefox memory usage: 100 MB\n")


class TestNotificationSink:
    """Tests for NotificationSink."""

    def test_send(self):
        """Test the alert has the fixed title, icon and capitalized body."""
        sent = []
        sink = NotificationSink(backend=lambda *args: sent.append(args))

        sink.send(SingleProcessInfo(name="FIREFOX", memory_usage_mb=100))

        assert sent == [
            (NOTIFICATION_TITLE, "Firefox is utilizing 100 MB of memory", NOTIFICATION_ICON)
        ]
        assert NOTIFICATION_TITLE == "GPU Usage"
        assert NOTIFICATION_ICON == "dialog-information"

    def test_send_failure(self):
        """Test backend errors become NotificationDeliveryFailure."""

        def broken_backend(summary, body, icon):
            raise RuntimeError("no notification daemon")

        with pytest.raises(NotificationDeliveryFailure) as excinfo:
            NotificationSink(backend=broken_backend).send(FIREFOX)

        assert isinstance(excinfo.value.__cause__, RuntimeError)


class TestLogFormat:
    """Tests for log line formatting."""

    def test_format_timestamp_pads_day(self):
        """Test single-digit days are space-padded."""
        moment = datetime(2026, 10, 5, 9, 3, 7, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "Mon Oct  5 09:03:07 2026"

    def test_format_timestamp_two_digit_day(self):
        """Test two-digit days are not padded."""
        moment = datetime(2026, 10, 19, 23, 59, 0, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "Mon Oct 19 23:59:00 2026"

    def test_format_timestamp_converts_to_utc(self):
        """Test aware datetimes in other zones are rendered in UTC."""
        moment = datetime(2026, 10, 5, 23, 30, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert format_timestamp(moment) == "Tue Oct  6 04:30:00 2026"

    def test_target_line(self):
        """Test the record for a matched target."""
        line = format_log_line(SNAPSHOT, "TS", TABLE, FIREFOX, ", ")
        assert line == (
            "TS | RTX 4090, Total utilization: 55%, Memory usage: 2048/24576 MB, "
            "Temperature: 63°C, firefox memory usage: 100 MB\n"
        )

    def test_workload_segments_are_delimited(self):
        """Test every workload gets its own delimited, capitalized segment."""
        snapshot = GpuSnapshot(
            name="GPU",
            total_utilization_percent=1,
            memory_used_mb=2,
            memory_total_mb=3,
            temperature_c=4,
            graphics_workloads=(
                WorkloadEntry(pid=100, used_memory_bytes=104857600),
                WorkloadEntry(pid=200, used_memory_bytes=None),
                WorkloadEntry(pid=300, used_memory_bytes=2**20),
            ),
        )
        table = ProcessTable.from_records([ProcessRecord(100, "firefox"), ProcessRecord(200, "XORG")])

        line = format_log_line(snapshot, "TS", table, delimiter=";")

        assert line == (
            "TS | GPU;Total utilization: 1%;Memory usage: 2/3 MB;Temperature: 4°C;"
            "Firefox memory usage: 100 MB;Xorg memory usage: 0 MB; memory usage: 1 MB\n"
        )

    def test_no_workloads(self):
        """Test a record without target or workloads ends after the temperature."""
        snapshot = GpuSnapshot("GPU", 0, 0, 0, 40)
        line = format_log_line(snapshot, "TS", TABLE)
        assert line == "TS | GPU, Total utilization: 0%, Memory usage: 0/0 MB, Temperature: 40°C\n"


class TestLogAppender:
    """Tests for LogAppender."""

    def test_append_creates_file(self, tmp_path):
        """Test the file is created when missing."""
        path = tmp_path / "gpu-usage.log"
        LogAppender(str(path)).append("first\n")
        assert path.read_text(encoding="utf-8") == "first\n"

    def test_append_preserves_existing_lines(self, tmp_path):
        """Test appending adds one line and leaves prior bytes untouched."""
        path = tmp_path / "gpu-usage.log"
        before = "old line 1\nold line 2 °C\n".encode("utf-8")
        path.write_bytes(before)

        LogAppender(str(path)).log(SNAPSHOT, TABLE, FIREFOX)

        after = path.read_bytes()
        assert after.startswith(before)
        assert after.count(b"\n") == before.count(b"\n") + 1

    def test_log_end_to_end_line(self, tmp_path):
        """Test the full record written for a matched target."""
        path = tmp_path / "gpu-usage.log"
        moment = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

        line = LogAppender(str(path)).log(SNAPSHOT, TABLE, FIREFOX, ", ", now=moment)

        assert line == (
            "Mon Oct 19 12:00:00 2026 | RTX 4090, Total utilization: 55%, "
            "Memory usage: 2048/24576 MB, Temperature: 63°C, firefox memory usage: 100 MB\n"
        )
        assert path.read_text(encoding="utf-8") == line

    def test_append_failure(self, tmp_path):
        """Test an unwritable path raises LogWriteFailure."""
        path = tmp_path / "missing-dir" / "gpu-usage.log"
        with pytest.raises(LogWriteFailure) as excinfo:
            LogAppender(str(path)).append("line\n")

        assert excinfo.value.path == str(path)
        assert isinstance(excinfo.value.__cause__, OSError)
