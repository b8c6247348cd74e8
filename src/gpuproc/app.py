"""gpuproc - Command-line entry point."""

import argparse
import logging
import sys

from gpuproc.collector import GpuSnapshotCollector
from gpuproc.config import DEFAULT_DELIMITER, DEFAULT_LOG_PATH, Settings
from gpuproc.errors import GpuProcError, NotificationDeliveryFailure, ProcessNotFound
from gpuproc.processes import ProcessTable, match
from gpuproc.sinks import LogAppender, NotificationSink, print_info

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

USAGE_HINT = "Please provide a process name or enable logging"


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="gpuproc",
        description="Simple program to get the GPU usage of a process",
    )
    parser.add_argument("-n", "--name", help="Name of a process")
    parser.add_argument("-l", "--logging", action="store_true", help="Log the GPU usage")
    parser.add_argument(
        "-p", "--print-info", action="store_true", help="Print info about the GPU and the process"
    )
    parser.add_argument(
        "-d", "--disable-notification", action="store_true", help="Disable the notification"
    )
    parser.add_argument(
        "-L", "--log-path", default=DEFAULT_LOG_PATH, help="Path to the log file"
    )
    parser.add_argument("-D", "--delimiter", default=DEFAULT_DELIMITER, help="Log delimiter")
    parser.add_argument(
        "-i", "--device-index", type=int, default=0, help="Index of the GPU to query"
    )
    parser.add_argument(
        "--first-match",
        action="store_true",
        help="Report the first matching workload instead of the last",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run(
    settings: Settings,
    collector: GpuSnapshotCollector | None = None,
    table: ProcessTable | None = None,
    notifier: NotificationSink | None = None,
) -> None:
    """
    Run the snapshot/match/report pipeline once.

    Raises:
        DeviceUnavailable: The GPU could not be queried.
        ProcessNotFound: No graphics workload matched the target name.
        LogWriteFailure: The log record could not be written.
    """
    collector = collector or GpuSnapshotCollector(settings.device_index)
    snapshot = collector.capture()
    table = table if table is not None else ProcessTable.capture()
    appender = LogAppender(settings.log_path) if settings.write_log else None

    if not settings.target_name:
        if settings.print_info:
            print_info(snapshot)
        if appender is not None:
            appender.log(snapshot, table, delimiter=settings.delimiter)
        return

    info = match(snapshot, table, settings.target_name, settings.match_policy)
    if info is None:
        raise ProcessNotFound(settings.target_name)

    if not settings.disable_notification:
        try:
            (notifier or NotificationSink()).send(info)
        except NotificationDeliveryFailure as exc:
            logger.warning("%s", exc)
    if settings.print_info:
        print_info(snapshot, info)
    if appender is not None:
        appender.log(snapshot, table, info, delimiter=settings.delimiter)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the gpuproc command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    settings = Settings.from_args(args)
    if not settings.has_work:
        print(USAGE_HINT, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE
    if settings.device_index < 0:
        parser.error("--device-index must be non-negative")

    try:
        run(settings)
    except GpuProcError as exc:
        print(f"gpuproc: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
