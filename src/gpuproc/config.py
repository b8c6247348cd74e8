"""Invocation settings for gpuproc."""

from argparse import Namespace
from dataclasses import dataclass

from gpuproc.processes import MatchPolicy

DEFAULT_LOG_PATH = "/tmp/gpu-usage.log"
DEFAULT_DELIMITER = ", "


@dataclass(slots=True, frozen=True)
class Settings:
    """Everything a single run needs to know."""

    target_name: str | None = None
    write_log: bool = False
    print_info: bool = False
    disable_notification: bool = False
    log_path: str = DEFAULT_LOG_PATH
    delimiter: str = DEFAULT_DELIMITER
    device_index: int = 0
    match_policy: MatchPolicy = MatchPolicy.LAST

    @property
    def has_work(self) -> bool:
        """A run needs a target name or logging enabled."""
        return bool(self.target_name) or self.write_log

    @classmethod
    def from_args(cls, args: Namespace) -> "Settings":
        """Build settings from parsed command-line arguments."""
        return cls(
            target_name=args.name,
            write_log=args.logging,
            print_info=args.print_info,
            disable_notification=args.disable_notification,
            log_path=args.log_path,
            delimiter=args.delimiter,
            device_index=args.device_index,
            match_policy=MatchPolicy.FIRST if args.first_match else MatchPolicy.LAST,
        )
