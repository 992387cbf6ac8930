"""Progress reporting utilities for scanning."""

import sys
import time
from dataclasses import dataclass, field

from source2prompt.scanner.models import ScanProgress, ScanSnapshot


@dataclass
class ScanTimer:
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time


class ProgressReporter:
    """Reports scan progress to the user."""

    def __init__(self, interval: int = 1000):
        self.interval = interval
        self._last_report_count = 0

    def __call__(self, event: ScanProgress) -> None:
        self.report_if_needed(event)

    def report_if_needed(self, event: ScanProgress) -> None:
        if event.processed_count - self._last_report_count >= self.interval:
            self._print_progress(event)
            self._last_report_count = event.processed_count

    def report_completion(self, snapshot: ScanSnapshot, timer: ScanTimer) -> None:
        duration = format_duration(timer.elapsed_seconds)
        text_files = len(snapshot.text_files())
        print(
            f"Scan complete: {len(snapshot.flat_files):,} files "
            f"({text_files:,} text) in {duration}",
            file=sys.stderr,
        )

    def _print_progress(self, event: ScanProgress) -> None:
        current = event.current_relative_path
        if current:
            print(f"Scanning {current} ({event.processed_count:,} files)...", file=sys.stderr)
        else:
            print(f"Scanning... ({event.processed_count:,} files)", file=sys.stderr)


def format_duration(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    size_f = float(size)
    index = 0
    while size_f >= 1024 and index < len(units) - 1:
        size_f /= 1024
        index += 1
    decimals = 0 if size_f >= 10 or index == 0 else 1
    return f"{size_f:.{decimals}f} {units[index]}"
