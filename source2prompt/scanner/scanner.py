"""Main scanner implementation."""

import logging
from pathlib import Path

from source2prompt.config import ScannerConfig
from source2prompt.scanner.filesystem import DirectoryWalker, ProgressCallback
from source2prompt.scanner.gate import ConcurrencyGate
from source2prompt.scanner.models import ScanProgress, ScanSnapshot
from source2prompt.scanner.progress import ScanTimer, format_duration

logger = logging.getLogger(__name__)


class Scanner:
    """Scans project trees and publishes the most recent snapshot.

    Starting a new scan supersedes any scan still in flight: the older walk
    runs to completion but its progress events and final snapshot are
    dropped.
    """

    def __init__(
        self,
        config: ScannerConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.config = config or ScannerConfig()
        self.on_progress = on_progress
        self.gate = ConcurrencyGate(self.config.max_concurrent_ops)
        self.scan_id = 0
        self._snapshot: ScanSnapshot | None = None
        self._root_dir: Path | None = None

    @property
    def snapshot(self) -> ScanSnapshot | None:
        return self._snapshot

    @property
    def root_dir(self) -> Path | None:
        return self._root_dir

    def is_current(self, scan_id: int) -> bool:
        return scan_id == self.scan_id

    async def scan(self, root_dir: str | Path) -> ScanSnapshot | None:
        """Walk ``root_dir``; return the snapshot, or None if superseded."""
        source_root = Path(root_dir).expanduser().resolve()
        self.scan_id += 1
        scan_id = self.scan_id
        timer = ScanTimer()

        logger.info("Starting scan %d of %s", scan_id, source_root)

        def forward_progress(event: ScanProgress) -> None:
            if self.on_progress is not None and self.is_current(scan_id):
                self.on_progress(event)

        walker = DirectoryWalker(
            self.gate,
            read_ceiling=self.config.read_ceiling_bytes,
            ignore_filename=self.config.ignore_filename,
            on_progress=forward_progress,
        )
        snapshot = await walker.walk(source_root)

        if not self.is_current(scan_id):
            logger.debug("Discarding superseded scan %d of %s", scan_id, source_root)
            return None

        self._snapshot = snapshot
        self._root_dir = source_root
        logger.info(
            "Scanned %d files from %s in %s",
            len(snapshot.flat_files),
            source_root,
            format_duration(timer.elapsed_seconds),
        )
        return snapshot
