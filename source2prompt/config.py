"""Configuration module for source2prompt."""

from dataclasses import dataclass, field

MAX_CONCURRENT_OPS = 64
READ_CEILING_BYTES = 5 * 1024 * 1024
INCLUDE_CEILING_BYTES = 25 * 1024 * 1024
IGNORE_FILENAME = ".gitignore"


@dataclass
class ScannerConfig:
    max_concurrent_ops: int = MAX_CONCURRENT_OPS
    read_ceiling_bytes: int = READ_CEILING_BYTES
    include_ceiling_bytes: int = INCLUDE_CEILING_BYTES
    ignore_filename: str = IGNORE_FILENAME
    progress_interval: int = 1000


@dataclass
class StatsConfig:
    debounce_seconds: float = 0.25
    yield_every: int = 3
    publish_every: int = 5
    read_ceiling_bytes: int = READ_CEILING_BYTES


@dataclass
class Config:
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    tokenizer: str = "tiktoken"
    context_window: int = 128_000
    cost_per_1m_tokens: float = 5.0

    def __post_init__(self) -> None:
        # Stats must tier files exactly as the scanner read them.
        self.stats.read_ceiling_bytes = self.scanner.read_ceiling_bytes
