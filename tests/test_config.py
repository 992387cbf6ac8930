"""Tests for configuration."""

from source2prompt.config import READ_CEILING_BYTES, Config, ScannerConfig, StatsConfig


class TestConfig:
    """Tests for Config dataclass."""

    def test_defaults_share_read_ceiling(self):
        config = Config()
        assert config.scanner.read_ceiling_bytes == READ_CEILING_BYTES
        assert config.stats.read_ceiling_bytes == READ_CEILING_BYTES

    def test_stats_ceiling_follows_scanner(self):
        config = Config(scanner=ScannerConfig(read_ceiling_bytes=10))
        assert config.stats.read_ceiling_bytes == 10

    def test_scanner_ceiling_overrides_stats_value(self):
        config = Config(
            scanner=ScannerConfig(read_ceiling_bytes=10),
            stats=StatsConfig(read_ceiling_bytes=999, debounce_seconds=0),
        )
        assert config.stats.read_ceiling_bytes == 10
        assert config.stats.debounce_seconds == 0
