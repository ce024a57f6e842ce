"""Tests for Settings and ScanConfig."""

import pytest
from pydantic import ValidationError

from holderscan.config import DEFAULT_FROM_BLOCK, DEFAULT_TO_BLOCK, ScanConfig, Settings
from holderscan.exceptions import ConfigError


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HOLDERSCAN_FROM_BLOCK", raising=False)
        monkeypatch.delenv("HOLDERSCAN_TO_BLOCK", raising=False)
        s = Settings(_env_file=None)
        assert s.from_block == DEFAULT_FROM_BLOCK
        assert s.to_block == DEFAULT_TO_BLOCK
        assert s.decimals == 18
        assert s.abi_path is None
        assert s.continue_on_error is False

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("HOLDERSCAN_RPC_URL", "http://localhost:8545")
        monkeypatch.setenv("HOLDERSCAN_FROM_BLOCK", "100")
        monkeypatch.setenv("HOLDERSCAN_TO_BLOCK", "latest")
        monkeypatch.setenv("HOLDERSCAN_DEDUPE_EVENTS", "true")

        s = Settings(_env_file=None)
        assert s.rpc_url == "http://localhost:8545"
        assert s.from_block == 100
        assert s.to_block == "latest"
        assert s.dedupe_events is True

    def test_numeric_to_block_from_env(self, monkeypatch):
        monkeypatch.setenv("HOLDERSCAN_TO_BLOCK", "200")
        assert Settings(_env_file=None).to_block == 200

    def test_scan_config(self):
        s = Settings(_env_file=None, rpc_url="http://node", from_block=10, to_block=20, decimals=6)
        config = s.scan_config()
        assert config.rpc_url == "http://node"
        assert (config.from_block, config.to_block) == (10, 20)
        assert config.decimals == 6

    def test_scan_config_rejects_inverted_range(self):
        s = Settings(_env_file=None, from_block=20, to_block=10)
        with pytest.raises(ConfigError, match="before from_block"):
            s.scan_config()


class TestScanConfig:
    def test_latest_allowed(self):
        config = ScanConfig(rpc_url="http://node", from_block=5, to_block="latest")
        assert config.to_block == "latest"

    def test_single_block_range(self):
        config = ScanConfig(rpc_url="http://node", from_block=5, to_block=5)
        assert config.from_block == config.to_block

    def test_negative_from_block(self):
        with pytest.raises(ValidationError):
            ScanConfig(rpc_url="http://node", from_block=-1, to_block=5)

    def test_zero_chunk_size(self):
        with pytest.raises(ValidationError):
            ScanConfig(rpc_url="http://node", from_block=0, to_block=5, log_chunk_size=0)

    def test_is_frozen(self):
        config = ScanConfig(rpc_url="http://node", from_block=0, to_block=5)
        with pytest.raises(ValidationError):
            config.from_block = 3
