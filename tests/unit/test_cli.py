"""Tests for the command line entry point."""

import argparse
import json
from contextlib import asynccontextmanager

import pytest
from dependency_injector import providers
from eth_utils import to_checksum_address

from holderscan.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_SCAN_FAILED,
    _block,
    build_parser,
    main,
    run,
    settings_from_args,
)
from holderscan.config import Settings
from holderscan.container import Container
from holderscan.domain.enums import OutputFormat
from holderscan.exceptions import ExternalServiceError
from holderscan.infra.blockchain.base import LogSource

DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
ZERO = "0x" + "00" * 20
HOLDER = to_checksum_address("0x" + "ab" * 20)


class StaticLogSource(LogSource):
    def __init__(self, logs) -> None:
        self._logs = logs

    async def get_logs(self, address, from_block, to_block, topics=None):
        if isinstance(self._logs, Exception):
            raise self._logs
        return self._logs

    async def get_block_number(self):
        return 2


def _container_with(logs) -> Container:
    @asynccontextmanager
    async def _open():
        yield StaticLogSource(logs)

    container = Container()
    container.log_source.override(providers.Factory(_open))
    return container


@pytest.fixture()
def tokens_file(tmp_path):
    path = tmp_path / "tokens.json"
    path.write_text(json.dumps([DAI]))
    return str(path)


def _settings(tokens_file: str, **overrides) -> Settings:
    return Settings(_env_file=None, token_list_path=tokens_file, from_block=1, to_block=2, **overrides)


class TestArgs:
    def test_block_parser(self):
        assert _block("17081000") == 17081000
        assert _block("0x10") == 16
        assert _block("latest") == "latest"
        with pytest.raises(argparse.ArgumentTypeError):
            _block("yesterday")
        with pytest.raises(argparse.ArgumentTypeError):
            _block("-1")

    def test_flags_override_settings(self):
        args = build_parser().parse_args(
            ["--from-block", "100", "--to-block", "latest", "--dedupe", "--concurrency", "4", "--tokens", "t.json"]
        )
        s = settings_from_args(args, base=Settings(_env_file=None, decimals=6))

        assert s.from_block == 100
        assert s.to_block == "latest"
        assert s.dedupe_events is True
        assert s.max_concurrency == 4
        assert s.token_list_path == "t.json"
        assert s.decimals == 6  # untouched flag keeps the base value

    def test_unset_flags_keep_base(self):
        args = build_parser().parse_args([])
        s = settings_from_args(args, base=Settings(_env_file=None, continue_on_error=True))
        assert s.continue_on_error is True
        assert args.output_format == OutputFormat.TEXT.value


class TestRun:
    def test_prints_holders(self, tokens_file, make_log, capsys):
        container = _container_with([make_log(ZERO, HOLDER, 123456789012345678)])

        code = run(_settings(tokens_file), container=container)
        out = capsys.readouterr().out.splitlines()

        assert code == EXIT_OK
        assert out == [
            f"Token address: {DAI}",
            f"Address: {HOLDER}, Balance: 0.123456789012345678",
        ]

    def test_json_output(self, tokens_file, make_log, capsys):
        container = _container_with([make_log(ZERO, HOLDER, 5)])

        code = run(_settings(tokens_file), OutputFormat.JSON, container=container)
        payload = json.loads(capsys.readouterr().out)

        assert code == EXIT_OK
        assert payload[0]["holders"][0]["balance"] == "5"

    def test_scan_failure_exit_code(self, tokens_file):
        container = _container_with(ExternalServiceError("node down"))
        assert run(_settings(tokens_file), container=container) == EXIT_SCAN_FAILED

    def test_continue_on_error_still_reports_failure(self, tokens_file, capsys):
        container = _container_with(ExternalServiceError("node down"))

        code = run(_settings(tokens_file, continue_on_error=True), container=container)
        assert code == EXIT_SCAN_FAILED
        assert "Scan failed: node down" in capsys.readouterr().out

    def test_missing_token_list(self, tmp_path):
        settings = _settings(str(tmp_path / "missing.json"))
        assert run(settings, container=_container_with([])) == EXIT_CONFIG_ERROR

    def test_inverted_range(self, tokens_file):
        settings = Settings(_env_file=None, token_list_path=tokens_file, from_block=10, to_block=5)
        assert run(settings, container=_container_with([])) == EXIT_CONFIG_ERROR

    def test_bad_abi_file(self, tokens_file, tmp_path):
        abi = tmp_path / "Token.json"
        abi.write_text("[]")
        settings = _settings(tokens_file, abi_path=str(abi))
        assert run(settings, container=_container_with([])) == EXIT_CONFIG_ERROR


class TestMain:
    def test_missing_token_list(self, tmp_path):
        assert main(["--tokens", str(tmp_path / "missing.json"), "--loglevel", "ERROR"]) == EXIT_CONFIG_ERROR

    def test_bad_env_value(self, tokens_file, monkeypatch):
        monkeypatch.setenv("HOLDERSCAN_FROM_BLOCK", "abc")
        assert main(["--tokens", tokens_file]) == EXIT_CONFIG_ERROR

    def test_config_module_builds_no_settings_on_import(self):
        import holderscan.config

        assert not hasattr(holderscan.config, "settings")
