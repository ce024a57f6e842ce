"""Command line entry point.

Usage:
    holderscan --tokens tokens.json --abi Token.json --from-block 17081000 --to-block 17081327
"""

import argparse
import asyncio
import logging
import sys

from dependency_injector import providers

from holderscan.config import Settings
from holderscan.container import Container
from holderscan.domain.enums import OutputFormat, ScanStatus
from holderscan.exceptions import ConfigError, HolderScanError
from holderscan.report.holders import render

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SCAN_FAILED = 1
EXIT_CONFIG_ERROR = 2


def _block(value: str) -> int | str:
    if value == "latest":
        return value
    try:
        block = int(value, 0)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a block number: {value!r}") from e
    if block < 0:
        raise argparse.ArgumentTypeError(f"block number must be >= 0: {value}")
    return block


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="holderscan",
        description="Rebuild token holder balances by replaying Transfer logs over a block range.",
    )
    parser.add_argument("--tokens", dest="token_list_path", help="JSON file listing token addresses")
    parser.add_argument("--abi", dest="abi_path", help="Token ABI JSON (default: standard ERC-20 Transfer)")
    parser.add_argument("--rpc-url", dest="rpc_url", help="JSON-RPC endpoint")
    parser.add_argument("--from-block", dest="from_block", type=_block, help="First block, inclusive")
    parser.add_argument("--to-block", dest="to_block", type=_block, help="Last block, inclusive, or 'latest'")
    parser.add_argument("--decimals", type=int, help="Default token divisibility (10**decimals)")
    parser.add_argument("--chunk-size", dest="log_chunk_size", type=int, help="Blocks per eth_getLogs call")
    parser.add_argument(
        "--dedupe",
        dest="dedupe_events",
        action="store_const",
        const=True,
        help="Drop logs whose (tx hash, log index) was already applied",
    )
    parser.add_argument(
        "--continue-on-error",
        dest="continue_on_error",
        action="store_const",
        const=True,
        help="Keep scanning remaining tokens after one fails",
    )
    parser.add_argument("--concurrency", dest="max_concurrency", type=int, help="Tokens scanned in parallel")
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
    )
    parser.add_argument("--loglevel", dest="log_level", help="Sets the log level")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Settings (env / .env) with every flag that was given on the command line applied on top."""
    fields = set(Settings.model_fields)
    overrides = {k: v for k, v in vars(args).items() if k in fields and v is not None}
    try:
        base = base or Settings()
        return Settings.model_validate({**base.model_dump(), **overrides})
    except ValueError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def run(
    settings: Settings,
    output_format: OutputFormat = OutputFormat.TEXT,
    container: Container | None = None,
) -> int:
    container = container or Container()
    container.settings.override(providers.Object(settings))

    try:
        tokens = container.tokens()
        service = container.scan_service()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR

    try:
        results = asyncio.run(service.scan_all(tokens))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR
    except HolderScanError as e:
        logger.error("Scan aborted: %s", e)
        return EXIT_SCAN_FAILED

    print(render(results, output_format))

    failed = [r for r in results if r.status == ScanStatus.FAILED]
    if failed:
        logger.error("%d of %d token scans failed", len(failed), len(results))
        return EXIT_SCAN_FAILED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ConfigError as e:
        configure_logging("INFO")
        logger.error("%s", e)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)
    return run(settings, OutputFormat(args.output_format))


if __name__ == "__main__":
    sys.exit(main())
