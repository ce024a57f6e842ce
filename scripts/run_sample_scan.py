"""Scan the tokens in tokens.json over the fixed mainnet sample window.

Usage:
    PYTHONPATH=src python scripts/run_sample_scan.py
"""

import asyncio
import logging
import time

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

FROM_BLOCK = 17081000
TO_BLOCK = 17081327


async def main() -> None:
    from holderscan.config import Settings
    from holderscan.infra.blockchain.evm.rpc_client import open_rpc_client
    from holderscan.infra.inputs import load_transfer_schema, read_token_list
    from holderscan.parser.decoder import TransferDecoder
    from holderscan.report.holders import format_holder_line
    from holderscan.scan.service import HolderScanService

    settings = Settings()
    config = settings.scan_config().model_copy(update={"from_block": FROM_BLOCK, "to_block": TO_BLOCK})
    tokens = read_token_list(settings.token_list_path)
    decoder = TransferDecoder(load_transfer_schema(settings.abi_path))

    def source_factory():
        return open_rpc_client(settings.rpc_url, rate_per_second=settings.rpc_rate_per_second)

    service = HolderScanService(config, decoder, source_factory)
    print(f"RPC: {settings.rpc_url}  blocks: {FROM_BLOCK} -> {TO_BLOCK}  tokens: {len(tokens)}")

    t0 = time.time()
    results = await service.scan_all(tokens)
    for result in results:
        s = result.stats
        print(f"\nToken address: {result.token_address}")
        print(
            f"  {s.logs} logs, {s.transfers} transfers, {len(result.holders)} holders,"
            f" {s.negative_accounts} negative accounts"
        )
        for holder in result.holders:
            print(f"  {format_holder_line(holder)}")

    print(f"\nDone ({time.time() - t0:.1f}s).")


if __name__ == "__main__":
    asyncio.run(main())
