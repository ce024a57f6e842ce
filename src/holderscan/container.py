from dependency_injector import containers, providers

from holderscan.config import Settings
from holderscan.infra.blockchain.evm.rpc_client import open_rpc_client
from holderscan.infra.inputs import load_transfer_schema, read_token_list
from holderscan.parser.decoder import TransferDecoder
from holderscan.scan.service import HolderScanService


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings)

    scan_config = settings.provided.scan_config.call()

    transfer_schema = providers.Singleton(
        load_transfer_schema,
        abi_path=settings.provided.abi_path,
    )

    decoder = providers.Singleton(TransferDecoder, schema=transfer_schema)

    tokens = providers.Singleton(read_token_list, path=settings.provided.token_list_path)

    # each call opens a fresh client + connection pool
    log_source = providers.Factory(
        open_rpc_client,
        rpc_url=settings.provided.rpc_url,
        rate_per_second=settings.provided.rpc_rate_per_second,
        timeout=settings.provided.rpc_timeout,
        chunk_size=settings.provided.log_chunk_size,
    )

    scan_service = providers.Factory(
        HolderScanService,
        config=scan_config,
        decoder=decoder,
        source_factory=log_source.provider,
        continue_on_error=settings.provided.continue_on_error,
        max_concurrency=settings.provided.max_concurrency,
    )
