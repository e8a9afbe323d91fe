"""Container for every external data source an extractor may use."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from ..domain import Chain
from ..settings import TvlSettings
from .evm import EvmClient
from .http import HttpClient
from .jsonrpc import StarknetClient, SuiClient
from .subgraph import SubgraphClient


@dataclass
class DataSources:
    """Clients built once per run and shared by all extractors.

    Extractors receive this instead of settings-derived URLs so tests can
    swap in fakes at a single seam.
    """

    subgraph: SubgraphClient
    http: HttpClient
    starknet: StarknetClient
    sui: SuiClient
    evm: Mapping[Chain, EvmClient] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: TvlSettings) -> "DataSources":
        timeout = settings.request_timeout
        api_key = (
            settings.thegraph_api_key.get_secret_value()
            if settings.thegraph_api_key
            else None
        )
        return cls(
            subgraph=SubgraphClient(api_key, timeout=timeout),
            http=HttpClient(timeout=timeout),
            starknet=StarknetClient(settings.rpc_url(Chain.STARKNET), timeout=timeout),
            sui=SuiClient(settings.rpc_url(Chain.SUI), timeout=timeout),
            evm={
                chain: EvmClient(settings.rpc_url(chain), timeout=timeout)
                for chain in Chain
                if chain.is_evm
            },
        )

    def evm_for(self, chain: Chain) -> EvmClient:
        try:
            return self.evm[chain]
        except KeyError:
            raise ValueError(f"No EVM client configured for {chain.value}") from None
