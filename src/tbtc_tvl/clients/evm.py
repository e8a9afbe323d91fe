"""EVM JSON-RPC access through web3."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from eth_typing import URI
from web3 import Web3

from ..abi import ERC20_ABI
from ..logger import TRACE, get_logger

logger = get_logger(__name__)


class EvmClient:
    """Thin async facade over a synchronous web3 HTTP provider.

    Every call runs in a worker thread so the event loop keeps serving other
    extractions while a request is in flight.
    """

    def __init__(self, rpc_url: str, *, timeout: float = 10.0):
        self.rpc_url = rpc_url
        self.w3 = Web3(
            Web3.HTTPProvider(URI(rpc_url), request_kwargs={"timeout": timeout})
        )

    async def _run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(fn, *args, **kwargs)

    def contract(self, address: str, abi: list[dict]) -> Any:
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=abi
        )

    async def block_number(self) -> int:
        return await self._run(lambda: self.w3.eth.block_number)

    async def call(
        self,
        address: str,
        abi: list[dict],
        function_name: str,
        *args: Any,
        block_identifier: int | str = "latest",
    ) -> Any:
        """Call a view function and return its decoded output."""
        fn = self.contract(address, abi).get_function_by_name(function_name)(*args)
        logger.log(TRACE, "eth_call %s.%s%s", address, function_name, args)
        return await self._run(fn.call, block_identifier=block_identifier)

    async def balance_of(
        self,
        token: str,
        holder: str,
        *,
        block_identifier: int | str = "latest",
    ) -> int:
        """ERC-20 ``balanceOf(holder)`` in the token's native units."""
        balance = await self.call(
            token,
            ERC20_ABI,
            "balanceOf",
            Web3.to_checksum_address(holder),
            block_identifier=block_identifier,
        )
        return int(balance)
