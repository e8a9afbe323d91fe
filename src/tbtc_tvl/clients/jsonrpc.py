"""JSON-RPC clients for the non-EVM chains (Starknet, Sui)."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

import requests
from web3 import Web3

from ..logger import TRACE, get_logger

logger = get_logger(__name__)

# Starknet selectors are the keccak of the entry point name truncated to 250 bits
STARKNET_SELECTOR_MASK = 2**250 - 1
U128_SHIFT = 128


class JsonRpcError(Exception):
    """The node answered with a JSON-RPC ``error`` object."""

    def __init__(self, method: str, code: Any, message: str):
        super().__init__(f"{method} failed with RPC error {code}: {message}")
        self.method = method
        self.code = code


class JsonRpcClient:
    def __init__(self, url: str, *, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self._ids = itertools.count(1)

    async def request(self, method: str, params: list[Any] | dict[str, Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.log(TRACE, "%s %s params=%s", self.url, method, params)
        response = await asyncio.to_thread(
            lambda: requests.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        )
        response.raise_for_status()
        body = response.json()

        error = body.get("error")
        if error:
            raise JsonRpcError(method, error.get("code"), error.get("message", ""))
        if "result" not in body:
            raise JsonRpcError(method, None, "response carries no result")
        return body["result"]


def starknet_selector(name: str) -> str:
    """Entry point selector for a Cairo function name, as a 0x-prefixed hex string."""
    digest = int.from_bytes(Web3.keccak(text=name), "big")
    return f"0x{digest & STARKNET_SELECTOR_MASK:064x}"


def decode_u256(felts: list[str]) -> int:
    """Combine a Cairo ``u256`` returned as ``[low, high]`` felts."""
    if len(felts) < 2:
        raise ValueError(f"expected a u256 as two felts, got {felts!r}")
    return int(felts[0], 16) + (int(felts[1], 16) << U128_SHIFT)


class StarknetClient(JsonRpcClient):
    async def call(
        self,
        contract_address: str,
        function_name: str,
        calldata: list[str] | None = None,
        *,
        block_id: str = "latest",
    ) -> list[str]:
        return await self.request(
            "starknet_call",
            [
                {
                    "contract_address": contract_address,
                    "entry_point_selector": starknet_selector(function_name),
                    "calldata": calldata or [],
                },
                block_id,
            ],
        )

    async def call_u256(
        self,
        contract_address: str,
        function_name: str,
        calldata: list[str] | None = None,
    ) -> int:
        return decode_u256(await self.call(contract_address, function_name, calldata))

    async def balance_of(self, token: str, account: str) -> int:
        """ERC-20 ``balance_of(account)`` on a Starknet token contract."""
        return await self.call_u256(token, "balance_of", [account])

    async def block_number(self) -> int:
        return int(await self.request("starknet_blockNumber", []))


class SuiClient(JsonRpcClient):
    async def get_object(
        self, object_id: str, *, show_content: bool = True, show_type: bool = False
    ) -> dict[str, Any]:
        return await self.request(
            "sui_getObject",
            [object_id, {"showContent": show_content, "showType": show_type}],
        )

    async def get_dynamic_fields(
        self, parent_id: str, cursor: str | None = None, limit: int = 50
    ) -> dict[str, Any]:
        """One page of dynamic fields: ``{"data", "hasNextPage", "nextCursor"}``."""
        return await self.request("suix_getDynamicFields", [parent_id, cursor, limit])

    async def multi_get_objects(
        self, object_ids: list[str], *, show_content: bool = True, show_type: bool = True
    ) -> list[dict[str, Any]]:
        if not object_ids:
            return []
        return await self.request(
            "sui_multiGetObjects",
            [object_ids, {"showContent": show_content, "showType": show_type}],
        )
