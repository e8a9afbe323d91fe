"""Minimal contract ABIs used by the on-chain extractors."""

from __future__ import annotations


def _view(name: str, inputs: list[str], outputs: list[str]) -> dict:
    return {
        "inputs": [{"internalType": t, "name": "", "type": t} for t in inputs],
        "name": name,
        "outputs": [{"internalType": t, "name": "", "type": t} for t in outputs],
        "stateMutability": "view",
        "type": "function",
    }


ERC20_ABI: list[dict] = [
    _view("balanceOf", ["address"], ["uint256"]),
    _view("totalSupply", [], ["uint256"]),
    _view("decimals", [], ["uint8"]),
]

ERC4626_ABI: list[dict] = [
    _view("totalAssets", [], ["uint256"]),
]

YIELD_BASIS_FACTORY_ABI: list[dict] = [
    _view("market_count", [], ["uint256"]),
    # (asset, cryptopool, amm, vault, A, fee)
    _view(
        "markets",
        ["uint256"],
        ["address", "address", "address", "address", "uint256", "uint256"],
    ),
]

CURVE_CRYPTOPOOL_ABI: list[dict] = [
    _view("coins", ["uint256"], ["address"]),
    _view("balances", ["uint256"], ["uint256"]),
    _view("balanceOf", ["address"], ["uint256"]),
    _view("totalSupply", [], ["uint256"]),
]
