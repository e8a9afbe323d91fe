"""Domain models for TVL extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Mapping


class Chain(str, Enum):
    ETHEREUM = "ethereum"
    ARBITRUM = "arbitrum"
    BASE = "base"
    OPTIMISM = "optimism"
    STARKNET = "starknet"
    SUI = "sui"

    @property
    def is_evm(self) -> bool:
        return self in EVM_CHAINS


EVM_CHAINS: frozenset[Chain] = frozenset(
    {Chain.ETHEREUM, Chain.ARBITRUM, Chain.BASE, Chain.OPTIMISM}
)


class ExtractionSource(str, Enum):
    """Kind of data source that produced a measurement."""

    SUBGRAPH = "subgraph"
    API = "api"
    RPC = "rpc"


@dataclass(frozen=True)
class Provenance:
    """Where a measurement came from."""

    source: ExtractionSource
    endpoint: str | None = None
    endpoints: tuple[str, ...] = ()
    pool_count: int | None = None  # holders consolidated (pools, vaults, markets)


@dataclass(frozen=True)
class ExtractionResult:
    """One protocol's tBTC TVL on one chain, in 18-decimal units."""

    protocol: str
    chain: Chain
    amount: int
    observed_at: datetime
    provenance: Provenance
    amount_usd: int | None = None
    block_number: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(
                f"amount must be an int, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValueError(
                f"amount must be non-negative ({self.protocol} on {self.chain.value}: {self.amount})"
            )


@dataclass(frozen=True)
class ChainAggregate:
    """Per-chain rollup of measurements.

    The total is derived from the members on every access.
    """

    chain: Chain
    measurements: tuple[ExtractionResult, ...] = ()

    @property
    def total_amount(self) -> int:
        return sum((m.amount for m in self.measurements), 0)


ValidationLevel = Literal["warning", "error"]


@dataclass(frozen=True)
class ValidationIssue:
    level: ValidationLevel
    message: str
    protocol: str | None = None
    chain: Chain | None = None
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of the business-rule checks over a set of measurements."""

    passed: bool
    warnings: tuple[ValidationIssue, ...]
    errors: tuple[ValidationIssue, ...]
    total_checks: int
    passed_checks: int

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass(frozen=True)
class RunSummary:
    total_amount: int
    success_rate: float
    protocol_count: int
    chain_count: int


@dataclass(frozen=True)
class RunReport:
    """Aggregated result of one extraction run."""

    run_id: str
    generated_at: datetime
    version: str
    chains: Mapping[Chain, ChainAggregate]
    summary: RunSummary
    validation: ValidationReport | None = None


__all__ = [
    "Chain",
    "ChainAggregate",
    "EVM_CHAINS",
    "ExtractionResult",
    "ExtractionSource",
    "Provenance",
    "RunReport",
    "RunSummary",
    "ValidationIssue",
    "ValidationLevel",
    "ValidationReport",
]
