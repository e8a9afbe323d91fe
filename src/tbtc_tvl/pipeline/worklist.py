"""Worklist loading and protocol/chain name normalization."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..constants import PROTOCOL_ALIASES, SKIP_PROTOCOLS
from ..domain import Chain


class WorklistError(Exception):
    """The worklist file is missing, unreadable, or malformed."""


class WorklistEntry(BaseModel):
    """One (protocol, chain) pair listed for measurement."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    protocol: str
    chain: str
    category: str = ""


_WORKLIST = TypeAdapter(list[WorklistEntry])


def load_worklist(path: Path) -> list[WorklistEntry]:
    """Read a JSON array of ``{protocol, chain, category, ...}`` objects.

    Raises:
        WorklistError: If the file cannot be read or does not validate.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise WorklistError(f"Cannot read worklist {path}: {exc}") from exc

    try:
        return _WORKLIST.validate_json(raw)
    except ValidationError as exc:
        raise WorklistError(f"Invalid worklist {path}: {exc}") from exc


def normalize_chain_name(raw: str) -> Chain | None:
    """Map a display name such as "Ethereum" to a Chain; None if unknown."""
    try:
        return Chain(raw.strip().lower())
    except ValueError:
        return None


def normalize_protocol_name(raw: str) -> str:
    """Resolve worklist aliases ("aave" -> "Aave V3"); other names pass through."""
    name = raw.strip()
    return PROTOCOL_ALIASES.get(name.lower(), name)


def skip_reason(
    protocol: str,
    chain: str,
    skip_list: Mapping[str, Mapping[str, str]] = SKIP_PROTOCOLS,
) -> str | None:
    """Reason a (protocol, chain) pair is never attempted, matched case-insensitively."""
    wanted_protocol = protocol.strip().casefold()
    wanted_chain = chain.strip().casefold()
    for listed_protocol, chains in skip_list.items():
        if listed_protocol.casefold() != wanted_protocol:
            continue
        for listed_chain, reason in chains.items():
            if listed_chain.casefold() == wanted_chain:
                return reason
    return None

