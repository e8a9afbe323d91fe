from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator

from ..domain import Chain
from .base import Extractor


class ExtractorRegistry:
    """Read-only lookup of extractors by protocol name and by chain.

    Built once before a run; there is no API to add or remove entries
    afterwards, so concurrent lookups need no locking.
    """

    def __init__(self, extractors: Iterable[Extractor]):
        by_protocol: dict[str, Extractor] = {}
        for extractor in extractors:
            key = extractor.protocol_name.strip().casefold()
            if key in by_protocol:
                raise ValueError(
                    f"Duplicate extractor for protocol '{extractor.protocol_name}'"
                )
            by_protocol[key] = extractor
        self._by_protocol = MappingProxyType(by_protocol)

    def find_by_protocol(self, name: str) -> Extractor | None:
        """Case-insensitive lookup; ``None`` when no extractor matches."""
        return self._by_protocol.get(name.strip().casefold())

    def find_by_chain(self, chain: Chain) -> list[Extractor]:
        return [e for e in self._by_protocol.values() if e.can_extract(chain)]

    @property
    def protocols(self) -> list[str]:
        return [e.protocol_name for e in self._by_protocol.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_by_protocol(name) is not None

    def __iter__(self) -> Iterator[Extractor]:
        return iter(self._by_protocol.values())

    def __len__(self) -> int:
        return len(self._by_protocol)
