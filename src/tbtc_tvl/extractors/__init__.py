from __future__ import annotations

from ..clients.sources import DataSources
from ..settings import TvlSettings
from .aave import AaveExtractor
from .aerodrome import AerodromeExtractor
from .alphalend import AlphaLendExtractor
from .base import BaseExtractor, Extractor, UnsupportedChain
from .bucket import BucketExtractor
from .compound import CompoundExtractor
from .curve import CurveExtractor
from .ekubo import EkuboExtractor
from .ember import EmberExtractor
from .endur import EndurExtractor
from .gearbox import GearboxExtractor
from .registry import ExtractorRegistry
from .retrying import RetryingExtractor
from .spark import SparkExtractor
from .uniswap import UniswapExtractor
from .velodrome import VelodromeExtractor
from .vesu import VesuExtractor
from .yield_basis import YieldBasisExtractor

EXTRACTOR_CLASSES: tuple[type[BaseExtractor], ...] = (
    # EVM
    AaveExtractor,
    UniswapExtractor,
    CurveExtractor,
    CompoundExtractor,
    SparkExtractor,
    AerodromeExtractor,
    VelodromeExtractor,
    YieldBasisExtractor,
    GearboxExtractor,
    # Starknet
    VesuExtractor,
    EndurExtractor,
    EkuboExtractor,
    # Sui
    AlphaLendExtractor,
    BucketExtractor,
    EmberExtractor,
)


def get_extractor_class(protocol_name: str) -> type[BaseExtractor]:
    """Get extractor class by protocol name.

    Args:
        protocol_name: Protocol name (case-insensitive)

    Returns:
        Extractor class

    Raises:
        ValueError: If protocol_name is not recognized
    """
    wanted = protocol_name.strip().casefold()
    for cls in EXTRACTOR_CLASSES:
        if cls.protocol_name.casefold() == wanted:
            return cls
    raise ValueError(
        f"Unknown protocol '{protocol_name}'. "
        f"Available: {', '.join(cls.protocol_name for cls in EXTRACTOR_CLASSES)}"
    )


def create_extractors(
    settings: TvlSettings, sources: DataSources
) -> list[RetryingExtractor]:
    """Instantiate every extractor, each wrapped with the run's retry policy."""
    policy = settings.retry_policy
    return [
        RetryingExtractor(cls(settings, sources), policy) for cls in EXTRACTOR_CLASSES
    ]


def build_registry(settings: TvlSettings, sources: DataSources) -> ExtractorRegistry:
    return ExtractorRegistry(create_extractors(settings, sources))


__all__ = [
    "EXTRACTOR_CLASSES",
    "BaseExtractor",
    "Extractor",
    "ExtractorRegistry",
    "RetryingExtractor",
    "UnsupportedChain",
    "build_registry",
    "create_extractors",
    "get_extractor_class",
]
