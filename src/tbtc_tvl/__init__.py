"""tBTC TVL extraction, normalization and aggregation."""

__version__ = "0.1.0"
