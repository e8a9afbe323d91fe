from __future__ import annotations

from .encoder import encode_run_report, encode_tvl_summary
from .formatter import print_summary
from .publisher import write_results, write_tvl_summary

__all__ = [
    "encode_run_report",
    "encode_tvl_summary",
    "print_summary",
    "write_results",
    "write_tvl_summary",
]
