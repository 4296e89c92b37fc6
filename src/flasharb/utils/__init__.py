"""Utility functions for the flash arbitrage scanner."""

from flasharb.utils.formatters import (
    format_currency,
    format_number,
    format_percentage,
    shorten_address,
)
from flasharb.utils.time import format_age, format_timestamp_ms, get_timestamp_ms


__all__ = [
    "format_age",
    "format_currency",
    "format_number",
    "format_percentage",
    "format_timestamp_ms",
    "get_timestamp_ms",
    "shorten_address",
]
