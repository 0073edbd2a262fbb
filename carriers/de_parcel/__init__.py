"""
DE Parcel Calculator

Tiered parcel pricing from an ordered rule table (first matching tier wins).
"""

from .version import VERSION
from .calculate_costs import (
    resolve_price,
    quote,
    calculate_costs,
    supplement_shipments,
    calculate,
)

__all__ = [
    "VERSION",
    "resolve_price",
    "quote",
    "calculate_costs",
    "supplement_shipments",
    "calculate",
]
