"""Static reference data: limits and the default rule table."""

from .limits import GIRTH_LIMIT_MM, MAX_WEIGHT_G

__all__ = [
    "GIRTH_LIMIT_MM",
    "MAX_WEIGHT_G",
]
