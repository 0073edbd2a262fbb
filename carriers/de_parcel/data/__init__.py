"""
DE Parcel Data

Reference data and loaders for the rule table and package limits.

Structure:
    - reference/: Static reference data (limits, default.properties)
"""

from pathlib import Path

from shared.rules import RuleSet, load_rules

from .reference.limits import GIRTH_LIMIT_MM, MAX_WEIGHT_G


REFERENCE_DIR = Path(__file__).parent / "reference"
DEFAULT_RULES_FILE = REFERENCE_DIR / "default.properties"


def load_default_rules() -> RuleSet:
    """
    Load the default rule table.

    Returns:
        RuleSet with the five standard tiers (3.89 to 14.99 EUR), limits
        already in ascending order
    """
    return load_rules(DEFAULT_RULES_FILE)


__all__ = [
    "load_default_rules",
    "REFERENCE_DIR",
    "DEFAULT_RULES_FILE",
    "GIRTH_LIMIT_MM",
    "MAX_WEIGHT_G",
]
