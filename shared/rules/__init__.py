"""
Shared Rules

Rate rule model, configuration codec and rule store used by all carrier
calculators.
"""

from .errors import (
    RateError,
    InvalidPackageError,
    GirthExceededError,
    NoMatchingRuleError,
    ConfigFormatError,
    ConfigIOError,
)
from .models import Package, RateRule, RuleSet
from .codec import loads_rules, dumps_rules
from .store import (
    load_rules,
    persist_rules,
    normalize_and_order,
    check_rules,
    RuleStore,
    RuleWarning,
    RuleConsistencyWarning,
    MONOTONICITY,
    MISMATCHED_DIMENSIONS,
)

__all__ = [
    # Errors
    "RateError",
    "InvalidPackageError",
    "GirthExceededError",
    "NoMatchingRuleError",
    "ConfigFormatError",
    "ConfigIOError",
    # Model
    "Package",
    "RateRule",
    "RuleSet",
    # Codec
    "loads_rules",
    "dumps_rules",
    # Store
    "load_rules",
    "persist_rules",
    "normalize_and_order",
    "check_rules",
    "RuleStore",
    "RuleWarning",
    "RuleConsistencyWarning",
    "MONOTONICITY",
    "MISMATCHED_DIMENSIONS",
]
