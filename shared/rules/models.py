"""
Rule Model

Value types shared by the rule store and the carrier calculators.

    Package  - one parcel to price (mm / g)
    RateRule - one price tier: three dimension limits, a weight limit, a price
    RuleSet  - ordered, immutable sequence of RateRule (first match wins)
"""

from dataclasses import dataclass
from decimal import Decimal

import polars as pl

from .errors import InvalidPackageError


# =============================================================================
# PACKAGE
# =============================================================================

@dataclass(frozen=True)
class Package:
    """
    A parcel to be priced.

    Attributes:
        length - millimeters
        width  - millimeters
        height - millimeters
        weight - grams

    All four fields must be positive integers. Checked on construction.
    """

    length: int
    width: int
    height: int
    weight: int

    def __post_init__(self):
        for field in ("length", "width", "height", "weight"):
            value = getattr(self, field)
            # bool is an int subclass but never a measurement
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidPackageError(
                    f"Package {field} must be an integer, got {value!r}"
                )
            if value <= 0:
                raise InvalidPackageError(
                    f"Package {field} must be positive, got {value}"
                )

    @property
    def girth(self) -> int:
        """Length + 2 * width + 2 * height, in millimeters."""
        return self.length + 2 * self.width + 2 * self.height


# =============================================================================
# RATE RULE
# =============================================================================

@dataclass(frozen=True)
class RateRule:
    """
    One price tier.

    The three dimension limits are read positionally against a package's
    ascending dimensions. Price is returned verbatim and never validated.
    """

    length_limit: int
    width_limit: int
    height_limit: int
    weight_limit: int
    price: Decimal

    @property
    def dimensions(self) -> tuple[int, int, int]:
        return (self.length_limit, self.width_limit, self.height_limit)

    def normalized(self) -> "RateRule":
        """Copy with the three dimension limits sorted ascending."""
        d0, d1, d2 = sorted(self.dimensions)
        return RateRule(d0, d1, d2, self.weight_limit, self.price)

    def sort_key(self) -> tuple[int, int, int, int]:
        return (*self.dimensions, self.weight_limit)

    def covers(self, dims: tuple[int, int, int], weight: int) -> bool:
        """True if ascending dims and weight are all within limits (inclusive)."""
        d0, d1, d2 = dims
        return (
            d0 <= self.length_limit and
            d1 <= self.width_limit and
            d2 <= self.height_limit and
            weight <= self.weight_limit
        )


# =============================================================================
# RULE SET
# =============================================================================

class RuleSet:
    """
    Ordered, immutable collection of rate rules.

    Editing methods return a new RuleSet. Holders swap their reference to
    the new value instead of changing a set that readers may be using.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules=()):
        self._rules = tuple(rules)

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> RateRule:
        return self._rules[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RuleSet):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({list(self._rules)!r})"

    @property
    def rules(self) -> tuple[RateRule, ...]:
        return self._rules

    # -------------------------------------------------------------------------
    # EDITING
    # -------------------------------------------------------------------------

    def append(self, rule: RateRule) -> "RuleSet":
        return RuleSet(self._rules + (rule,))

    def replace(self, index: int, rule: RateRule) -> "RuleSet":
        self._check_index(index)
        rules = list(self._rules)
        rules[index] = rule
        return RuleSet(rules)

    def remove(self, index: int) -> "RuleSet":
        self._check_index(index)
        rules = list(self._rules)
        del rules[index]
        return RuleSet(rules)

    def _check_index(self, index: int) -> None:
        # Negative indices would silently address rules from the end
        if not 0 <= index < len(self._rules):
            raise IndexError(f"No rule at index {index}")

    # -------------------------------------------------------------------------
    # EXPORT
    # -------------------------------------------------------------------------

    def to_frame(self) -> pl.DataFrame:
        """
        Rules as a DataFrame, one row per rule in stored order.

        Returns:
            DataFrame with columns:
                - rule_index: Position in the rule set (0-based)
                - length_limit, width_limit, height_limit: mm
                - weight_limit: g
                - price: Tier price (Float64)
        """
        return pl.DataFrame(
            {
                "rule_index": list(range(len(self._rules))),
                "length_limit": [r.length_limit for r in self._rules],
                "width_limit": [r.width_limit for r in self._rules],
                "height_limit": [r.height_limit for r in self._rules],
                "weight_limit": [r.weight_limit for r in self._rules],
                "price": [float(r.price) for r in self._rules],
            },
            schema={
                "rule_index": pl.Int64,
                "length_limit": pl.Int64,
                "width_limit": pl.Int64,
                "height_limit": pl.Int64,
                "weight_limit": pl.Int64,
                "price": pl.Float64,
            },
        )
