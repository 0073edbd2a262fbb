"""
DE Parcel Cost Calculator

Tiered pricing: a package gets the price of the FIRST rule in the rule set
whose limits it fits. Rule order is significant; the resolver never reorders
rules (see shared.rules.normalize_and_order for the editing-time step).

Two entry points:

    resolve_price(package, rule_set)    - one Package -> Decimal price
    calculate_costs(df, rule_set)       - DataFrame in, DataFrame out

REQUIRED INPUT COLUMNS (calculate_costs)
----------------------------------------
    length_mm           - Package length in millimeters
    width_mm            - Package width in millimeters
    height_mm           - Package height in millimeters
    weight_g            - Package weight in grams

OUTPUT COLUMNS ADDED
--------------------
    supplement_shipments() adds:
        - girth_mm
        - dim_short_mm, dim_mid_mm, dim_long_mm (dimensions sorted ascending)

    calculate() adds:
        - invalid_package, girth_exceeded (flags)
        - rule_index (first matching rule, null if none)
        - cost_base (price of the matching rule, null if none)
        - status ("ok", "invalid_package", "girth_exceeded", "no_matching_rule")
        - calculator_version

USAGE
-----
    from carriers.de_parcel.calculate_costs import calculate_costs
    result = calculate_costs(df)
"""

from decimal import Decimal

import polars as pl

from shared.rules import (
    Package,
    RuleSet,
    InvalidPackageError,
    GirthExceededError,
    NoMatchingRuleError,
)
from .version import VERSION
from .data import load_default_rules, GIRTH_LIMIT_MM


DIMENSION_COLUMNS = ["length_mm", "width_mm", "height_mm"]
MEASUREMENT_COLUMNS = DIMENSION_COLUMNS + ["weight_g"]

STATUS_OK = "ok"
STATUS_INVALID = "invalid_package"
STATUS_GIRTH = "girth_exceeded"
STATUS_NO_RULE = "no_matching_rule"


# =============================================================================
# SINGLE PACKAGE
# =============================================================================

def resolve_price(
    package: Package,
    rule_set: RuleSet,
    girth_limit: int = GIRTH_LIMIT_MM
) -> Decimal:
    """
    Price a single package against an ordered rule set.

    Steps:
        1. Validate: length, width, height, weight all > 0
        2. Girth (length + 2*width + 2*height) must be <= girth_limit
        3. Sort dimensions ascending (d0 <= d1 <= d2)
        4. Return the price of the first rule with d0 <= length_limit,
           d1 <= width_limit, d2 <= height_limit, weight <= weight_limit

    Args:
        package: Package to price (mm / g)
        rule_set: Ordered rules, limits already ascending
        girth_limit: Maximum girth in millimeters (inclusive)

    Returns:
        Price of the matching rule, returned verbatim

    Raises:
        InvalidPackageError: A measurement is not positive
        GirthExceededError: Girth over girth_limit
        NoMatchingRuleError: No rule covers the package
    """
    measurements = (package.length, package.width, package.height, package.weight)
    if any(m <= 0 for m in measurements):
        raise InvalidPackageError(
            f"All dimensions and weight must be positive, got {measurements}"
        )

    girth = package.length + 2 * package.width + 2 * package.height
    if girth > girth_limit:
        raise GirthExceededError(
            f"Girth {girth} mm exceeds the limit of {girth_limit} mm"
        )

    dims = tuple(sorted((package.length, package.width, package.height)))
    for rule in rule_set:
        if rule.covers(dims, package.weight):
            return rule.price

    raise NoMatchingRuleError(
        f"No rule covers {'x'.join(str(d) for d in dims)} mm, "
        f"{package.weight} g ({len(rule_set)} rule(s) checked)"
    )


def quote(
    length: int,
    width: int,
    height: int,
    weight: int,
    rule_set: RuleSet | None = None
) -> Decimal:
    """Price from raw measurements. Uses the default rule table if none given."""
    if rule_set is None:
        rule_set = load_default_rules()
    return resolve_price(Package(length, width, height, weight), rule_set)


# =============================================================================
# MAIN ENTRY POINT (BATCH)
# =============================================================================

def calculate_costs(
    df: pl.DataFrame,
    rule_set: RuleSet | None = None,
    strict: bool = True,
    girth_limit: int = GIRTH_LIMIT_MM
) -> pl.DataFrame:
    """
    Calculate tier prices for a package DataFrame.

    Args:
        df: Package DataFrame with required columns (see module docstring)
        rule_set: Ordered rules (default table loaded if not provided)
        strict: Raise if any row could not be priced
        girth_limit: Maximum girth in millimeters (inclusive)

    Returns:
        DataFrame with supplemented data, flags, rule_index and cost_base

    Raises:
        InvalidPackageError, GirthExceededError, NoMatchingRuleError:
            Only with strict=True, for the first failing category
    """
    if rule_set is None:
        rule_set = load_default_rules()

    df = supplement_shipments(df)
    df = calculate(df, rule_set, girth_limit)

    if strict:
        _raise_unresolved(df, girth_limit)

    return df


# =============================================================================
# SUPPLEMENT SHIPMENTS
# =============================================================================

def supplement_shipments(df: pl.DataFrame) -> pl.DataFrame:
    """
    Add girth and axis-independent (sorted) dimensions.

    Girth uses the package's own length/width/height fields, not the
    sorted dimensions.
    """
    sorted_dims = pl.concat_list(DIMENSION_COLUMNS).list.sort()

    return df.with_columns([
        (
            pl.col("length_mm") + 2 * pl.col("width_mm") + 2 * pl.col("height_mm")
        ).alias("girth_mm"),

        sorted_dims.list.get(0).alias("dim_short_mm"),
        sorted_dims.list.get(1).alias("dim_mid_mm"),
        sorted_dims.list.get(2).alias("dim_long_mm"),
    ])


# =============================================================================
# CALCULATE
# =============================================================================

def calculate(
    df: pl.DataFrame,
    rule_set: RuleSet,
    girth_limit: int = GIRTH_LIMIT_MM
) -> pl.DataFrame:
    """
    Match supplemented packages against the rule set.

    Processing order:
        1. Validity flags   - invalid_package, girth_exceeded
        2. Rule matching    - first rule whose limits fit (rule_index)
        3. Price lookup     - cost_base from the matched rule
        4. Status, version
    """
    df = _flag_invalid(df)
    df = _flag_girth(df, girth_limit)
    df = _match_rules(df, rule_set)
    df = _lookup_price(df, rule_set)
    df = _add_status(df)
    df = _stamp_version(df)
    return df


def _flag_invalid(df: pl.DataFrame) -> pl.DataFrame:
    """Missing or non-positive measurement."""
    return df.with_columns(
        pl.any_horizontal([
            pl.col(c).is_null() | (pl.col(c) <= 0) for c in MEASUREMENT_COLUMNS
        ]).alias("invalid_package")
    )


def _flag_girth(df: pl.DataFrame, girth_limit: int) -> pl.DataFrame:
    """Girth over limit (only for otherwise valid packages)."""
    return df.with_columns(
        (
            (pl.col("girth_mm") > girth_limit).fill_null(False) &
            ~pl.col("invalid_package")
        ).alias("girth_exceeded")
    )


def _match_rules(df: pl.DataFrame, rule_set: RuleSet) -> pl.DataFrame:
    """
    First-fit rule matching.

    Builds one when/then chain in rule order; the first true branch wins,
    so an earlier rule always shadows a later one that also fits.
    """
    eligible = ~pl.col("invalid_package") & ~pl.col("girth_exceeded")

    if len(rule_set) == 0:
        return df.with_columns(pl.lit(None, dtype=pl.Int64).alias("rule_index"))

    chain = None
    for index, rule in enumerate(rule_set):
        fits = (
            eligible &
            (pl.col("dim_short_mm") <= rule.length_limit) &
            (pl.col("dim_mid_mm") <= rule.width_limit) &
            (pl.col("dim_long_mm") <= rule.height_limit) &
            (pl.col("weight_g") <= rule.weight_limit)
        )
        chain = pl.when(fits) if chain is None else chain.when(fits)
        chain = chain.then(pl.lit(index, dtype=pl.Int64))

    return df.with_columns(
        chain.otherwise(pl.lit(None, dtype=pl.Int64)).alias("rule_index")
    )


def _lookup_price(df: pl.DataFrame, rule_set: RuleSet) -> pl.DataFrame:
    """Join the matched rule's price as cost_base."""
    prices = (
        rule_set.to_frame()
        .select(["rule_index", "price"])
        .rename({"price": "cost_base"})
    )

    df = df.with_row_index("_row_id")
    df = df.join(prices, on="rule_index", how="left")
    df = df.sort("_row_id").drop("_row_id")

    return df


def _add_status(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(
        pl.when(pl.col("invalid_package")).then(pl.lit(STATUS_INVALID))
        .when(pl.col("girth_exceeded")).then(pl.lit(STATUS_GIRTH))
        .when(pl.col("rule_index").is_null()).then(pl.lit(STATUS_NO_RULE))
        .otherwise(pl.lit(STATUS_OK))
        .alias("status")
    )


def _stamp_version(df: pl.DataFrame) -> pl.DataFrame:
    """Stamp calculator version on output."""
    return df.with_columns(pl.lit(VERSION).alias("calculator_version"))


def _raise_unresolved(df: pl.DataFrame, girth_limit: int) -> None:
    """Raise for the first category of rows that could not be priced."""
    errors = [
        (STATUS_INVALID, InvalidPackageError,
         "have missing or non-positive dimensions/weight"),
        (STATUS_GIRTH, GirthExceededError,
         f"exceed the girth limit of {girth_limit} mm"),
        (STATUS_NO_RULE, NoMatchingRuleError,
         "have no matching rule. Add a covering rule to the rule set"),
    ]
    for status, error, reason in errors:
        count = df.filter(pl.col("status") == status).height
        if count:
            raise error(f"{count} shipment(s) {reason}.")


__all__ = [
    "resolve_price",
    "quote",
    "calculate_costs",
    "supplement_shipments",
    "calculate",
]
