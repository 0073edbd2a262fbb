"""
Unit Tests for DE Parcel Cost Calculator

Tests single-package resolution, batch calculation and the default table.

Run with: pytest carriers/de_parcel/tests/test_calculate_costs.py -v
"""

import random
from decimal import Decimal

import pytest
import polars as pl

from shared.rules import (
    Package,
    RateRule,
    RuleSet,
    InvalidPackageError,
    GirthExceededError,
    NoMatchingRuleError,
    check_rules,
)
from carriers.de_parcel.calculate_costs import (
    resolve_price,
    quote,
    calculate_costs,
    supplement_shipments,
    calculate,
)
from carriers.de_parcel.data import load_default_rules, GIRTH_LIMIT_MM
from carriers.de_parcel.version import VERSION


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def default_rules():
    return load_default_rules()


@pytest.fixture
def base_shipment():
    """Package that fits the first default tier."""
    return pl.DataFrame({
        "order_id": ["A1"],
        "length_mm": [300],
        "width_mm": [300],
        "height_mm": [150],
        "weight_g": [1000],
    })


def expected_default_price(length, width, height, weight):
    """Default tiers written out by hand (dimensions in any axis order)."""
    d0, d1, d2 = sorted((length, width, height))
    if d0 <= 150 and d1 <= 300 and d2 <= 300 and weight <= 1000:
        return Decimal("3.89")
    if d0 <= 150 and d1 <= 300 and d2 <= 600 and weight <= 2000:
        return Decimal("4.39")
    if d0 <= 600 and d1 <= 600 and d2 <= 1200:
        for limit, price in ((5000, "5.89"), (10000, "7.99"), (31000, "14.99")):
            if weight <= limit:
                return Decimal(price)
    return None


# =============================================================================
# DEFAULT TABLE TESTS
# =============================================================================

class TestDefaultRules:
    """Tests for the shipped rule table."""

    def test_five_tiers(self, default_rules):
        assert [r.price for r in default_rules] == [
            Decimal("3.89"), Decimal("4.39"), Decimal("5.89"),
            Decimal("7.99"), Decimal("14.99"),
        ]

    def test_limits_stored_ascending(self, default_rules):
        for rule in default_rules:
            assert list(rule.dimensions) == sorted(rule.dimensions)

    def test_passes_advisory_checks(self, default_rules):
        assert check_rules(default_rules) == []


# =============================================================================
# RESOLVE PRICE TESTS
# =============================================================================

class TestResolvePrice:
    """Tests for single-package resolution."""

    def test_small_packet(self, default_rules):
        assert resolve_price(Package(300, 300, 150, 1000), default_rules) == Decimal("3.89")

    def test_medium_packet(self, default_rules):
        assert resolve_price(Package(600, 300, 150, 2000), default_rules) == Decimal("4.39")

    def test_small_package(self, default_rules):
        assert resolve_price(Package(600, 300, 300, 5000), default_rules) == Decimal("5.89")

    def test_medium_package(self, default_rules):
        assert resolve_price(Package(1000, 400, 400, 10000), default_rules) == Decimal("7.99")

    def test_large_package(self, default_rules):
        assert resolve_price(Package(1000, 400, 400, 31000), default_rules) == Decimal("14.99")

    def test_axis_order_irrelevant(self, default_rules):
        """Same box lying on a different side gets the same price."""
        prices = {
            resolve_price(Package(*dims, 1000), default_rules)
            for dims in [(300, 300, 150), (150, 300, 300), (300, 150, 300)]
        }
        assert prices == {Decimal("3.89")}

    def test_one_gram_over_moves_up_a_tier(self, default_rules):
        assert resolve_price(Package(300, 300, 150, 1001), default_rules) == Decimal("4.39")

    def test_girth_exceeded(self, default_rules):
        """1200 + 2*600 + 2*600 = 3600 mm > 3000 mm."""
        with pytest.raises(GirthExceededError, match="3600"):
            resolve_price(Package(1200, 600, 600, 31000), default_rules)

    def test_girth_at_limit_allowed(self):
        rules = RuleSet([RateRule(1000, 1000, 1000, 1000, Decimal("1.00"))])
        # 1000 + 2*500 + 2*500 = 3000
        assert resolve_price(Package(1000, 500, 500, 1), rules) == Decimal("1.00")

    def test_girth_one_over_limit(self):
        rules = RuleSet([RateRule(1000, 1000, 1000, 1000, Decimal("1.00"))])
        with pytest.raises(GirthExceededError):
            resolve_price(Package(1001, 500, 500, 1), rules)

    def test_girth_uses_raw_axes(self):
        """Girth is computed on length/width/height as given, not sorted."""
        rules = RuleSet([RateRule(2000, 2000, 2000, 1000, Decimal("1.00"))])
        # long side as length: 1400 + 2*400 + 2*400 = 3000 -> ok
        assert resolve_price(Package(1400, 400, 400, 1), rules) == Decimal("1.00")
        # long side as width: 400 + 2*1400 + 2*400 = 4000 -> rejected
        with pytest.raises(GirthExceededError):
            resolve_price(Package(400, 1400, 400, 1), rules)

    def test_custom_girth_limit(self, default_rules):
        with pytest.raises(GirthExceededError):
            resolve_price(Package(300, 300, 150, 1000), default_rules, girth_limit=1000)

    def test_empty_rule_set(self):
        with pytest.raises(NoMatchingRuleError):
            resolve_price(Package(1, 1, 1, 1), RuleSet())

    def test_overweight(self, default_rules):
        with pytest.raises(NoMatchingRuleError):
            resolve_price(Package(300, 300, 150, 31001), default_rules)

    def test_no_match_is_lookup_error(self, default_rules):
        with pytest.raises(LookupError):
            resolve_price(Package(300, 300, 150, 40000), default_rules)

    def test_boundary_is_inclusive(self):
        rules = RuleSet([RateRule(10, 20, 30, 40, Decimal("1.00"))])
        assert resolve_price(Package(30, 20, 10, 40), rules) == Decimal("1.00")

    def test_first_fit_not_best_fit(self):
        """An earlier broad rule shadows a later, tighter and cheaper one."""
        rules = RuleSet([
            RateRule(100, 100, 100, 1000, Decimal("9.99")),
            RateRule(10, 10, 10, 10, Decimal("0.99")),
        ])
        assert resolve_price(Package(5, 5, 5, 5), rules) == Decimal("9.99")

    def test_duplicate_rules_earlier_wins(self):
        rules = RuleSet([
            RateRule(10, 10, 10, 10, Decimal("1.00")),
            RateRule(10, 10, 10, 10, Decimal("2.00")),
        ])
        assert resolve_price(Package(10, 10, 10, 10), rules) == Decimal("1.00")

    def test_zero_and_negative_price_returned_verbatim(self):
        zero = RuleSet([RateRule(10, 10, 10, 10, Decimal("0"))])
        negative = RuleSet([RateRule(10, 10, 10, 10, Decimal("-1.50"))])
        assert resolve_price(Package(1, 1, 1, 1), zero) == Decimal("0")
        assert resolve_price(Package(1, 1, 1, 1), negative) == Decimal("-1.50")

    def test_rule_limits_not_resorted(self):
        """Unsorted rule limits are used positionally."""
        rules = RuleSet([RateRule(300, 300, 150, 1000, Decimal("3.89"))])
        with pytest.raises(NoMatchingRuleError):
            resolve_price(Package(300, 300, 150, 1000), rules)

    def test_invalid_measurements_rejected(self, default_rules):
        """Duck-typed packages are validated too."""

        class RawPackage:
            length, width, height, weight = 100, 0, 100, 100

        with pytest.raises(InvalidPackageError):
            resolve_price(RawPackage(), default_rules)


class TestQuote:
    """Tests for the raw-measurement entry point."""

    def test_uses_default_rules(self):
        assert quote(600, 300, 150, 2000) == Decimal("4.39")

    def test_custom_rules(self):
        rules = RuleSet([RateRule(10, 10, 10, 10, Decimal("0.50"))])
        assert quote(10, 10, 10, 10, rules) == Decimal("0.50")

    def test_invalid(self):
        with pytest.raises(InvalidPackageError):
            quote(0, 10, 10, 10)


# =============================================================================
# PROPERTY TESTS
# =============================================================================

class TestProperties:
    """Randomized checks against the default table."""

    def test_random_packages_match_hand_written_tiers(self, default_rules):
        rng = random.Random(20250101)
        for _ in range(1000):
            length = rng.randint(1, 1300)
            width = rng.randint(1, 700)
            height = rng.randint(1, 700)
            weight = rng.randint(1, 32000)
            package = Package(length, width, height, weight)

            if package.girth > GIRTH_LIMIT_MM:
                with pytest.raises(GirthExceededError):
                    resolve_price(package, default_rules)
                continue

            expected = expected_default_price(length, width, height, weight)
            if expected is None:
                with pytest.raises(NoMatchingRuleError):
                    resolve_price(package, default_rules)
            else:
                assert resolve_price(package, default_rules) == expected

    def test_price_never_decreases_with_weight(self, default_rules):
        previous = Decimal("0")
        for weight in range(500, 31001, 500):
            price = resolve_price(Package(400, 300, 200, weight), default_rules)
            assert price >= previous
            previous = price

    def test_price_never_decreases_with_length(self, default_rules):
        previous = Decimal("0")
        for length in range(100, 1201, 50):
            price = resolve_price(Package(length, 300, 150, 1500), default_rules)
            assert price >= previous
            previous = price


# =============================================================================
# SUPPLEMENT TESTS
# =============================================================================

class TestSupplementShipments:
    """Tests for supplement_shipments calculations."""

    def test_girth(self, base_shipment):
        df = supplement_shipments(base_shipment)
        assert df["girth_mm"][0] == 300 + 2 * 300 + 2 * 150

    def test_sorted_dimensions(self):
        df = supplement_shipments(pl.DataFrame({
            "length_mm": [150], "width_mm": [600], "height_mm": [300], "weight_g": [1],
        }))
        assert df["dim_short_mm"][0] == 150
        assert df["dim_mid_mm"][0] == 300
        assert df["dim_long_mm"][0] == 600


# =============================================================================
# BATCH CALCULATION TESTS
# =============================================================================

class TestCalculateCosts:
    """Tests for the DataFrame pipeline."""

    def test_single_row(self, base_shipment):
        df = calculate_costs(base_shipment)
        assert df["cost_base"][0] == pytest.approx(3.89)
        assert df["rule_index"][0] == 0
        assert df["status"][0] == "ok"
        assert df["calculator_version"][0] == VERSION

    def test_input_columns_kept(self, base_shipment):
        df = calculate_costs(base_shipment)
        assert df["order_id"][0] == "A1"

    def test_row_order_preserved(self):
        shipments = pl.DataFrame({
            "length_mm": [1000, 300, 600, 1000],
            "width_mm": [400, 300, 300, 400],
            "height_mm": [400, 150, 150, 400],
            "weight_g": [31000, 1000, 2000, 10000],
        })
        df = calculate_costs(shipments)
        assert df["cost_base"].to_list() == pytest.approx([14.99, 3.89, 4.39, 7.99])
        assert df["rule_index"].to_list() == [4, 0, 1, 3]

    def test_status_per_row(self, default_rules):
        shipments = pl.DataFrame({
            "length_mm": [300, 0, 1200, 300],
            "width_mm": [300, 10, 600, 300],
            "height_mm": [150, 10, 600, 150],
            "weight_g": [1000, 10, 31000, 40000],
        })
        df = calculate_costs(shipments, default_rules, strict=False)
        assert df["status"].to_list() == [
            "ok", "invalid_package", "girth_exceeded", "no_matching_rule",
        ]
        assert df["invalid_package"].to_list() == [False, True, False, False]
        assert df["girth_exceeded"].to_list() == [False, False, True, False]
        assert df["cost_base"].null_count() == 3

    def test_missing_measurement_is_invalid(self):
        shipments = pl.DataFrame({
            "length_mm": [300, None],
            "width_mm": [300, 300],
            "height_mm": [150, 150],
            "weight_g": [1000, 1000],
        })
        df = calculate_costs(shipments, strict=False)
        assert df["status"].to_list() == ["ok", "invalid_package"]

    def test_strict_raises_for_invalid(self):
        shipments = pl.DataFrame({
            "length_mm": [0], "width_mm": [1], "height_mm": [1], "weight_g": [1],
        })
        with pytest.raises(InvalidPackageError, match="1 shipment"):
            calculate_costs(shipments)

    def test_strict_raises_for_girth(self):
        shipments = pl.DataFrame({
            "length_mm": [1200], "width_mm": [600], "height_mm": [600], "weight_g": [31000],
        })
        with pytest.raises(GirthExceededError):
            calculate_costs(shipments)

    def test_strict_raises_for_no_rule(self):
        shipments = pl.DataFrame({
            "length_mm": [1], "width_mm": [1], "height_mm": [1], "weight_g": [1],
        })
        with pytest.raises(NoMatchingRuleError):
            calculate_costs(shipments, RuleSet())

    def test_empty_rule_set_non_strict(self, base_shipment):
        df = calculate_costs(base_shipment, RuleSet(), strict=False)
        assert df["rule_index"][0] is None
        assert df["status"][0] == "no_matching_rule"

    def test_first_fit(self):
        rules = RuleSet([
            RateRule(100, 100, 100, 1000, Decimal("9.99")),
            RateRule(10, 10, 10, 10, Decimal("0.99")),
        ])
        shipments = pl.DataFrame({
            "length_mm": [5], "width_mm": [5], "height_mm": [5], "weight_g": [5],
        })
        df = calculate_costs(shipments, rules)
        assert df["rule_index"][0] == 0
        assert df["cost_base"][0] == pytest.approx(9.99)

    def test_custom_girth_limit_matches_single_package(self, base_shipment, default_rules):
        """Batch and single-package paths apply the same girth override."""
        # base_shipment girth = 300 + 2*300 + 2*150 = 1200 mm
        df = calculate_costs(base_shipment, default_rules, strict=False, girth_limit=1000)
        assert df["status"][0] == "girth_exceeded"
        with pytest.raises(GirthExceededError):
            resolve_price(Package(300, 300, 150, 1000), default_rules, girth_limit=1000)

    def test_custom_girth_limit_strict_message(self, base_shipment, default_rules):
        with pytest.raises(GirthExceededError, match="1000 mm"):
            calculate_costs(base_shipment, default_rules, girth_limit=1000)

    def test_raised_girth_limit(self, default_rules):
        shipments = pl.DataFrame({
            "length_mm": [1200], "width_mm": [600], "height_mm": [600], "weight_g": [31000],
        })
        df = calculate_costs(shipments, default_rules, girth_limit=4000)
        assert df["cost_base"][0] == pytest.approx(14.99)

    def test_calculate_with_girth_limit(self, base_shipment, default_rules):
        df = calculate(supplement_shipments(base_shipment), default_rules, girth_limit=1000)
        assert df["girth_exceeded"][0]

    def test_calculate_on_supplemented(self, base_shipment, default_rules):
        df = calculate(supplement_shipments(base_shipment), default_rules)
        assert df["cost_base"][0] == pytest.approx(3.89)

    def test_matches_single_package_resolution(self, default_rules):
        """Batch and single-package paths agree on every row."""
        rng = random.Random(7)
        rows = [
            (rng.randint(1, 1300), rng.randint(1, 700), rng.randint(1, 700), rng.randint(1, 32000))
            for _ in range(300)
        ]
        shipments = pl.DataFrame(
            rows, schema=["length_mm", "width_mm", "height_mm", "weight_g"], orient="row"
        )
        df = calculate_costs(shipments, default_rules, strict=False)

        for (length, width, height, weight), cost, status in zip(
            rows, df["cost_base"].to_list(), df["status"].to_list()
        ):
            try:
                price = resolve_price(Package(length, width, height, weight), default_rules)
            except (GirthExceededError, NoMatchingRuleError):
                assert status in ("girth_exceeded", "no_matching_rule")
                assert cost is None
            else:
                assert status == "ok"
                assert cost == pytest.approx(float(price))
