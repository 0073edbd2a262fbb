"""
DE Parcel Calculator
====================

Interactive CLI tool to price a single package.

Usage:
    python -m carriers.de_parcel.scripts.calculator
    python -m carriers.de_parcel.scripts.calculator --config my_rules.properties
"""

import argparse

from shared.rules import Package, RateError, load_rules
from carriers.de_parcel.calculate_costs import resolve_price
from carriers.de_parcel.data import DEFAULT_RULES_FILE, MAX_WEIGHT_G
from carriers.de_parcel.version import VERSION


def get_user_input() -> dict:
    """Prompt user for package details."""
    print("\n=== DE Parcel Cost Calculator ===")
    print(f"Version: {VERSION}\n")

    length = int(input("Length (mm): "))
    width = int(input("Width (mm): "))
    height = int(input("Height (mm): "))
    weight = int(input(f"Weight (g, max {MAX_WEIGHT_G}): "))

    if weight > MAX_WEIGHT_G:
        print(f"\nWarning: the default table tops out at {MAX_WEIGHT_G} g")

    return {
        "length": length,
        "width": width,
        "height": height,
        "weight": weight,
    }


def print_results(package: Package, price) -> None:
    """Print calculation results."""
    print("\n" + "=" * 50)
    print("CALCULATION RESULTS")
    print("=" * 50)

    print(f"\nPackage: {package.length}x{package.width}x{package.height} mm, {package.weight} g")
    print(f"Girth: {package.girth} mm")

    print(f"\nPRICE:              EUR {price:>8}")
    print()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Price a single package")
    parser.add_argument(
        "--config", default=str(DEFAULT_RULES_FILE),
        help="Rule configuration file (default: built-in table)"
    )
    args = parser.parse_args()

    try:
        rule_set = load_rules(args.config)
        shipment = get_user_input()
        package = Package(**shipment)
        price = resolve_price(package, rule_set)
        print_results(package, price)

    except KeyboardInterrupt:
        print("\n\nCancelled.")
    except (RateError, ValueError) as e:
        print(f"\nError: {e}")


if __name__ == "__main__":
    main()
