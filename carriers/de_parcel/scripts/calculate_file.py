"""
Calculate Costs for a CSV File
==============================

Reads packages from CSV, prices every row, writes the result to CSV.

Input columns: length_mm, width_mm, height_mm, weight_g (other columns are
kept). Rows that cannot be priced are written with an empty cost_base and
their status.

Usage:
    python -m carriers.de_parcel.scripts.calculate_file --input packages.csv --output priced.csv
    python -m carriers.de_parcel.scripts.calculate_file --input packages.csv --config my_rules.properties
"""

import argparse
import sys
from pathlib import Path

import polars as pl

from shared.rules import RateError, load_rules
from carriers.de_parcel.calculate_costs import calculate_costs
from carriers.de_parcel.data import DEFAULT_RULES_FILE


def print_summary(df: pl.DataFrame) -> None:
    print("\n" + "=" * 50)
    print("SUMMARY")
    print("=" * 50)

    print(df.group_by("status").len().sort("status"))

    priced = df.filter(pl.col("status") == "ok")
    if priced.height:
        print(f"\nPriced: {priced.height} of {df.height}")
        print(f"Total:  EUR {priced['cost_base'].sum():.2f}")


def main():
    parser = argparse.ArgumentParser(description="Price packages from a CSV file")
    parser.add_argument("--input", required=True, help="CSV with package measurements")
    parser.add_argument("--output", help="Output CSV (default: <input>_priced.csv)")
    parser.add_argument(
        "--config", default=str(DEFAULT_RULES_FILE),
        help="Rule configuration file (default: built-in table)"
    )
    parser.add_argument("--strict", action="store_true", help="Fail if any row cannot be priced")
    args = parser.parse_args()

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else input_path.with_name(
        f"{input_path.stem}_priced.csv"
    )

    try:
        rule_set = load_rules(args.config)
        df = pl.read_csv(input_path)
        print(f"Loaded {len(df)} package(s) from {input_path}")

        df = calculate_costs(df, rule_set, strict=args.strict)
        df.write_csv(output_path)
        print(f"Output saved to: {output_path}")

        print_summary(df)

    except RateError as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
