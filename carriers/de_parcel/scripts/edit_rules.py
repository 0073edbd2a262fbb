"""
Edit Rule Configuration
=======================

Lists, edits and checks a rule configuration file. Every edit is normalized
(limits ascending, rules sorted), checked, and written back.

Modes:
    --list                      Print rules in stored order
    --add L W H WEIGHT PRICE    Append a rule
    --remove INDEX              Remove the rule at INDEX
    --check                     Normalize and report warnings only

Usage:
    python -m carriers.de_parcel.scripts.edit_rules --config rules.properties --list
    python -m carriers.de_parcel.scripts.edit_rules --config rules.properties --add 350 250 100 1000 3.49
    python -m carriers.de_parcel.scripts.edit_rules --config rules.properties --remove 2 --dry-run
    python -m carriers.de_parcel.scripts.edit_rules --config rules.properties --check
"""

import argparse
import sys
import warnings
from decimal import Decimal, InvalidOperation

from shared.rules import (
    RateRule,
    RuleSet,
    RuleStore,
    RateError,
    RuleConsistencyWarning,
    check_rules,
    normalize_and_order,
)


def print_rules(rule_set: RuleSet) -> None:
    print("\n" + "=" * 50)
    print(f"RULES ({len(rule_set)})")
    print("=" * 50)
    if len(rule_set) == 0:
        print("  (empty)")
        return

    print(rule_set.to_frame())


def print_warnings(issues: list) -> None:
    if not issues:
        print("\nNo warnings.")
        return

    print(f"\n{len(issues)} warning(s):")
    for issue in issues:
        print(f"  [{issue.kind}] {issue.message}")


def preview(rule_set: RuleSet) -> None:
    """Print the normalized rules and their warnings without saving."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuleConsistencyWarning)
        ordered = normalize_and_order(rule_set)
    print_rules(ordered)
    print_warnings(check_rules(ordered))


def parse_rule(values: list[str]) -> RateRule:
    length, width, height, weight, price = values
    try:
        return RateRule(int(length), int(width), int(height), int(weight), Decimal(price))
    except (ValueError, InvalidOperation):
        raise ValueError(f"Invalid rule: {' '.join(values)}") from None


def main():
    parser = argparse.ArgumentParser(description="Edit a rule configuration file")
    parser.add_argument("--config", required=True, help="Rule configuration file")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--list", action="store_true", help="Print rules")
    mode.add_argument(
        "--add", nargs=5, metavar=("L", "W", "H", "WEIGHT", "PRICE"),
        help="Append a rule (mm, mm, mm, g, price)"
    )
    mode.add_argument("--remove", type=int, metavar="INDEX", help="Remove rule at INDEX")
    mode.add_argument("--check", action="store_true", help="Normalize and report warnings without saving")

    parser.add_argument("--dry-run", action="store_true", help="Show result, do not save")
    args = parser.parse_args()

    try:
        store = RuleStore(args.config)
        store.reload()
        print(f"Loaded {len(store.current)} rule(s) from {store.path}")

        if args.list:
            print_rules(store.current)
            return

        if args.check:
            preview(store.current)
            return

        if args.add:
            edited = store.current.append(parse_rule(args.add))
        else:
            edited = store.current.remove(args.remove)

        if args.dry_run:
            preview(edited)
            print("\nDry run - not saved.")
            return

        issues = store.apply(edited)
        print_rules(store.current)
        print_warnings(issues)
        print(f"\nSaved to {store.path}")

    except IndexError:
        print(f"\nError: no rule at index {args.remove}")
        sys.exit(1)
    except (RateError, ValueError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
