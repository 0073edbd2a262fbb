"""Code shared across carrier calculators."""
