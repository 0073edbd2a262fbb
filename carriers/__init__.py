"""Carrier calculators."""
