"""
Rate Errors

Exception hierarchy for rule loading and price resolution.

Each error also subclasses the builtin a caller would naturally catch for
that situation (ValueError for bad input, LookupError for a missing rule,
OSError for storage failures).
"""


class RateError(Exception):
    """Base class for all rule and resolution errors."""


class InvalidPackageError(RateError, ValueError):
    """A package dimension or weight is not a positive integer."""


class GirthExceededError(RateError, ValueError):
    """Package girth (length + 2*width + 2*height) is over the limit."""


class NoMatchingRuleError(RateError, LookupError):
    """No rule in the rule set covers the package."""


class ConfigFormatError(RateError, ValueError):
    """Rule configuration text is malformed. The whole load is aborted."""


class ConfigIOError(RateError, OSError):
    """Rule configuration could not be read or written."""
