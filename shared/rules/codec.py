"""
Rule Configuration Codec

Text format for rule sets (Java-properties compatible key-value pairs):

    entry.0.dimensions=300x300x150x1000
    entry.0.price=3.89
    entry.1.dimensions=600x300x150x2000
    entry.1.price=4.39

Indices start at 0 and are contiguous. Parsing stops at the first index
without a dimensions entry.
"""

from decimal import Decimal, InvalidOperation

from .errors import ConfigFormatError
from .models import RateRule, RuleSet


HEADER = "Package Configurations"
DIMENSION_SEPARATOR = "x"
DIMENSION_FIELDS = 4  # length x width x height x weight


# =============================================================================
# KEY-VALUE LAYER
# =============================================================================

def parse_properties(text: str) -> dict[str, str]:
    """
    Parse key-value text into a dict.

    Blank lines and lines starting with '#' or '!' are skipped. Key and value
    are split on the first '=' or ':'. Surrounding whitespace is stripped.
    A later duplicate key overrides an earlier one.
    """
    properties = {}
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line[0] in "#!":
            continue

        positions = [p for p in (line.find("="), line.find(":")) if p >= 0]
        if not positions:
            raise ConfigFormatError(f"Line {line_no}: expected 'key=value', got {raw!r}")

        split_at = min(positions)
        properties[line[:split_at].strip()] = line[split_at + 1:].strip()

    return properties


def format_properties(properties: dict[str, str], header: str | None = HEADER) -> str:
    """Format a dict as key-value text, preserving insertion order."""
    lines = [f"#{header}"] if header else []
    lines += [f"{key}={value}" for key, value in properties.items()]
    return "\n".join(lines) + "\n"


# =============================================================================
# RULE LAYER
# =============================================================================

def dimensions_key(index: int) -> str:
    return f"entry.{index}.dimensions"


def price_key(index: int) -> str:
    return f"entry.{index}.price"


def parse_dimensions(value: str, index: int = 0) -> tuple[int, int, int, int]:
    """Parse 'LxWxHxWeight' into four integers."""
    parts = value.split(DIMENSION_SEPARATOR)
    if len(parts) != DIMENSION_FIELDS:
        raise ConfigFormatError(
            f"{dimensions_key(index)}: expected {DIMENSION_FIELDS} fields "
            f"separated by '{DIMENSION_SEPARATOR}', got {len(parts)} in {value!r}"
        )
    try:
        return tuple(int(p.strip()) for p in parts)
    except ValueError:
        raise ConfigFormatError(
            f"{dimensions_key(index)}: non-integer field in {value!r}"
        ) from None


def format_dimensions(rule: RateRule) -> str:
    return DIMENSION_SEPARATOR.join(
        str(v) for v in (*rule.dimensions, rule.weight_limit)
    )


def parse_price(value: str, index: int = 0) -> Decimal:
    try:
        price = Decimal(value)
    except InvalidOperation:
        raise ConfigFormatError(f"{price_key(index)}: not a decimal: {value!r}") from None
    if not price.is_finite():
        raise ConfigFormatError(f"{price_key(index)}: not a finite decimal: {value!r}")
    return price


def decode_rules(properties: dict[str, str]) -> RuleSet:
    """
    Build a RuleSet from parsed key-value pairs.

    Raises:
        ConfigFormatError: On any malformed entry. No partial set is returned.
    """
    rules = []
    index = 0
    while dimensions_key(index) in properties:
        length, width, height, weight = parse_dimensions(
            properties[dimensions_key(index)], index
        )
        if price_key(index) not in properties:
            raise ConfigFormatError(f"{price_key(index)}: missing")
        price = parse_price(properties[price_key(index)], index)

        rules.append(RateRule(length, width, height, weight, price))
        index += 1

    # A price without dimensions at the terminating index is a broken entry
    if price_key(index) in properties:
        raise ConfigFormatError(f"{dimensions_key(index)}: missing for existing price")

    return RuleSet(rules)


def encode_rules(rule_set: RuleSet) -> dict[str, str]:
    """Key-value pairs for a RuleSet, indices assigned by list position."""
    properties = {}
    for index, rule in enumerate(rule_set):
        properties[dimensions_key(index)] = format_dimensions(rule)
        properties[price_key(index)] = str(rule.price)
    return properties


def loads_rules(text: str) -> RuleSet:
    """Parse configuration text into a RuleSet."""
    return decode_rules(parse_properties(text))


def dumps_rules(rule_set: RuleSet) -> str:
    """Serialize a RuleSet to configuration text."""
    return format_properties(encode_rules(rule_set))
