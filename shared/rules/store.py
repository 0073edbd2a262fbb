"""
Rule Store

Load, normalize, check and persist rule sets.

    load_rules          - configuration source -> RuleSet
    persist_rules       - RuleSet -> configuration sink
    normalize_and_order - sort limits within each rule, then sort the rules
    check_rules         - advisory consistency checks (never blocking)
    RuleStore           - holds the current RuleSet and swaps it on reload
"""

import os
import tempfile
import warnings
from dataclasses import dataclass
from pathlib import Path

from .codec import dumps_rules, loads_rules
from .errors import ConfigFormatError, ConfigIOError
from .models import RuleSet


MONOTONICITY = "monotonicity"
MISMATCHED_DIMENSIONS = "mismatched_dimensions"


class RuleConsistencyWarning(UserWarning):
    """Advisory warning about a suspicious but legal rule configuration."""


@dataclass(frozen=True)
class RuleWarning:
    """
    One advisory finding between two rules.

    Attributes:
        kind    - MONOTONICITY or MISMATCHED_DIMENSIONS
        first   - Index of the first rule of the pair
        second  - Index of the second rule of the pair
        message - Human-readable description
    """

    kind: str
    first: int
    second: int
    message: str


# =============================================================================
# LOAD / PERSIST
# =============================================================================

def load_rules(source) -> RuleSet:
    """
    Load a RuleSet from a path or a readable stream.

    Args:
        source: str / Path to a configuration file, or an object with read()
                returning str or bytes

    Returns:
        RuleSet in file order (not normalized)

    Raises:
        ConfigFormatError: Malformed entry; nothing is loaded
        ConfigIOError: The source could not be read
    """
    try:
        if hasattr(source, "read"):
            text = source.read()
        else:
            text = Path(source).read_bytes()
    except OSError as e:
        raise ConfigIOError(f"Cannot read rule configuration: {e}") from e

    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConfigFormatError(f"Rule configuration is not valid UTF-8: {e}") from None

    return loads_rules(text)


def persist_rules(rule_set: RuleSet, sink) -> None:
    """
    Write a RuleSet to a path or a writable text stream.

    Paths are written to a temporary file in the same directory and moved
    over the target, so a failed write leaves the previous file intact.

    Raises:
        ConfigIOError: The sink could not be written
    """
    text = dumps_rules(rule_set)
    try:
        if hasattr(sink, "write"):
            sink.write(text)
        else:
            _replace_file(Path(sink), text)
    except OSError as e:
        raise ConfigIOError(f"Cannot write rule configuration: {e}") from e


def _replace_file(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# =============================================================================
# NORMALIZE / CHECK
# =============================================================================

def _ordered(rule_set: RuleSet) -> RuleSet:
    # sorted() is stable: identical keys keep their relative order
    return RuleSet(sorted((r.normalized() for r in rule_set), key=lambda r: r.sort_key()))


def normalize_and_order(rule_set: RuleSet) -> RuleSet:
    """
    Normalize each rule's limits and sort rules by (d0, d1, d2, weight_limit).

    Advisory findings from check_rules() are emitted as
    RuleConsistencyWarning; the returned set is the same either way.
    Applying this twice gives the same result as applying it once.
    """
    ordered = _ordered(rule_set)
    for issue in check_rules(ordered):
        warnings.warn(issue.message, RuleConsistencyWarning, stacklevel=2)
    return ordered


def check_rules(rule_set: RuleSet) -> list[RuleWarning]:
    """
    Find suspicious rule pairs.

    MONOTONICITY
        One rule's dimensions dominate another's (>= on every axis, > on at
        least one) but it allows less weight. Larger parcels should tolerate
        at least as much weight.

    MISMATCHED_DIMENSIONS
        Neither rule's dimensions dominate the other's (larger on one axis,
        smaller on another), so which one applies depends on axis shape.

    Dimensions are compared in ascending order. Indices refer to positions
    in the given rule set.
    """
    dims = [tuple(sorted(r.dimensions)) for r in rule_set]
    found = []

    for i in range(len(dims)):
        for j in range(i + 1, len(dims)):
            a, b = dims[i], dims[j]
            if a == b:
                continue

            wa, wb = rule_set[i].weight_limit, rule_set[j].weight_limit
            if all(x >= y for x, y in zip(a, b)):
                larger, smaller, violated = i, j, wa < wb
            elif all(x <= y for x, y in zip(a, b)):
                larger, smaller, violated = j, i, wb < wa
            else:
                found.append(RuleWarning(
                    MISMATCHED_DIMENSIONS, i, j,
                    f"Rules {i} and {j} have mismatched dimensions: "
                    f"{_fmt(a)} vs {_fmt(b)}",
                ))
                continue

            if violated:
                found.append(RuleWarning(
                    MONOTONICITY, i, j,
                    f"Rule {larger} ({_fmt(dims[larger])}, "
                    f"{rule_set[larger].weight_limit} g) is larger than rule "
                    f"{smaller} ({_fmt(dims[smaller])}, "
                    f"{rule_set[smaller].weight_limit} g) but allows less weight",
                ))

    return found


def _fmt(dims: tuple[int, ...]) -> str:
    return "x".join(str(d) for d in dims)


# =============================================================================
# STORE
# =============================================================================

class RuleStore:
    """
    Holder for the active RuleSet backed by a configuration file.

    The active set is replaced by assigning a new RuleSet, never by editing
    it, so resolution calls holding the old set keep a consistent view.
    A failed reload or apply leaves the active set unchanged.
    """

    def __init__(self, path, rule_set: RuleSet | None = None):
        self.path = Path(path)
        self._current = rule_set if rule_set is not None else RuleSet()

    @property
    def current(self) -> RuleSet:
        return self._current

    def reload(self) -> RuleSet:
        """Load the configuration file and make it the active set."""
        rule_set = load_rules(self.path)
        self._current = rule_set
        return rule_set

    def save(self) -> None:
        persist_rules(self._current, self.path)

    def apply(self, rule_set: RuleSet) -> list[RuleWarning]:
        """
        Normalize, persist and activate an edited rule set.

        Returns:
            Advisory findings for the normalized set (empty if clean)
        """
        ordered = _ordered(rule_set)
        issues = check_rules(ordered)
        persist_rules(ordered, self.path)
        self._current = ordered
        return issues
