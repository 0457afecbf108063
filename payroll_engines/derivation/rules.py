"""
Memo-pattern rules as ordered (predicate, effect) lists.

Precedence lives in the order of the tuples below and nowhere else.

Department rules -- first match wins:
    1. memo starts "Rounding"              -> DEPT_ID "900"
    2. memo starts "Advance"               -> DEPT_ID ""
    3. memo starts "P T" / "Pt" / "Classes" -> DEPT_ID "501"

Location rules -- every matching rule applies, in order, so a later rule
refines an earlier one. Memos starting "Tips" are exempt and keep the
location resolved from the source label.
    1. account starts "9" or memo starts "Rounding"          -> "500"
    2. as (1) and memo starts "Classe"                       -> "125"

Matching is case-sensitive.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, replace

from payroll_kernel.domain.journal import JournalLine

ROUNDING_DEPARTMENT = "900"
CLASSES_DEPARTMENT = "501"
CENTRAL_LOCATION = "500"
CLASSES_LOCATION = "125"

_PT_OR_CLASSES = re.compile(r"^(?:P T|Pt|Classes)\b")


@dataclass(frozen=True)
class LineRule:
    """A named predicate and the change it makes to a line."""

    name: str
    predicate: Callable[[JournalLine], bool]
    effect: Callable[[JournalLine], JournalLine]


def _memo_starts(prefix: str) -> Callable[[JournalLine], bool]:
    return lambda line: line.memo.startswith(prefix)


def is_tips(line: JournalLine) -> bool:
    return line.memo.startswith("Tips")


def _central_cost(line: JournalLine) -> bool:
    return not is_tips(line) and (
        line.acct_no.startswith("9") or line.memo.startswith("Rounding")
    )


DEPARTMENT_RULES: tuple[LineRule, ...] = (
    LineRule(
        "rounding_department",
        _memo_starts("Rounding"),
        lambda line: replace(line, dept_id=ROUNDING_DEPARTMENT),
    ),
    LineRule(
        "advance_department",
        _memo_starts("Advance"),
        lambda line: replace(line, dept_id=""),
    ),
    LineRule(
        "pt_classes_department",
        lambda line: bool(_PT_OR_CLASSES.match(line.memo)),
        lambda line: replace(line, dept_id=CLASSES_DEPARTMENT),
    ),
)

LOCATION_RULES: tuple[LineRule, ...] = (
    LineRule(
        "central_location",
        _central_cost,
        lambda line: replace(line, location_id=CENTRAL_LOCATION),
    ),
    LineRule(
        "classes_location",
        lambda line: _central_cost(line) and line.memo.startswith("Classe"),
        lambda line: replace(line, location_id=CLASSES_LOCATION),
    ),
)


def apply_first_match(
    line: JournalLine, rules: tuple[LineRule, ...]
) -> tuple[JournalLine, str | None]:
    """Apply the first rule whose predicate holds; return its name."""
    for rule in rules:
        if rule.predicate(line):
            return rule.effect(line), rule.name
    return line, None


def apply_all_matches(
    line: JournalLine, rules: tuple[LineRule, ...]
) -> tuple[JournalLine, tuple[str, ...]]:
    """
    Apply every rule whose predicate holds on the original line, in order.

    Predicates are evaluated against the incoming line so an effect
    cannot switch a later rule on or off.
    """
    fired: list[str] = []
    result = line
    for rule in rules:
        if rule.predicate(line):
            result = rule.effect(result)
            fired.append(rule.name)
    return result, tuple(fired)


def apply_memo_rules(line: JournalLine) -> tuple[JournalLine, tuple[str, ...]]:
    """Department rules then location rules; returns the names that fired."""
    line, department_rule = apply_first_match(line, DEPARTMENT_RULES)
    line, location_rules = apply_all_matches(line, LOCATION_RULES)
    fired = ((department_rule,) if department_rule else ()) + location_rules
    return line, fired
