"""Per-journal-type row derivation: fields, memo rules, rule sets."""

from payroll_engines.derivation.context import (
    DerivationContext,
    LookupTally,
    MappingFailure,
)
from payroll_engines.derivation.levy import allocation_entries, levy_total_from_rows
from payroll_engines.derivation.rule_sets import (
    RULE_SETS,
    CrossChargeRuleSet,
    HourlyAccrualRuleSet,
    HourlyRuleSet,
    PtClassesRuleSet,
    RowRuleSet,
    SalariedRuleSet,
    rule_set_for,
)
from payroll_engines.derivation.rules import (
    DEPARTMENT_RULES,
    LOCATION_RULES,
    LineRule,
    apply_memo_rules,
)

__all__ = [
    "DEPARTMENT_RULES",
    "LOCATION_RULES",
    "RULE_SETS",
    "CrossChargeRuleSet",
    "DerivationContext",
    "HourlyAccrualRuleSet",
    "HourlyRuleSet",
    "LineRule",
    "LookupTally",
    "MappingFailure",
    "PtClassesRuleSet",
    "RowRuleSet",
    "SalariedRuleSet",
    "apply_memo_rules",
    "allocation_entries",
    "levy_total_from_rows",
    "rule_set_for",
]
