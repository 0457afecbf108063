"""
Module: payroll_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: key
    normalization, fuzzy code resolution, code map building, row
    derivation, proportional allocation and journal assembly.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel (and sibling engine modules).
    MUST NOT import payroll_services, payroll_ingestion or payroll_config.

Invariants enforced:
    - Engines never read the clock; dates arrive on JournalMeta.
    - Decimal-only arithmetic for amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped with ``@traced_engine`` and emit
    PAYROLL_ENGINE_TRACE records.
"""

from payroll_engines.allocation import AllocationResult, AllocationShare, allocate
from payroll_engines.assembler import (
    AssembledJournal,
    BalanceCheck,
    assemble,
    check_balance,
    fill_down_descriptions,
)
from payroll_engines.code_map import CodeMapBuild, DuplicateEntry, build_code_map
from payroll_engines.derivation import (
    DerivationContext,
    LookupTally,
    MappingFailure,
    RowRuleSet,
    apply_memo_rules,
    rule_set_for,
)
from payroll_engines.normalizer import normalize_key
from payroll_engines.resolver import (
    UNKNOWN,
    MatchStage,
    MatchThresholds,
    Resolution,
    resolve,
    resolve_with_stage,
)

__all__ = [
    "UNKNOWN",
    "AllocationResult",
    "AllocationShare",
    "AssembledJournal",
    "BalanceCheck",
    "CodeMapBuild",
    "DerivationContext",
    "DuplicateEntry",
    "LookupTally",
    "MappingFailure",
    "MatchStage",
    "MatchThresholds",
    "Resolution",
    "RowRuleSet",
    "allocate",
    "apply_memo_rules",
    "assemble",
    "build_code_map",
    "check_balance",
    "fill_down_descriptions",
    "normalize_key",
    "resolve",
    "resolve_with_stage",
    "rule_set_for",
]
