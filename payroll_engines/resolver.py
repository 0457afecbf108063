"""
Module: payroll_engines.resolver
Responsibility:
    Resolve a free-text cost-center label (location or department name
    typed by hand into a payroll form) to a canonical code, through
    ordered matching stages that stop at the first hit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Stages:
    1. exact      -- normalized key is a map key.
    2. phrase     -- a map key, used as an anchored case-insensitive
                     pattern, matches the whole normalized key. Keys that
                     are not valid patterns are skipped.
    3. word       -- a map key (length >= min_word_key_length) occurs as
                     a whole word; longest key first.
    4. substring  -- a map key (length >= min_substring_key_length) is
                     contained anywhere; longest key first.
    5. default    -- nothing matched.

Invariants enforced:
    - Never raises; always returns a code or the default.
    - Deterministic: candidate keys are ordered by (-len, key), so the
      same (key, map) always yields the same code.
    - Stage 1 beats every fuzzy stage.

Audit relevance:
    Every resolution is logged with the stage that matched and the stages
    tried; every miss is a warning. Misrouted costs are a reporting risk,
    so fuzzy hits are logged at INFO where exact hits are DEBUG.

Usage:
    from payroll_engines.resolver import resolve

    code = resolve("Leisure Ops ", location_map, "location")
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from payroll_engines.normalizer import normalize_key
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.resolver")

UNKNOWN = "UNKNOWN"


class MatchStage(str, Enum):
    """Which resolution stage produced the code."""

    EXACT = "exact"
    PHRASE = "phrase"
    WORD = "word_boundary"
    SUBSTRING = "substring"
    DEFAULT = "default"
    EMPTY_KEY = "empty_key"


@dataclass(frozen=True)
class MatchThresholds:
    """
    Minimum key lengths for the fuzzy stages.

    Short keys such as "gym" are allowed at the word stage but would
    produce false positives as raw substrings, hence the higher floor.
    """

    min_word_key_length: int = 3
    min_substring_key_length: int = 5


DEFAULT_THRESHOLDS = MatchThresholds()


@dataclass(frozen=True)
class Resolution:
    """Outcome of one lookup."""

    raw_key: str
    normalized_key: str
    code: str
    stage: MatchStage
    matched_key: str | None = None

    @property
    def matched(self) -> bool:
        return self.stage not in (MatchStage.DEFAULT, MatchStage.EMPTY_KEY)


def _ordered_keys(code_map: Mapping[str, str]) -> list[str]:
    """Longest first, then alphabetical, so ties are deterministic."""
    return sorted((k for k in code_map if k), key=lambda k: (-len(k), k))


def _phrase_match(key: str, code_map: Mapping[str, str]) -> str | None:
    for candidate in _ordered_keys(code_map):
        try:
            if re.fullmatch(candidate, key, flags=re.IGNORECASE):
                return candidate
        except re.error:
            continue
    return None


def _word_match(
    key: str, code_map: Mapping[str, str], min_length: int
) -> str | None:
    for candidate in _ordered_keys(code_map):
        if len(candidate) < min_length:
            continue
        pattern = r"(?<!\w)" + re.escape(candidate) + r"(?!\w)"
        if re.search(pattern, key):
            return candidate
    return None


def _substring_match(
    key: str, code_map: Mapping[str, str], min_length: int
) -> str | None:
    for candidate in _ordered_keys(code_map):
        if len(candidate) >= min_length and candidate in key:
            return candidate
    return None


def resolve_with_stage(
    raw_key: Any,
    code_map: Mapping[str, str],
    category: str,
    default: str = UNKNOWN,
    *,
    thresholds: MatchThresholds = DEFAULT_THRESHOLDS,
) -> Resolution:
    """
    Resolve ``raw_key`` against ``code_map`` and report the stage used.

    Args:
        raw_key: Free-text label from the source row.
        code_map: Normalized key -> canonical code.
        category: Label for logs ("location", "department", ...).
        default: Returned when nothing matches.
        thresholds: Minimum key lengths for stages 3 and 4.

    Returns:
        Resolution with the code, the stage and the map key matched.
    """
    raw = "" if raw_key is None else str(raw_key)
    key = normalize_key(raw)

    if not key:
        logger.warning(
            "code_resolution_empty_key",
            extra={"category": category, "raw_key": raw, "default": default},
        )
        return Resolution(raw, key, default, MatchStage.EMPTY_KEY)

    stages_tried: list[str] = []

    # Stage 1
    stages_tried.append(MatchStage.EXACT.value)
    if key in code_map:
        resolution = Resolution(raw, key, code_map[key], MatchStage.EXACT, key)
        _log_hit(resolution, category, stages_tried)
        return resolution

    # Stage 2
    stages_tried.append(MatchStage.PHRASE.value)
    matched = _phrase_match(key, code_map)
    if matched is None:
        # Stage 3
        stages_tried.append(MatchStage.WORD.value)
        matched = _word_match(key, code_map, thresholds.min_word_key_length)
        stage = MatchStage.WORD
        if matched is None:
            # Stage 4
            stages_tried.append(MatchStage.SUBSTRING.value)
            matched = _substring_match(
                key, code_map, thresholds.min_substring_key_length
            )
            stage = MatchStage.SUBSTRING
    else:
        stage = MatchStage.PHRASE

    if matched is not None:
        resolution = Resolution(raw, key, code_map[matched], stage, matched)
        _log_hit(resolution, category, stages_tried)
        return resolution

    logger.warning(
        "code_resolution_failed",
        extra={
            "category": category,
            "raw_key": raw,
            "normalized_key": key,
            "default": default,
            "stages_tried": stages_tried,
            "map_size": len(code_map),
        },
    )
    return Resolution(raw, key, default, MatchStage.DEFAULT)


def resolve(
    raw_key: Any,
    code_map: Mapping[str, str],
    category: str,
    default: str = UNKNOWN,
    *,
    thresholds: MatchThresholds = DEFAULT_THRESHOLDS,
) -> str:
    """Resolve ``raw_key`` to a code, or ``default``. Never raises."""
    return resolve_with_stage(
        raw_key, code_map, category, default, thresholds=thresholds
    ).code


def _log_hit(resolution: Resolution, category: str, stages_tried: list[str]) -> None:
    level_fn = logger.debug if resolution.stage is MatchStage.EXACT else logger.info
    level_fn(
        "code_resolved",
        extra={
            "category": category,
            "raw_key": resolution.raw_key,
            "normalized_key": resolution.normalized_key,
            "stage": resolution.stage.value,
            "matched_key": resolution.matched_key,
            "code": resolution.code,
            "stages_tried": list(stages_tried),
        },
    )
