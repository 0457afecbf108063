"""
Tests for the key normalizer and the fuzzy code resolver.

Covers:
- Normalization (NBSP, whitespace runs, case)
- Stage order: exact > phrase > word boundary > substring > default
- Minimum key lengths for the fuzzy stages
- Empty keys and empty maps
- Logging of hits and misses
"""

import pytest

from payroll_engines.normalizer import is_empty_key, normalize_key
from payroll_engines.resolver import (
    UNKNOWN,
    MatchStage,
    MatchThresholds,
    resolve,
    resolve_with_stage,
)


class TestNormalizeKey:

    def test_trims_and_lowercases(self):
        assert normalize_key("  Leisure Ops ") == "leisure ops"

    def test_collapses_whitespace_runs(self):
        assert normalize_key("LEISURE \t  OPS") == "leisure ops"

    def test_non_breaking_space_becomes_space(self):
        assert normalize_key("Leisure\u00a0Ops") == "leisure ops"

    def test_none_is_empty(self):
        assert normalize_key(None) == ""
        assert is_empty_key(None)
        assert is_empty_key(" \u00a0 ")

    def test_numbers_are_stringified(self):
        assert normalize_key(501) == "501"


class TestExactStage:

    def test_exact_beats_every_fuzzy_stage(self):
        code_map = {"leisure ops": "501", "leisure": "502"}
        assert resolve("leisure ops", code_map, "location") == "501"

    def test_exact_after_normalization(self):
        code_map = {"leisure ops": "501"}
        resolution = resolve_with_stage("  LEISURE\u00a0OPS ", code_map, "location")
        assert resolution.code == "501"
        assert resolution.stage is MatchStage.EXACT

    def test_code_passes_through(self):
        """A value that is already a code resolves to itself."""
        code_map = {"leisure ops": "501", "501": "501"}
        assert resolve("501", code_map, "location") == "501"


class TestPhraseStage:

    def test_key_used_as_anchored_pattern(self):
        code_map = {"leisure.ops": "501"}
        resolution = resolve_with_stage("leisure-ops", code_map, "location")
        assert resolution.code == "501"
        assert resolution.stage is MatchStage.PHRASE

    def test_invalid_pattern_keys_are_skipped(self):
        code_map = {"spa (east": "777", "kitchen": "200"}
        assert resolve("main kitchen", code_map, "department") == "200"


class TestWordBoundaryStage:

    def test_whole_word_inside_label(self):
        code_map = {"leisure ops": "501"}
        resolution = resolve_with_stage("leisure ops marketing", code_map, "location")
        assert resolution.code == "501"
        assert resolution.stage is MatchStage.WORD
        assert resolution.matched_key == "leisure ops"

    def test_longest_key_wins(self):
        code_map = {"leisure": "502", "leisure ops": "501"}
        assert resolve("north leisure ops team", code_map, "location") == "501"

    def test_short_keys_allowed_at_three_characters(self):
        code_map = {"gym": "310"}
        assert resolve("gym floor", code_map, "location") == "310"

    def test_keys_below_minimum_ignored(self):
        code_map = {"pt": "501"}
        assert resolve("pt sessions", code_map, "department") == UNKNOWN

    def test_partial_word_not_a_word_match(self):
        code_map = {"gym": "310"}
        # "gymnasium" contains "gym" but not as a word, and "gym" is too
        # short for the substring stage
        assert resolve("gymnasium", code_map, "location") == UNKNOWN


class TestSubstringStage:

    def test_loose_containment_for_long_keys(self):
        code_map = {"arena": "125"}
        resolution = resolve_with_stage("manchesterarena", code_map, "location")
        assert resolution.code == "125"
        assert resolution.stage is MatchStage.SUBSTRING

    def test_thresholds_are_configurable(self):
        code_map = {"gym": "310"}
        loose = MatchThresholds(min_word_key_length=3, min_substring_key_length=3)
        assert resolve("gymnasium", code_map, "location", thresholds=loose) == "310"


class TestDefault:

    def test_unknown_city_on_empty_map(self):
        assert resolve("Unknown City", {}, "location") == "UNKNOWN"

    def test_custom_default(self):
        assert resolve("nowhere", {"central": "500"}, "location", default="999") == "999"

    def test_empty_key_returns_default(self):
        resolution = resolve_with_stage("   ", {"central": "500"}, "location")
        assert resolution.code == UNKNOWN
        assert resolution.stage is MatchStage.EMPTY_KEY
        assert not resolution.matched

    def test_none_key_returns_default(self):
        assert resolve(None, {"central": "500"}, "location") == UNKNOWN


class TestDeterminism:

    @pytest.mark.parametrize("key", ["leisure ops marketing", "north arena", "?", ""])
    def test_same_input_same_code(self, key):
        code_map = {"leisure ops": "501", "leisure": "502", "arena": "125", "north": "130"}
        results = {resolve(key, code_map, "location") for _ in range(5)}
        assert len(results) == 1

    def test_equal_length_ties_break_alphabetically(self):
        code_map = {"north": "130", "arena": "125"}
        # both are 5-character whole words in the label; "arena" sorts first
        assert resolve("north arena", code_map, "location") == "125"


class TestResolverLogging:

    def test_miss_logged_as_warning(self, captured_logs):
        resolve("Unknown City", {}, "location")
        logs = captured_logs()
        failures = [r for r in logs if r["message"] == "code_resolution_failed"]
        assert len(failures) == 1
        assert failures[0]["level"] == "WARNING"
        assert failures[0]["category"] == "location"
        assert failures[0]["raw_key"] == "Unknown City"
        assert failures[0]["stages_tried"] == ["exact", "phrase", "word_boundary", "substring"]

    def test_fuzzy_hit_logged_with_stage(self, captured_logs):
        resolve("leisure ops marketing", {"leisure ops": "501"}, "location")
        hits = [r for r in captured_logs() if r["message"] == "code_resolved"]
        assert hits[0]["stage"] == "word_boundary"
        assert hits[0]["level"] == "INFO"
        assert hits[0]["code"] == "501"
