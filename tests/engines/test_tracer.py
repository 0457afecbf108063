"""Tests for the engine tracer decorator."""

from decimal import Decimal

from payroll_engines.tracer import compute_input_fingerprint, traced_engine


@traced_engine("sample", "2.1", fingerprint_fields=("amount", "labels"))
def _sample_engine(*, amount, labels, other=None):
    return amount


class TestFingerprint:

    def test_deterministic(self):
        kwargs = {"amount": Decimal("10.00"), "labels": {"b": 1, "a": 2}}
        first = compute_input_fingerprint(("amount", "labels"), kwargs)
        assert first == compute_input_fingerprint(("amount", "labels"), dict(kwargs))
        assert len(first) == 16

    def test_dict_key_order_ignored(self):
        fields = ("labels",)
        assert compute_input_fingerprint(fields, {"labels": {"a": 1, "b": 2}}) == (
            compute_input_fingerprint(fields, {"labels": {"b": 2, "a": 1}})
        )

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("amount",), {}) == (
            compute_input_fingerprint(("amount",), {"amount": None})
        )

    def test_values_change_fingerprint(self):
        fields = ("amount",)
        assert compute_input_fingerprint(fields, {"amount": "1"}) != (
            compute_input_fingerprint(fields, {"amount": "2"})
        )


class TestTracedEngine:

    def test_result_passed_through(self):
        assert _sample_engine(amount=5, labels=[]) == 5

    def test_trace_emitted(self, captured_logs):
        _sample_engine(amount=Decimal("1"), labels=["x"], other="ignored")

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("amount", "labels"), {"amount": Decimal("1"), "labels": ["x"]}
        )
        assert trace["duration_ms"] >= 0
        assert trace["function"] == "_sample_engine"
