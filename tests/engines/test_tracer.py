"""Tests for the engine invocation tracer."""

from datetime import date
from decimal import Decimal

from entitlement_kernel.domain import WeekendRule
from entitlement_engines.tracer import _canonicalize, compute_input_fingerprint, traced_engine
from tests.conftest import make_person, make_policy, make_snapshot


@traced_engine("sample_engine", "2.1", fingerprint_fields=("snapshot", "year"))
def sample_engine(snapshot, *, year):
    return year * 2


class TestCanonicalize:

    def test_primitives(self):
        assert _canonicalize(None) == "null"
        assert _canonicalize(3) == "3"
        assert _canonicalize(date(2024, 1, 8)) == "2024-01-08"
        assert _canonicalize(Decimal("1.5")) == "1.5"

    def test_enum_uses_value(self):
        assert _canonicalize(WeekendRule.MOVE_TO_MONDAY) == "move_to_monday"

    def test_sets_sorted(self):
        assert _canonicalize(frozenset({3, 1, 2})) == "{1,2,3}"

    def test_dict_sorted_by_key(self):
        assert _canonicalize({"b": 1, "a": [2, 3]}) == "{a:[2,3],b:1}"

    def test_snapshot_uses_fingerprint(self):
        snapshot = make_snapshot()
        assert _canonicalize(snapshot) == f"snapshot:{snapshot.fingerprint}"


class TestFingerprint:

    def test_deterministic(self):
        kwargs = {"person_id": "alice", "year": 2024}
        assert compute_input_fingerprint(("person_id", "year"), kwargs) == compute_input_fingerprint(
            ("person_id", "year"), dict(kwargs),
        )

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("year",), {}) == compute_input_fingerprint(("year",), {"year": None})


class TestTracedEngine:

    def test_returns_result_and_emits_trace(self, captured_logs):
        assert sample_engine(make_snapshot(), year=2024) == 4048
        (trace,) = [r for r in captured_logs() if r["message"] == "ENTITLEMENT_ENGINE_TRACE"]
        assert trace["trace_type"] == "ENTITLEMENT_ENGINE_TRACE"
        assert trace["engine_name"] == "sample_engine"
        assert trace["engine_version"] == "2.1"
        assert trace["function"] == "sample_engine"
        assert trace["duration_ms"] >= 0

    def test_positional_snapshot_changes_fingerprint(self, captured_logs):
        first = make_snapshot(persons=(make_person(policies=(make_policy(amount=20),)),))
        second = make_snapshot(persons=(make_person(policies=(make_policy(amount=25),)),))
        sample_engine(first, year=2024)
        sample_engine(second, year=2024)
        traces = [r for r in captured_logs() if r["message"] == "ENTITLEMENT_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] != traces[1]["input_fingerprint"]

    def test_wraps_metadata(self):
        assert sample_engine.__name__ == "sample_engine"
