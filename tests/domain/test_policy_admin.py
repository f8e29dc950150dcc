"""
Tests for the administrative snapshot transforms.

Covers:
- Category deletion cascade
- Add-year policy replication
- Weekend rule switching and lieu policy provisioning
"""

from datetime import date
from decimal import Decimal

from entitlement_kernel.domain import (
    AccrualRule,
    Allocation,
    Category,
    CategoryClass,
    WeekendRule,
)
from entitlement_kernel.domain.policy_admin import (
    change_weekend_rule,
    ensure_lieu_policy,
    remove_category,
    replace_person,
    replicate_policies,
)
from tests.conftest import carry, make_category, make_person, make_policy, make_snapshot, make_trip


class TestRemoveCategory:

    def setup_method(self):
        self.snapshot = make_snapshot(
            persons=(
                make_person(policies=(
                    make_policy("annual", 2024),
                    make_policy("sick", 2024, amount=10),
                )),
            ),
            categories=(make_category("annual"), make_category("sick", category_class=CategoryClass.SICK)),
            trips=(
                make_trip(date(2024, 3, 4), date(2024, 3, 5), category_id="sick", trip_id="t-sick"),
                make_trip(
                    date(2024, 4, 1), date(2024, 4, 5),
                    category_id=None,
                    trip_id="t-split",
                    allocations=(Allocation("annual", 3), Allocation("sick", 2)),
                ),
                make_trip(date(2024, 5, 6), date(2024, 5, 6), trip_id="t-annual"),
            ),
        )

    def test_cascade(self):
        result = remove_category(self.snapshot, "sick")

        assert result.category("sick") is None
        assert [p.category_id for p in result.person("alice").policies] == ["annual"]
        trips = {t.trip_id: t for t in result.trips}
        assert trips["t-sick"].category_id is None
        assert [a.category_id for a in trips["t-split"].allocations] == ["annual"]
        assert trips["t-annual"] == self.snapshot.trips[2]

    def test_input_unchanged(self):
        remove_category(self.snapshot, "sick")
        assert self.snapshot.category("sick") is not None
        assert len(self.snapshot.person("alice").policies) == 2

    def test_logs_removal(self, captured_logs):
        remove_category(self.snapshot, "sick")
        record = next(r for r in captured_logs() if r["message"] == "category_removed")
        assert record["policies_removed"] == 1
        assert record["trips_touched"] == 2


class TestReplicatePolicies:

    def test_copies_previous_year(self):
        person = make_person(
            policies=(
                make_policy("annual", 2023, amount=20, carry_over=carry(5)),
                make_policy("sick", 2023, amount=10),
            ),
            active_years=(2023,),
        )
        result = replicate_policies(person, 2024)

        copied = result.policies_for_year(2024)
        assert [p.category_id for p in copied] == ["annual", "sick"]
        assert copied[0].accrual.amount == Decimal("20")
        assert copied[0].carry_over.enabled
        assert result.active_years == (2023, 2024)

    def test_replaces_existing_target_year(self):
        person = make_person(policies=(
            make_policy("annual", 2023, amount=20),
            make_policy("annual", 2024, amount=99),
        ))
        result = replicate_policies(person, 2024)
        assert result.policy_for("annual", 2024).accrual.amount == Decimal("20")
        assert len(result.policies) == 2

    def test_no_previous_year_only_marks_year_active(self):
        person = make_person(policies=(make_policy("annual", 2020),))
        result = replicate_policies(person, 2024)
        assert result.policies == person.policies
        assert 2024 in result.active_years


class TestWeekendRule:

    def setup_method(self):
        self.categories = (
            make_category("annual"),
            Category(
                category_id="lieu",
                name="Time in Lieu",
                category_class=CategoryClass.LIEU,
                default_accrual=AccrualRule(amount=0),
                default_carry_over=carry(3),
            ),
        )

    def test_switch_to_lieu_adds_lieu_policy(self):
        person = make_person(policies=(make_policy("annual", 2024),))
        result = change_weekend_rule(person, WeekendRule.ACCRUE_TO_LIEU, self.categories, 2024)

        assert result.weekend_rule == WeekendRule.ACCRUE_TO_LIEU
        lieu_policy = result.policy_for("lieu", 2024)
        assert lieu_policy is not None
        assert not lieu_policy.carry_over.enabled

    def test_switch_to_monday_adds_nothing(self):
        person = make_person(policies=(make_policy("annual", 2024),))
        result = change_weekend_rule(person, WeekendRule.MOVE_TO_MONDAY, self.categories, 2024)
        assert result.weekend_rule == WeekendRule.MOVE_TO_MONDAY
        assert result.policy_for("lieu", 2024) is None

    def test_existing_lieu_policy_kept(self):
        existing = make_policy("lieu", 2024, amount=2)
        person = make_person(policies=(existing,))
        assert ensure_lieu_policy(person, self.categories, 2024) is person

    def test_no_lieu_category(self):
        person = make_person()
        assert ensure_lieu_policy(person, (make_category("annual"),), 2024) is person


class TestReplacePerson:

    def test_swaps_by_id(self):
        snapshot = make_snapshot(persons=(make_person(), make_person(person_id="bob")))
        edited = make_person(weekend_rule=WeekendRule.MOVE_TO_MONDAY)
        result = replace_person(snapshot, edited)
        assert result.person("alice").weekend_rule == WeekendRule.MOVE_TO_MONDAY
        assert result.person("bob") is snapshot.person("bob")
