from __future__ import annotations

import pytest

from leave_approval.schemas.staff import StaffOrganizationalInfo
from leave_approval.schemas.workflow import AllOfCondition, DayRangeCondition, FlagCondition, MembershipCondition
from leave_approval.services.conditions import MatchContext, dump_condition, matches, parse_condition

STAFF = StaffOrganizationalInfo(
    staff_id="MFA-001",
    position="Senior Officer",
    grade="B",
    unit="Administration Unit",
    directorate="Finance & Administration Directorate (F&A)",
    duty_station="HQ",
)


def _ctx(days: float = 5, leave_type: str = "Annual", **flags: bool) -> MatchContext:
    return MatchContext(staff=STAFF, leave_type=leave_type, days=days, flags=flags)


def test_no_condition_always_matches() -> None:
    assert matches(None, _ctx())


def test_membership_on_staff_attribute() -> None:
    assert matches(MembershipCondition(field="grade", values=["A", "B"]), _ctx())
    assert not matches(MembershipCondition(field="grade", values=["C"]), _ctx())


def test_membership_on_leave_type() -> None:
    cond = MembershipCondition(field="leave_type", values=["Sick", "Maternity"])
    assert matches(cond, _ctx(leave_type="Sick"))
    assert not matches(cond, _ctx(leave_type="Annual"))


def test_membership_on_enum_attribute_uses_value() -> None:
    assert matches(MembershipCondition(field="duty_station", values=["HQ"]), _ctx())


def test_membership_none_matches_missing_attribute() -> None:
    ctx = MatchContext(staff=StaffOrganizationalInfo(staff_id="X-1"), leave_type="Annual", days=1)
    assert matches(MembershipCondition(field="unit", values=[None]), ctx)
    assert not matches(MembershipCondition(field="unit", values=["Legal Unit"]), ctx)


@pytest.mark.parametrize(
    ("days", "expected"),
    [(0.5, False), (1, True), (5, True), (10, True), (10.5, False)],
)
def test_day_range_is_inclusive(days: float, expected: bool) -> None:
    assert matches(DayRangeCondition(min_days=1, max_days=10), _ctx(days=days)) is expected


def test_day_range_open_ended() -> None:
    assert matches(DayRangeCondition(min_days=20), _ctx(days=30))
    assert not matches(DayRangeCondition(max_days=3), _ctx(days=4))


def test_flag_condition() -> None:
    assert matches(FlagCondition(flag="is_director"), _ctx(is_director=True))
    assert not matches(FlagCondition(flag="is_director"), _ctx(is_director=False))
    assert matches(FlagCondition(flag="is_hrmd", value=False), _ctx())


def test_all_of_condition() -> None:
    cond = AllOfCondition(
        conditions=[
            FlagCondition(flag="is_unit_head", value=False),
            DayRangeCondition(max_days=10),
        ]
    )
    assert matches(cond, _ctx(days=5))
    assert not matches(cond, _ctx(days=15))
    assert not matches(cond, _ctx(days=5, is_unit_head=True))


def test_empty_all_of_matches() -> None:
    assert matches(AllOfCondition(), _ctx())


def test_parse_and_dump() -> None:
    data = {"kind": "flag", "flag": "is_chief_director", "value": True}
    cond = parse_condition(data)
    assert isinstance(cond, FlagCondition)
    assert dump_condition(cond) == data
    assert parse_condition(None) is None
    assert dump_condition(None) is None


def test_unknown_condition_type_raises() -> None:
    with pytest.raises(TypeError, match="Unsupported condition"):
        matches("grade == B", _ctx())  # type: ignore[arg-type]
