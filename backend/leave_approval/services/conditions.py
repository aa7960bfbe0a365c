from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter

from leave_approval.schemas.workflow import (
    AllOfCondition,
    Condition,
    DayRangeCondition,
    FlagCondition,
    MembershipCondition,
)

if TYPE_CHECKING:
    from leave_approval.schemas.staff import StaffOrganizationalInfo

_condition_adapter: TypeAdapter[Condition] = TypeAdapter(Condition)


@dataclass(frozen=True)
class MatchContext:
    """Everything a workflow condition may inspect."""

    staff: StaffOrganizationalInfo
    leave_type: str
    days: float
    flags: dict[str, bool] = field(default_factory=dict)

    def attribute(self, name: str) -> str | None:
        if name == "leave_type":
            return self.leave_type
        value = getattr(self.staff, name)
        if value is None:
            return None
        return str(value)


def parse_condition(data: dict[str, Any] | None) -> Condition | None:
    """Load a stored condition document; ``None`` means unconditional."""
    if data is None:
        return None
    return _condition_adapter.validate_python(data)


def dump_condition(condition: Condition | None) -> dict[str, Any] | None:
    if condition is None:
        return None
    return condition.model_dump(mode="json")


def matches(condition: Condition | None, ctx: MatchContext) -> bool:
    """Evaluate a condition expression against a requester and leave request."""
    if condition is None:
        return True
    if isinstance(condition, MembershipCondition):
        return ctx.attribute(condition.field) in condition.values
    if isinstance(condition, DayRangeCondition):
        if condition.min_days is not None and ctx.days < condition.min_days:
            return False
        return not (condition.max_days is not None and ctx.days > condition.max_days)
    if isinstance(condition, FlagCondition):
        return ctx.flags.get(condition.flag, False) == condition.value
    if isinstance(condition, AllOfCondition):
        return all(matches(c, ctx) for c in condition.conditions)
    msg = f"Unsupported condition: {condition!r}"
    raise TypeError(msg)
