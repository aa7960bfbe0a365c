"""Organisational structure catalogue and role/position classifier.

Every predicate here is a pure lookup against ``CIVIL_SERVICE_UNITS`` or a
position/grade title pattern. Unmatched input yields ``False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from leave_approval.models.enums import ApproverRole

if TYPE_CHECKING:
    from collections.abc import Iterable

    from leave_approval.schemas.staff import StaffOrganizationalInfo

PPBME = "Policy, Planning, Budgeting, Monitoring & Evaluation Directorate (PPBME)"
RSIMD = "Research, Statistics & Information Management Directorate (RSIMD)"
HRMD = "Human Resource Management & Development Directorate (HRMD)"
FINANCE_AND_ADMINISTRATION = "Finance & Administration Directorate (F&A)"


@dataclass(frozen=True)
class UnitConfig:
    """Where a unit sits in the structure.

    ``directorate`` is ``None`` for units that report straight to the Chief Director.
    """

    unit: str
    directorate: str | None
    sub_unit: str | None = None
    independent: bool = False
    special_workflow: str | None = None


CIVIL_SERVICE_UNITS: tuple[UnitConfig, ...] = (
    # Policy, Planning, Budgeting, Monitoring & Evaluation
    UnitConfig("Policy Coordination Unit", PPBME),
    UnitConfig("Planning & Budgeting Unit", PPBME),
    UnitConfig("Monitoring & Evaluation Unit", PPBME),
    UnitConfig("Fisheries Management & Aquaculture Development Unit", PPBME, "Culture & Capture Fisheries Sub-Unit"),
    UnitConfig("Fisheries Management & Aquaculture Development Unit", PPBME, "Post-Harvest & Marketing Sub-Unit"),
    # Research, Statistics & Information Management
    UnitConfig("Research & Statistics Unit", RSIMD),
    UnitConfig("Information Technology & Information Management Unit", RSIMD),
    UnitConfig("Documentation / Library Unit", RSIMD),
    # Human Resource Management & Development
    UnitConfig("Human Resource Planning Unit", HRMD, special_workflow="HRMD"),
    UnitConfig("Training & Development Unit", HRMD, special_workflow="HRMD"),
    UnitConfig("Performance Management Unit", HRMD, special_workflow="HRMD"),
    UnitConfig("Personnel / Records Unit", HRMD, special_workflow="HRMD"),
    # Finance & Administration
    UnitConfig("Administration Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Finance / Accounts Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Treasury / Payments Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Procurement & Stores Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Transport Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Estates / Facilities Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Records / Registry Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Protocol & Security Unit", FINANCE_AND_ADMINISTRATION),
    UnitConfig("Resource Mobilization / Donor Coordination Unit", FINANCE_AND_ADMINISTRATION),
    # Independent supporting units
    UnitConfig("Internal Audit Unit", None, independent=True, special_workflow="AUDIT"),
    UnitConfig("Legal Unit", None, independent=True),
    UnitConfig("Public Relations / Communications Unit", None, independent=True),
    UnitConfig("Right to Information (RTI) Unit", None, independent=True),
    UnitConfig("Client Service Unit", None, independent=True),
)

_UNIT_HEAD_TITLES = ("unit head", "head of unit", "unit manager")


def _names_match(configured: str, given: str) -> bool:
    a = configured.lower()
    b = given.strip().lower()
    return bool(b) and (a == b or b in a or a in b)


def get_unit_config(unit: str | None, sub_unit: str | None = None) -> UnitConfig | None:
    """Find a unit's catalogue entry, preferring an exact name match."""
    if not unit or not unit.strip():
        return None
    candidates = [c for c in CIVIL_SERVICE_UNITS if _names_match(c.unit, unit)]
    if sub_unit:
        with_sub = [c for c in candidates if c.sub_unit and _names_match(c.sub_unit, sub_unit)]
        if with_sub:
            candidates = with_sub
    exact = [c for c in candidates if c.unit.lower() == unit.strip().lower()]
    if exact:
        return exact[0]
    return candidates[0] if candidates else None


def get_directorate_for_unit(unit: str | None) -> str | None:
    config = get_unit_config(unit)
    return config.directorate if config else None


def get_units_for_directorate(directorate: str | None) -> list[UnitConfig]:
    """Units under a directorate; ``None`` lists the independent units."""
    if not directorate:
        return [c for c in CIVIL_SERVICE_UNITS if c.directorate is None or c.independent]
    return [c for c in CIVIL_SERVICE_UNITS if c.directorate == directorate]


def is_independent_unit(unit: str | None) -> bool:
    config = get_unit_config(unit)
    return config is not None and (config.independent or config.directorate is None)


def reports_directly_to_chief_director(unit: str | None, directorate: str | None) -> bool:
    """True for independent units and for units with no directorate at all."""
    no_directorate = not directorate or not directorate.strip()
    if not unit:
        return no_directorate
    config = get_unit_config(unit)
    if config is not None:
        return config.directorate is None or config.independent
    return no_directorate


def is_hrmd_unit(unit: str | None) -> bool:
    if not unit:
        return False
    config = get_unit_config(unit)
    if config is not None and (config.special_workflow == "HRMD" or config.directorate == HRMD):
        return True
    lowered = unit.lower()
    return "human resource management" in lowered or "hrmd" in lowered


def is_internal_audit_unit(unit: str | None) -> bool:
    config = get_unit_config(unit)
    return config is not None and config.special_workflow == "AUDIT"


def is_chief_director(position: str | None, grade: str | None) -> bool:
    return "chief director" in (position or "").lower() or "chief director" in (grade or "").lower()


def is_director(position: str | None, grade: str | None) -> bool:
    """Director-level post (including deputies), excluding the Chief Director."""
    if not position or is_chief_director(position, grade):
        return False
    return "director" in position.lower() or "director" in (grade or "").lower()


def is_unit_head(position: str | None) -> bool:
    lowered = (position or "").lower()
    return any(title in lowered for title in _UNIT_HEAD_TITLES)


def is_head_of_department(
    position: str | None,
    grade: str | None,
    unit: str | None,
    directorate: str | None,
) -> bool:
    """HoD is the Director of a core directorate or the head of an independent unit."""
    if is_director(position, grade):
        return True
    return is_independent_unit(unit) and is_unit_head(position)


def requires_acting_officer(
    position: str | None,
    grade: str | None,
    unit: str | None,
    critical_units: Iterable[str],
) -> bool:
    """Unit heads, directors and staff of critical units need a stand-in before leave."""
    if is_unit_head(position) or is_director(position, grade) or is_chief_director(position, grade):
        return True
    return unit is not None and unit in set(critical_units)


# ---------------------------------------------------------------------------
# Requester profile
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequesterProfile:
    """Classifier results for one staff member, computed once per selection."""

    staff_id: str
    is_chief_director: bool
    is_director: bool
    is_unit_head: bool
    is_head_of_department: bool
    is_hrmd: bool
    is_independent_unit: bool
    reports_to_chief_director: bool
    has_supervisor: bool
    has_unit: bool
    has_position_data: bool

    @property
    def is_hr_director(self) -> bool:
        return self.is_director and self.is_hrmd

    @property
    def is_hr_officer(self) -> bool:
        return self.is_hrmd and not self.is_director and not self.is_unit_head

    @property
    def is_head_of_independent_unit(self) -> bool:
        return self.is_independent_unit and self.is_head_of_department

    def held_roles(self) -> frozenset[ApproverRole]:
        """Approver roles the requester occupies; none of them may appear in their own chain."""
        roles: set[ApproverRole] = set()
        if self.is_chief_director:
            roles.add(ApproverRole.CHIEF_DIRECTOR)
        if self.is_director:
            roles.update({ApproverRole.DIRECTOR, ApproverRole.HEAD_OF_DEPARTMENT})
        if self.is_hr_director:
            roles.add(ApproverRole.HR_DIRECTOR)
        if self.is_unit_head:
            roles.add(ApproverRole.UNIT_HEAD)
        if self.is_head_of_independent_unit:
            roles.add(ApproverRole.HEAD_OF_INDEPENDENT_UNIT)
        if self.is_hr_officer:
            roles.add(ApproverRole.HR_OFFICER)
        return frozenset(roles)

    def flags(self) -> dict[str, bool]:
        """Flag values addressable from catalogue conditions."""
        return {
            "is_hrmd": self.is_hrmd,
            "is_independent_unit": self.is_independent_unit,
            "is_director": self.is_director,
            "is_unit_head": self.is_unit_head,
            "is_head_of_department": self.is_head_of_department,
            "is_chief_director": self.is_chief_director,
        }


def classify(staff: StaffOrganizationalInfo) -> RequesterProfile:
    """Build the requester profile from organisational info."""
    return RequesterProfile(
        staff_id=staff.staff_id,
        is_chief_director=is_chief_director(staff.position, staff.grade),
        is_director=is_director(staff.position, staff.grade),
        is_unit_head=is_unit_head(staff.position),
        is_head_of_department=is_head_of_department(staff.position, staff.grade, staff.unit, staff.directorate),
        is_hrmd=is_hrmd_unit(staff.unit),
        is_independent_unit=is_independent_unit(staff.unit),
        reports_to_chief_director=reports_directly_to_chief_director(staff.unit, staff.directorate),
        has_supervisor=bool(staff.immediate_supervisor_id),
        has_unit=bool(staff.unit),
        has_position_data=bool(staff.unit or staff.position.strip()),
    )
