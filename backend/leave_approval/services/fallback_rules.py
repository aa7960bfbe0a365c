"""Hard-coded routing table used when no catalogue workflow matches.

Rules are evaluated in order and the first whose predicate holds builds the
chain. Predicates are written so that at most one rule can hold for any
profile; ``test_fallback_rules`` pins that.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from leave_approval.models.enums import ApproverRole
from leave_approval.services.org_structure import RequesterProfile

ChainBuilder = Callable[[RequesterProfile], list[ApproverRole]]
Predicate = Callable[[RequesterProfile], bool]


@dataclass(frozen=True)
class FallbackRule:
    """A named routing case: who it applies to and which roles must approve."""

    name: str
    applies: Predicate
    build: ChainBuilder


def _supervisor_and_unit_head(profile: RequesterProfile, *, supervisor_optional: bool) -> list[ApproverRole]:
    roles: list[ApproverRole] = []
    if profile.has_supervisor or not supervisor_optional:
        roles.append(ApproverRole.SUPERVISOR)
    if profile.has_unit:
        roles.append(ApproverRole.UNIT_HEAD)
    return roles


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _is_chief_director(p: RequesterProfile) -> bool:
    return p.is_chief_director


def _is_director(p: RequesterProfile) -> bool:
    return p.is_director and not p.is_hrmd


def _is_unit_head(p: RequesterProfile) -> bool:
    return (
        p.is_unit_head
        and not p.is_head_of_department
        and not p.is_director
        and not p.is_chief_director
        and not p.is_hrmd
    )


def _is_hr_director(p: RequesterProfile) -> bool:
    return p.is_hr_director


def _is_hr_officer(p: RequesterProfile) -> bool:
    return p.is_hr_officer and not p.is_chief_director


def _is_other_hrmd_staff(p: RequesterProfile) -> bool:
    return p.is_hrmd and not p.is_director and not p.is_hr_officer and not p.is_chief_director


def _is_head_of_independent_unit(p: RequesterProfile) -> bool:
    return p.is_head_of_independent_unit and not p.is_director and not p.is_chief_director and not p.is_hrmd


def _is_independent_unit_staff(p: RequesterProfile) -> bool:
    return (
        p.is_independent_unit
        and not p.is_head_of_department
        and not p.is_unit_head
        and not p.is_chief_director
        and not p.is_hrmd
    )


def _is_standard_staff(p: RequesterProfile) -> bool:
    return (
        p.has_position_data
        and not p.is_chief_director
        and not p.is_director
        and not p.is_unit_head
        and not p.is_hrmd
        and not p.is_independent_unit
    )


# ---------------------------------------------------------------------------
# Chain builders
# ---------------------------------------------------------------------------


def _chief_director_chain(_: RequesterProfile) -> list[ApproverRole]:
    # Nobody outranks the Chief Director; the leave is recorded, not approved.
    return [ApproverRole.HR_DIRECTOR]


def _director_chain(_: RequesterProfile) -> list[ApproverRole]:
    return [ApproverRole.HR_OFFICER, ApproverRole.CHIEF_DIRECTOR]


def _unit_head_chain(p: RequesterProfile) -> list[ApproverRole]:
    if p.is_independent_unit or p.reports_to_chief_director:
        routing = ApproverRole.CHIEF_DIRECTOR
    else:
        routing = ApproverRole.HEAD_OF_DEPARTMENT
    return [routing, ApproverRole.HR_OFFICER, ApproverRole.CHIEF_DIRECTOR]


def _hr_director_chain(_: RequesterProfile) -> list[ApproverRole]:
    return [ApproverRole.CHIEF_DIRECTOR]


def _hr_officer_chain(_: RequesterProfile) -> list[ApproverRole]:
    # An HR officer cannot validate their own leave, so HR validation is left out.
    return [ApproverRole.HR_DIRECTOR, ApproverRole.CHIEF_DIRECTOR]


def _other_hrmd_chain(p: RequesterProfile) -> list[ApproverRole]:
    return [
        *_supervisor_and_unit_head(p, supervisor_optional=True),
        ApproverRole.HR_DIRECTOR,
        ApproverRole.CHIEF_DIRECTOR,
    ]


def _head_of_independent_unit_chain(_: RequesterProfile) -> list[ApproverRole]:
    return [ApproverRole.HR_OFFICER, ApproverRole.CHIEF_DIRECTOR]


def _independent_unit_staff_chain(p: RequesterProfile) -> list[ApproverRole]:
    return [
        *_supervisor_and_unit_head(p, supervisor_optional=False),
        ApproverRole.HEAD_OF_INDEPENDENT_UNIT,
        ApproverRole.HR_OFFICER,
        ApproverRole.CHIEF_DIRECTOR,
    ]


def _standard_chain(p: RequesterProfile) -> list[ApproverRole]:
    if p.is_independent_unit:
        head = ApproverRole.HEAD_OF_INDEPENDENT_UNIT
    elif p.reports_to_chief_director:
        head = ApproverRole.CHIEF_DIRECTOR
    else:
        head = ApproverRole.HEAD_OF_DEPARTMENT
    return [
        *_supervisor_and_unit_head(p, supervisor_optional=False),
        head,
        ApproverRole.HR_OFFICER,
        ApproverRole.CHIEF_DIRECTOR,
    ]


FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule("chief-director-leave", _is_chief_director, _chief_director_chain),
    FallbackRule("director-leave", _is_director, _director_chain),
    FallbackRule("unit-head-leave", _is_unit_head, _unit_head_chain),
    FallbackRule("hr-director-leave", _is_hr_director, _hr_director_chain),
    FallbackRule("hr-officer-leave", _is_hr_officer, _hr_officer_chain),
    FallbackRule("hrmd-staff-leave", _is_other_hrmd_staff, _other_hrmd_chain),
    FallbackRule("head-of-independent-unit-leave", _is_head_of_independent_unit, _head_of_independent_unit_chain),
    FallbackRule("independent-unit-staff-leave", _is_independent_unit_staff, _independent_unit_staff_chain),
    FallbackRule("standard-staff-leave", _is_standard_staff, _standard_chain),
)


def match_fallback_rule(profile: RequesterProfile) -> FallbackRule | None:
    """Return the first rule that applies to the requester, if any."""
    for rule in FALLBACK_RULES:
        if rule.applies(profile):
            return rule
    return None


def build_fallback_chain(profile: RequesterProfile) -> tuple[str, list[ApproverRole]] | None:
    """Role chain from the first matching rule with the requester's own roles removed."""
    rule = match_fallback_rule(profile)
    if rule is None:
        return None
    held = profile.held_roles()
    return rule.name, [role for role in rule.build(profile) if role not in held]
