"""Resolve the concrete person who must act for an approver role.

An acting appointment covering today takes precedence over the nominal
office holder; otherwise an active delegation from the holder applies,
and failing that the holder acts.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_approval.models.enums import ApproverRole, ApproverSource, DelegationStatus
from leave_approval.models.staff import ActingAppointment, ApprovalDelegation, StaffMember
from leave_approval.schemas.staff import ResolvedApprover
from leave_approval.services.org_structure import get_directorate_for_unit

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_UNIT_SCOPED = frozenset({ApproverRole.UNIT_HEAD, ApproverRole.HEAD_OF_INDEPENDENT_UNIT})
_DIRECTORATE_SCOPED = frozenset({ApproverRole.HEAD_OF_DEPARTMENT, ApproverRole.DIRECTOR})


def _to_resolved(staff: StaffMember, role: str, source: ApproverSource) -> ResolvedApprover:
    return ResolvedApprover(staff_id=staff.staff_id, name=staff.full_name, role=role, source=source)


async def get_active_staff(session: AsyncSession, staff_id: str | None) -> StaffMember | None:
    """Fetch a staff record, ignoring inactive staff."""
    if not staff_id:
        return None
    staff = await session.get(StaffMember, staff_id)
    if staff is None or not staff.active:
        return None
    return staff


def _scope(
    role: ApproverRole,
    requester: StaffMember | None,
    unit: str | None,
) -> tuple[str | None, str | None]:
    """Unit and directorate that bound who may hold ``role`` for the requester."""
    requester_unit = requester.unit if requester else None
    if role in _UNIT_SCOPED:
        return unit or requester_unit, None
    if role in _DIRECTORATE_SCOPED:
        directorate = requester.directorate if requester else None
        return None, directorate or get_directorate_for_unit(unit or requester_unit)
    return None, None


async def _find_nominal_holder(
    session: AsyncSession,
    role: ApproverRole,
    requester: StaffMember | None,
    unit: str | None,
) -> StaffMember | None:
    if role == ApproverRole.SUPERVISOR:
        if requester is None:
            return None
        return await get_active_staff(session, requester.immediate_supervisor_id)

    query = select(StaffMember).where(
        col(StaffMember.system_role) == role.value,
        col(StaffMember.active).is_(True),
    )
    if requester is not None:
        query = query.where(col(StaffMember.staff_id) != requester.staff_id)

    scope_unit, scope_directorate = _scope(role, requester, unit)
    if role in _UNIT_SCOPED:
        if not scope_unit:
            return None
        query = query.where(col(StaffMember.unit) == scope_unit)
    elif role in _DIRECTORATE_SCOPED:
        if not scope_directorate:
            return None
        query = query.where(col(StaffMember.directorate) == scope_directorate)

    result = await session.execute(query.order_by(col(StaffMember.staff_id)).limit(1))
    return result.scalar_one_or_none()


async def find_acting_appointment(
    session: AsyncSession,
    role: ApproverRole,
    holder_staff_id: str | None,
    today: date,
    *,
    unit: str | None = None,
    directorate: str | None = None,
) -> ActingAppointment | None:
    """Acting appointment for the role covering ``today``.

    With a named holder only that holder's appointments qualify. Without
    one, appointments to the vacant post qualify when the acting officer
    sits in the given unit or directorate. The most recently effective
    appointment wins.
    """
    query = (
        select(ActingAppointment)
        .join(StaffMember, col(StaffMember.staff_id) == col(ActingAppointment.acting_staff_id))
        .where(
            col(ActingAppointment.role) == role.value,
            col(ActingAppointment.effective_date) <= today,
            col(ActingAppointment.end_date) >= today,
            col(StaffMember.active).is_(True),
        )
    )
    if holder_staff_id is not None:
        query = query.where(col(ActingAppointment.holder_staff_id) == holder_staff_id)
    else:
        query = query.where(col(ActingAppointment.holder_staff_id).is_(None))
        if unit is not None:
            query = query.where(col(StaffMember.unit) == unit)
        if directorate is not None:
            query = query.where(col(StaffMember.directorate) == directorate)
    result = await session.execute(query.order_by(col(ActingAppointment.effective_date).desc()).limit(1))
    return result.scalar_one_or_none()


async def find_active_delegation(
    session: AsyncSession,
    delegator_staff_id: str,
    today: date,
) -> ApprovalDelegation | None:
    result = await session.execute(
        select(ApprovalDelegation)
        .where(
            col(ApprovalDelegation.delegator_staff_id) == delegator_staff_id,
            col(ApprovalDelegation.status) == DelegationStatus.ACTIVE.value,
            col(ApprovalDelegation.start_date) <= today,
            col(ApprovalDelegation.end_date) >= today,
        )
        .order_by(col(ApprovalDelegation.start_date).desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_approver(
    session: AsyncSession,
    role: ApproverRole,
    requesting_staff_id: str,
    unit: str | None = None,
    *,
    today: date | None = None,
) -> ResolvedApprover | None:
    """Find who must act for ``role`` on behalf of the requesting staff member.

    Substitutes never resolve to the requester. Returns ``None`` when no
    holder, acting officer or delegate can be determined.
    """
    today = today or date.today()
    requester = await session.get(StaffMember, requesting_staff_id)
    holder = await _find_nominal_holder(session, role, requester, unit)

    appointment = None
    if holder is not None:
        appointment = await find_acting_appointment(session, role, holder.staff_id, today)
    elif role != ApproverRole.SUPERVISOR:
        scope_unit, scope_directorate = _scope(role, requester, unit)
        if (role not in _UNIT_SCOPED or scope_unit) and (role not in _DIRECTORATE_SCOPED or scope_directorate):
            appointment = await find_acting_appointment(
                session, role, None, today, unit=scope_unit, directorate=scope_directorate
            )
    if appointment is not None and appointment.acting_staff_id != requesting_staff_id:
        acting = await get_active_staff(session, appointment.acting_staff_id)
        if acting is not None:
            logger.info(
                "Acting officer %s stands in for %s (holder %s)",
                acting.staff_id,
                role.value,
                holder.staff_id if holder else None,
            )
            return _to_resolved(acting, role.value, ApproverSource.ACTING)

    if holder is None:
        logger.warning("No approver found for role %s (requester %s)", role.value, requesting_staff_id)
        return None

    delegation = await find_active_delegation(session, holder.staff_id, today)
    if delegation is not None and delegation.delegatee_staff_id != requesting_staff_id:
        delegatee = await get_active_staff(session, delegation.delegatee_staff_id)
        if delegatee is not None:
            return _to_resolved(delegatee, role.value, ApproverSource.DELEGATION)

    source = ApproverSource.ASSIGNED if role == ApproverRole.SUPERVISOR else ApproverSource.ROLE_BASED
    return _to_resolved(holder, role.value, source)
