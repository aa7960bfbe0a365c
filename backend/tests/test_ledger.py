"""Integration tests for persisting and transitioning approval steps."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from leave_approval.exceptions import ConcurrentModification, InvalidTransition, NotFoundError
from leave_approval.models.enums import ApproverRole, StepStatus
from leave_approval.models.leave import LeaveRequest
from leave_approval.schemas.approval import ApprovalLevel
from leave_approval.services.ledger import create_steps, get_steps, reassign_step, update_step

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

LEVELS = [
    ApprovalLevel(
        level=1,
        approver_role=ApproverRole.SUPERVISOR,
        approver_staff_id="MFA-010",
        approver_name="Kofi Boateng",
    ),
    ApprovalLevel(level=2, approver_role=ApproverRole.UNIT_HEAD),
    ApprovalLevel(level=3, approver_role=ApproverRole.HR_OFFICER, can_delegate=False),
]


async def _leave_with_steps(session: AsyncSession) -> LeaveRequest:
    leave = LeaveRequest(
        staff_id="MFA-001",
        leave_type="Annual",
        days=5,
        start_date=date(2026, 3, 2),
        end_date=date(2026, 3, 6),
    )
    session.add(leave)
    await session.flush()
    await create_steps(session, leave.id, LEVELS)
    return leave


async def test_create_steps_opens_first_level_only(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)
    assert [s.level for s in steps] == [1, 2, 3]
    assert [s.previous_level_completed for s in steps] == [True, False, False]
    assert all(s.status == StepStatus.PENDING for s in steps)
    assert steps[0].approver_staff_id == "MFA-010"
    assert steps[2].can_delegate is False
    assert all(s.version == 1 for s in steps)


async def test_approve_step_records_approver_and_opens_next(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)

    await update_step(
        db_session,
        leave.id,
        1,
        StepStatus.APPROVED,
        expected=steps[0],
        actor_user_id="MFA-010",
        actor_name="Kofi Boateng",
        comments="Enjoy",
    )

    updated = await get_steps(db_session, leave.id)
    assert updated[0].status == StepStatus.APPROVED
    assert updated[0].approver_user_id == "MFA-010"
    assert updated[0].approval_date is not None
    assert updated[0].comments == "Enjoy"
    assert updated[0].version == 2
    assert updated[1].previous_level_completed is True
    assert updated[2].previous_level_completed is False


async def test_delegate_step_records_delegate(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)

    await update_step(
        db_session,
        leave.id,
        1,
        StepStatus.DELEGATED,
        expected=steps[0],
        actor_user_id="MFA-010",
        delegate_to="MFA-011",
        delegate_name="Esi Asante",
    )

    updated = await get_steps(db_session, leave.id)
    assert updated[0].status == StepStatus.DELEGATED
    assert updated[0].delegated_to == "MFA-011"
    assert updated[0].delegated_to_name == "Esi Asante"
    assert updated[0].delegation_date is not None
    assert updated[0].approval_date is None
    assert updated[1].previous_level_completed is False


async def test_skip_step_opens_next_without_approval_date(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)

    await update_step(db_session, leave.id, 1, StepStatus.SKIPPED, expected=steps[0], actor_user_id="admin")

    updated = await get_steps(db_session, leave.id)
    assert updated[0].status == StepStatus.SKIPPED
    assert updated[0].approval_date is None
    assert updated[1].previous_level_completed is True


async def test_stale_version_is_rejected(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    stale = (await get_steps(db_session, leave.id))[0]

    await update_step(db_session, leave.id, 1, StepStatus.APPROVED, expected=stale, actor_user_id="MFA-010")

    with pytest.raises(ConcurrentModification):
        await update_step(db_session, leave.id, 1, StepStatus.REJECTED, expected=stale, actor_user_id="MFA-099")

    current = (await get_steps(db_session, leave.id))[0]
    assert current.status == StepStatus.APPROVED
    assert current.approver_user_id == "MFA-010"


async def test_invalid_transition_is_rejected(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    step = (await get_steps(db_session, leave.id))[0]
    approved = step.model_copy(update={"status": StepStatus.APPROVED})

    with pytest.raises(InvalidTransition):
        await update_step(db_session, leave.id, 1, StepStatus.REJECTED, expected=approved)


async def test_missing_level_is_not_found(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    step = (await get_steps(db_session, leave.id))[0]
    ghost = step.model_copy(update={"level": 9})

    with pytest.raises(NotFoundError):
        await update_step(db_session, leave.id, 9, StepStatus.APPROVED, expected=ghost)


async def test_reassign_step_changes_only_the_approver(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)

    await reassign_step(
        db_session, leave.id, 2, expected=steps[1], approver_staff_id="MFA-021", approver_name="Efua Mensah"
    )

    after = (await get_steps(db_session, leave.id))[1]
    assert after.approver_staff_id == "MFA-021"
    assert after.approver_name == "Efua Mensah"
    assert after.status == StepStatus.PENDING
    assert after.version == 2
    assert after.updated_at is not None


async def test_reassign_step_with_stale_version_is_rejected(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)
    await reassign_step(db_session, leave.id, 2, expected=steps[1], approver_staff_id="MFA-021", approver_name=None)

    with pytest.raises(ConcurrentModification):
        await reassign_step(
            db_session, leave.id, 2, expected=steps[1], approver_staff_id="MFA-022", approver_name=None
        )


async def test_reassign_step_refuses_decided_level(db_session: AsyncSession) -> None:
    leave = await _leave_with_steps(db_session)
    steps = await get_steps(db_session, leave.id)
    await update_step(db_session, leave.id, 1, StepStatus.APPROVED, expected=steps[0], actor_user_id="MFA-010")
    decided = (await get_steps(db_session, leave.id))[0]

    with pytest.raises(InvalidTransition):
        await reassign_step(db_session, leave.id, 1, expected=decided, approver_staff_id="MFA-011", approver_name=None)
