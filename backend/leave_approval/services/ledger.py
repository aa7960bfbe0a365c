# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from leave_approval.exceptions import ConcurrentModification, InvalidTransition, NotFoundError
from leave_approval.models.approval import ApprovalStep
from leave_approval.models.base import now_utc
from leave_approval.models.enums import StepStatus
from leave_approval.schemas.approval import ApprovalStepView
from leave_approval.services.guards import is_valid_step_transition

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_approval.schemas.approval import ApprovalLevel

logger = logging.getLogger(__name__)


async def create_steps(
    session: AsyncSession,
    leave_request_id: uuid.UUID,
    levels: Sequence[ApprovalLevel],
) -> list[ApprovalStep]:
    """Persist one step per level; the caller commits."""
    steps: list[ApprovalStep] = []
    for level in sorted(levels, key=lambda lv: lv.level):
        completed = all(s.status in (StepStatus.APPROVED, StepStatus.SKIPPED) for s in steps)
        step = ApprovalStep(
            leave_request_id=leave_request_id,
            level=level.level,
            approver_role=level.approver_role.value,
            approver_staff_id=level.approver_staff_id,
            approver_name=level.approver_name,
            status=level.status.value,
            can_skip=level.can_skip,
            can_delegate=level.can_delegate,
            previous_level_completed=completed,
        )
        session.add(step)
        steps.append(step)
    await session.flush()
    return steps


async def get_steps(session: AsyncSession, leave_request_id: uuid.UUID) -> list[ApprovalStepView]:
    """All steps of a leave request ordered by level."""
    result = await session.execute(
        select(ApprovalStep)
        .where(col(ApprovalStep.leave_request_id) == leave_request_id)
        .order_by(col(ApprovalStep.level))
        .execution_options(populate_existing=True)
    )
    return [ApprovalStepView.model_validate(s) for s in result.scalars().all()]


async def update_step(
    session: AsyncSession,
    leave_request_id: uuid.UUID,
    level: int,
    new_status: StepStatus,
    *,
    expected: ApprovalStepView,
    actor_user_id: str | None = None,
    actor_name: str | None = None,
    comments: str | None = None,
    delegate_to: str | None = None,
    delegate_name: str | None = None,
) -> None:
    """Write a transition on one step if nobody changed it since ``expected`` was read.

    Guards are the caller's job. Approving or skipping a step opens the next
    level. The caller commits.
    """
    if not is_valid_step_transition(expected.status, new_status):
        raise InvalidTransition(f"Cannot move level {level} from {expected.status} to {new_status}")

    now = now_utc()
    values: dict[str, object] = {"status": new_status.value, "version": expected.version + 1, "updated_at": now}
    if new_status in (StepStatus.APPROVED, StepStatus.REJECTED):
        values.update(
            approver_user_id=actor_user_id,
            approver_name=actor_name or expected.approver_name,
            approval_date=now,
            comments=comments,
        )
    elif new_status == StepStatus.DELEGATED:
        values.update(
            delegated_to=delegate_to,
            delegated_to_name=delegate_name,
            delegation_date=now,
            comments=comments,
        )
    else:
        values.update(approver_user_id=actor_user_id, comments=comments)

    result = await session.execute(
        update(ApprovalStep)
        .where(
            col(ApprovalStep.leave_request_id) == leave_request_id,
            col(ApprovalStep.level) == level,
            col(ApprovalStep.status) == expected.status.value,
            col(ApprovalStep.version) == expected.version,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        exists = await session.execute(
            select(col(ApprovalStep.id)).where(
                col(ApprovalStep.leave_request_id) == leave_request_id,
                col(ApprovalStep.level) == level,
            )
        )
        if exists.first() is None:
            raise NotFoundError(f"Approval level {level} not found for leave request {leave_request_id}")
        raise ConcurrentModification(f"Approval level {level} was changed by another action; reload and retry")

    if new_status in (StepStatus.APPROVED, StepStatus.SKIPPED):
        await session.execute(
            update(ApprovalStep)
            .where(
                col(ApprovalStep.leave_request_id) == leave_request_id,
                col(ApprovalStep.level) == level + 1,
            )
            .values(previous_level_completed=True, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    logger.info(
        "Leave %s level %d: %s -> %s by %s",
        leave_request_id,
        level,
        expected.status.value,
        new_status.value,
        actor_user_id,
    )


async def reassign_step(
    session: AsyncSession,
    leave_request_id: uuid.UUID,
    level: int,
    *,
    expected: ApprovalStepView,
    approver_staff_id: str,
    approver_name: str | None,
) -> None:
    """Point an open step at a different approver; the status is unchanged.

    Uses the same version check as ``update_step``. The caller commits.
    """
    if expected.status != StepStatus.PENDING:
        raise InvalidTransition(f"Level {level} is {expected.status}; only pending levels can be reassigned")

    result = await session.execute(
        update(ApprovalStep)
        .where(
            col(ApprovalStep.leave_request_id) == leave_request_id,
            col(ApprovalStep.level) == level,
            col(ApprovalStep.status) == expected.status.value,
            col(ApprovalStep.version) == expected.version,
        )
        .values(
            approver_staff_id=approver_staff_id,
            approver_name=approver_name,
            version=expected.version + 1,
            updated_at=now_utc(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConcurrentModification(f"Approval level {level} was changed by another action; reload and retry")
    logger.info(
        "Leave %s level %d reassigned from %s to %s",
        leave_request_id,
        level,
        expected.approver_staff_id,
        approver_staff_id,
    )
