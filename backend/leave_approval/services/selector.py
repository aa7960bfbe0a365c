# ruff: noqa: TC003
"""Decide which ordered approval levels apply to a leave request.

Workflow providers are tried in order and the first one that returns a
selection wins: the configurable catalogue, then the fallback rule table.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import ValidationError

from leave_approval.models.enums import ApproverRole
from leave_approval.schemas.approval import ApprovalLevel
from leave_approval.services.approver import resolve_approver
from leave_approval.services.conditions import MatchContext
from leave_approval.services.fallback_rules import build_fallback_chain
from leave_approval.services.org_structure import RequesterProfile, classify
from leave_approval.services.workflow import convert_workflow_to_levels, find_matching_workflow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_approval.schemas.staff import StaffOrganizationalInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionRequest:
    """Inputs to workflow selection."""

    staff: StaffOrganizationalInfo
    leave_type: str
    days: float
    organization_id: str | None = None
    profile: RequesterProfile = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "profile", classify(self.staff))

    def match_context(self) -> MatchContext:
        return MatchContext(
            staff=self.staff,
            leave_type=self.leave_type,
            days=self.days,
            flags=self.profile.flags(),
        )


@dataclass(frozen=True)
class WorkflowSelection:
    """The chosen chain and where it came from."""

    source: str
    levels: list[ApprovalLevel]
    workflow_definition_id: uuid.UUID | None = None


@runtime_checkable
class WorkflowProvider(Protocol):
    """Something that may know the approval chain for a request."""

    name: str

    async def select(self, session: AsyncSession, request: SelectionRequest) -> WorkflowSelection | None:
        """Return a selection, or ``None`` to let the next provider try."""
        ...


def _numbered(roles: Sequence[ApproverRole]) -> list[ApprovalLevel]:
    return [ApprovalLevel(level=i, approver_role=role) for i, role in enumerate(roles, start=1)]


class CatalogueProvider:
    """Active workflow definitions stored in the catalogue."""

    name = "catalogue"

    async def select(self, session: AsyncSession, request: SelectionRequest) -> WorkflowSelection | None:
        ctx = request.match_context()
        found = await find_matching_workflow(session, ctx, request.organization_id)
        if found is None:
            return None
        definition, steps = found
        levels = convert_workflow_to_levels(steps, ctx, request.profile.held_roles())
        if not levels:
            logger.warning(
                "Workflow %s v%d left no levels for %s",
                definition.name,
                definition.version,
                request.staff.staff_id,
            )
            return None
        return WorkflowSelection(
            source=f"catalogue:{definition.name} v{definition.version}",
            levels=levels,
            workflow_definition_id=definition.id,
        )


class FallbackRuleProvider:
    """The hard-coded civil-service routing table."""

    name = "fallback"

    async def select(self, session: AsyncSession, request: SelectionRequest) -> WorkflowSelection | None:
        return build_fallback_selection(request.staff)


def build_fallback_selection(staff: StaffOrganizationalInfo) -> WorkflowSelection | None:
    """Levels from the fallback rule table alone, without approver resolution."""
    chain = build_fallback_chain(classify(staff))
    if chain is None:
        return None
    rule_name, roles = chain
    if not roles:
        return None
    return WorkflowSelection(source=f"fallback:{rule_name}", levels=_numbered(roles))


DEFAULT_PROVIDERS: tuple[WorkflowProvider, ...] = (CatalogueProvider(), FallbackRuleProvider())


async def assign_approvers(
    session: AsyncSession,
    levels: Sequence[ApprovalLevel],
    staff: StaffOrganizationalInfo,
    *,
    today: date | None = None,
) -> list[ApprovalLevel]:
    """Fill in the concrete approver for each level where one can be resolved.

    An unresolvable SUPERVISOR level keeps the raw supervisor id without a name.
    """
    assigned: list[ApprovalLevel] = []
    for level in levels:
        approver = await resolve_approver(session, level.approver_role, staff.staff_id, staff.unit, today=today)
        if approver is not None:
            level = level.model_copy(update={"approver_staff_id": approver.staff_id, "approver_name": approver.name})
        elif level.approver_role == ApproverRole.SUPERVISOR and staff.immediate_supervisor_id:
            level = level.model_copy(update={"approver_staff_id": staff.immediate_supervisor_id})
        assigned.append(level)
    return assigned


async def select_workflow(
    session: AsyncSession,
    request: SelectionRequest,
    providers: Sequence[WorkflowProvider] = DEFAULT_PROVIDERS,
    *,
    today: date | None = None,
) -> WorkflowSelection | None:
    """Ask each provider in turn; resolve approvers on the first selection."""
    for provider in providers:
        try:
            selection = await provider.select(session, request)
        except ValidationError:
            logger.warning(
                "Workflow provider %s has invalid stored conditions; trying next", provider.name, exc_info=True
            )
            continue
        if selection is None:
            continue
        levels = await assign_approvers(session, selection.levels, request.staff, today=today)
        logger.info(
            "Selected %s for staff %s (%s, %s days): %s",
            selection.source,
            request.staff.staff_id,
            request.leave_type,
            request.days,
            [lv.approver_role.value for lv in levels],
        )
        return WorkflowSelection(
            source=selection.source,
            levels=levels,
            workflow_definition_id=selection.workflow_definition_id,
        )
    logger.warning("No workflow could be determined for staff %s", request.staff.staff_id)
    return None


async def select_approval_levels(
    session: AsyncSession,
    staff: StaffOrganizationalInfo,
    leave_type: str,
    days: float,
    organization_id: str | None = None,
) -> list[ApprovalLevel]:
    """Ordered pending approval levels for a request; empty when nothing applies."""
    selection = await select_workflow(session, SelectionRequest(staff, leave_type, days, organization_id))
    return selection.levels if selection is not None else []
