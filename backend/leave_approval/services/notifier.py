# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from leave_approval.models.enums import LeaveStatus
from leave_approval.schemas.approval import ApprovalStepView


class ApproverNotification(BaseModel):
    """A next-approver notice handed to the notification channel."""

    leave_request_id: uuid.UUID
    requester_staff_id: str
    approvers: list[ApprovalStepView]
    leave_status: LeaveStatus


@runtime_checkable
class ApproverNotifier(Protocol):
    """Interface for the email/push notification sender."""

    async def notify_next(self, notification: ApproverNotification) -> None:
        """Tell the next approver(s), or the requester once the chain is finished."""
        ...


class InMemoryApproverNotifier:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self.sent: list[ApproverNotification] = []

    async def notify_next(self, notification: ApproverNotification) -> None:
        self.sent.append(notification)

    def clear(self) -> None:
        self.sent.clear()


_notifier: ApproverNotifier = InMemoryApproverNotifier()


def get_notifier() -> ApproverNotifier:
    """Return the notifier in use."""
    return _notifier


def set_notifier(notifier: ApproverNotifier) -> None:
    """Override the notifier (for testing or production wiring)."""
    global _notifier
    _notifier = notifier
