from fastapi import APIRouter

from leave_approval.api.audit import audit_router
from leave_approval.api.leaves import leaves_router
from leave_approval.api.workflows import workflows_router

api_router = APIRouter()
api_router.include_router(leaves_router)
api_router.include_router(workflows_router)
api_router.include_router(audit_router)
