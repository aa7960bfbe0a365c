from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    error_code: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    error_code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """Leave request, approval step, staff record or workflow does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class WorkflowConfigurationError(AppError):
    """No approval chain could be determined for the requester."""

    error_code = "NO_WORKFLOW"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class SequentialApprovalViolation(AppError):
    """A step was acted on before every lower level was resolved."""

    error_code = "SEQUENTIAL_APPROVAL_REQUIRED"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class SelfApprovalViolation(AppError):
    """The acting approver is the requester."""

    error_code = "SELF_APPROVAL_NOT_ALLOWED"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class RoleMismatch(AppError):
    """The actor neither holds the step's role nor is its delegate."""

    error_code = "ROLE_MISMATCH"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class MissingMandatoryValidation(AppError):
    """Final approval attempted before HR Officer validation."""

    error_code = "HR_VALIDATION_REQUIRED"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class MissingActingOfficer(AppError):
    """Final approval attempted for a post with no acting officer assigned."""

    error_code = "ACTING_OFFICER_REQUIRED"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class InvalidTransition(AppError):
    """The requested step or leave status transition is not allowed."""

    error_code = "INVALID_TRANSITION"

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, error_code=error_code)


class ConcurrentModification(AppError):
    """Another action changed the step between read and write."""

    error_code = "CONCURRENT_MODIFICATION"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class DuplicateWorkflow(AppError):
    """A workflow with the same name, version and organisation already exists."""

    error_code = "DUPLICATE_WORKFLOW"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            error_code=exc.error_code,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            error_code="VALIDATION_ERROR",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
