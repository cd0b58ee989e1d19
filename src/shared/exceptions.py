from typing import Any, Dict, Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import status

# ───────────────────────── Base & Domain Exceptions ─────────────────────────
class DomainError(Exception):
    """Base class for domain-level errors. Services should raise these, never HTTPException."""
    code: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str
    details: Optional[Dict[str, Any]]

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.message = message or self.__class__.__name__
        self.details = details


class NotFoundError(DomainError):
    # generic; set a specific code via constructor if needed
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(DomainError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InternalServerError(DomainError):
    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# ───────────────────────── Tenancy Exceptions ─────────────────────────

class UnknownCollection(ValidationError):
    code = "unknown_collection"


class TenantNotFound(NotFoundError):
    code = "tenant_not_found"


class UniquenessViolation(ConflictError):
    code = "uniqueness_violation"


class ProvisioningFailed(InternalServerError):
    """The root tenant record could not be created; nothing else was attempted."""
    code = "provisioning_failed"


class PartialProvisioningFailure(InternalServerError):
    """A step after tenant creation failed; earlier writes are left in place."""
    code = "partial_provisioning_failure"


class CheckFailed(InternalServerError):
    code = "check_failed"


class AlertPersistFailed(InternalServerError):
    code = "alert_persist_failed"


class BackingStoreUnavailable(DomainError):
    code = "backing_store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# ───────────────────────────── Helpers ──────────────────────────────────────

def _problem(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"code": code, "message": message}
    if details:
        body["details"] = details
    return body


# ─────────────────────────── Registration ───────────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def handle_app_error(req: Request, exc: DomainError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_problem(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(req: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_problem("validation_error", "Request validation failed", {"errors": exc.errors()}),
        )
