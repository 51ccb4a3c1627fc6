"""Mapping of sweaquity domain errors to HTTP responses.

Services raise their own exception hierarchies; routes let them propagate
and the handlers registered here turn them into JSON errors:

- not found -> 404
- unauthorized actor -> 403
- duplicates and equity/contract conflicts -> 409
- anything else the services reject -> 400
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from sweaquity import applications, equity, projects, tickets

from .logging_config import get_logger

logger = get_logger("sweaquity.api.errors")

NOT_FOUND_ERRORS = (
    projects.ProjectNotFoundError,
    projects.TaskNotFoundError,
    projects.BusinessNotFoundError,
    applications.ApplicationNotFoundError,
    tickets.TicketNotFoundError,
)
FORBIDDEN_ERRORS = (
    projects.UnauthorizedError,
    applications.UnauthorizedError,
    tickets.UnauthorizedError,
    equity.UnauthorizedError,
)
CONFLICT_ERRORS = (
    applications.DuplicateApplicationError,
    applications.ContractNotAvailableError,
    projects.EquityExceededError,
    equity.EquityExceededError,
)
DOMAIN_ERRORS = (
    projects.ProjectServiceError,
    applications.ApplicationServiceError,
    tickets.TicketServiceError,
    equity.EquityServiceError,
)


def status_for(exc: Exception) -> int:
    """HTTP status code for a domain error."""
    if isinstance(exc, NOT_FOUND_ERRORS):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, FORBIDDEN_ERRORS):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, CONFLICT_ERRORS):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    code = status_for(exc)
    logger.warning(
        f"{request.method} {request.url.path} | {type(exc).__name__} | {code} | {exc}"
    )
    return JSONResponse(status_code=code, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    for error_cls in DOMAIN_ERRORS:
        app.add_exception_handler(error_cls, domain_error_handler)
