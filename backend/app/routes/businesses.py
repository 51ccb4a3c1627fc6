"""Business profile routes."""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from ..auth import CurrentUser
from ..logging_config import get_logger
from ..rate_limit import READ_LIMIT, STATE_CHANGE_LIMIT, limiter
from ..services import Projects

logger = get_logger("sweaquity.api.businesses")
router = APIRouter(prefix="/businesses", tags=["businesses"])


# =============================================================================
# Request/Response Models
# =============================================================================


class BusinessUpdate(BaseModel):
    """Create or update the caller's business profile."""

    company_name: str | None = Field(None, min_length=1, max_length=200)
    industry: str | None = None
    contact_email: str | None = None
    website: str | None = None
    location: str | None = None


class BusinessResponse(BaseModel):
    businesses_id: str
    company_name: str | None = None
    industry: str | None = None
    contact_email: str | None = None
    website: str | None = None
    location: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def to_business_response(business) -> BusinessResponse:
    return BusinessResponse(**asdict(business))


# =============================================================================
# Routes
# =============================================================================


@router.put("/me", response_model=BusinessResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def save_my_business(
    request: Request,
    payload: BusinessUpdate,
    auth: CurrentUser,
    projects: Projects,
):
    """Create or update the caller's business profile."""
    logger.info(f"PUT /businesses/me | user={auth.user_id}")
    if not auth.is_business:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only business accounts have a business profile",
        )
    business = projects.save_business(auth.user_id, **payload.model_dump(exclude_unset=True))
    return to_business_response(business)


@router.get("/me", response_model=BusinessResponse)
@limiter.limit(READ_LIMIT)
async def get_my_business(request: Request, auth: CurrentUser, projects: Projects):
    logger.info(f"GET /businesses/me | user={auth.user_id}")
    return to_business_response(projects.get_business(auth.user_id))


@router.get("/{business_id}", response_model=BusinessResponse)
@limiter.limit(READ_LIMIT)
async def get_business(request: Request, business_id: str, auth: CurrentUser, projects: Projects):
    logger.info(f"GET /businesses/{business_id} | user={auth.user_id}")
    return to_business_response(projects.get_business(business_id))
