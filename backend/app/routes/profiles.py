"""Job seeker profile routes.

Profiles are plain rows; the only rule applied here is skill normalization.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field, field_validator

from sweaquity.config import SKILL_LEVELS
from sweaquity.skills import unique_skills

from ..auth import CurrentUser
from ..database import Database, get_profile, upsert_profile
from ..logging_config import get_logger
from ..rate_limit import READ_LIMIT, STATE_CHANGE_LIMIT, limiter

logger = get_logger("sweaquity.api.profiles")
router = APIRouter(prefix="/profiles", tags=["profiles"])


# =============================================================================
# Request/Response Models
# =============================================================================


class SkillItem(BaseModel):
    skill: str = Field(..., min_length=1, max_length=100)
    level: str = "Intermediate"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v not in SKILL_LEVELS:
            raise ValueError(f"Level must be one of {', '.join(SKILL_LEVELS)}")
        return v


class SkillResponse(BaseModel):
    skill: str
    level: str


class ProfileUpdate(BaseModel):
    """Create or update the caller's job seeker profile."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    title: str | None = Field(None, max_length=200)
    bio: str | None = None
    location: str | None = None
    availability: str | None = None
    skills: list[SkillItem] | None = None


class ProfileResponse(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    title: str | None = None
    bio: str | None = None
    location: str | None = None
    availability: str | None = None
    skills: list[SkillResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


def to_profile_response(row: dict) -> ProfileResponse:
    return ProfileResponse(
        id=row["id"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        email=row.get("email"),
        title=row.get("title"),
        bio=row.get("bio"),
        location=row.get("location"),
        availability=row.get("availability"),
        skills=[
            SkillResponse(**s.to_dict())
            for s in unique_skills(row.get("skills") or [], skip_invalid=True)
        ],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


# =============================================================================
# Routes
# =============================================================================


@router.put("/me", response_model=ProfileResponse)
@limiter.limit(STATE_CHANGE_LIMIT)
async def save_my_profile(
    request: Request,
    payload: ProfileUpdate,
    auth: CurrentUser,
    db: Database,
):
    """Create or update the caller's profile. Duplicate skills are dropped."""
    logger.info(f"PUT /profiles/me | user={auth.user_id}")

    data = payload.model_dump(exclude_unset=True)
    if "skills" in data:
        data["skills"] = [s.to_dict() for s in unique_skills(data["skills"] or [])]
    if auth.email:
        data["email"] = auth.email
    data["updated_at"] = datetime.now(timezone.utc).isoformat()

    saved = await upsert_profile(db, auth.user_id, data)
    if not saved:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save profile",
        )
    return to_profile_response(saved)


@router.get("/me", response_model=ProfileResponse)
@limiter.limit(READ_LIMIT)
async def get_my_profile(request: Request, auth: CurrentUser, db: Database):
    logger.info(f"GET /profiles/me | user={auth.user_id}")
    profile = await get_profile(db, auth.user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return to_profile_response(profile)
