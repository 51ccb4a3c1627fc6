"""Authentication utilities for the Sweaquity backend.

Sign-up and login happen in Supabase Auth; this module only verifies the
access tokens it issues (HS256, signed with the project's JWT secret).
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings, get_settings

# Cookie name for httpOnly auth
AUTH_COOKIE_NAME = "sweaquity_auth"

ACCOUNT_TYPES = ("business", "job_seeker", "admin")

# Bearer token scheme
# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    settings: Settings,
    email: str | None = None,
    account_type: str = "job_seeker",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a Supabase-shaped access token (local development and tests)."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))

    to_encode = {
        "sub": user_id,
        "exp": expire,
        "iat": now,
        "role": "authenticated",
        "user_metadata": {"account_type": account_type},
    }
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthContext:
    """Context from the access token."""

    def __init__(
        self,
        user_id: str,
        email: str | None = None,
        account_type: str = "job_seeker",
    ):
        self.user_id = user_id
        self.email = email
        self.account_type = account_type

    @property
    def is_business(self) -> bool:
        return self.account_type == "business"


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext:
    """Get the current user from the bearer token or auth cookie."""
    # Try Authorization header first, then fall back to cookie
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(AUTH_COOKIE_NAME)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - provide Authorization header or auth cookie",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(token, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    metadata = payload.get("user_metadata") or {}
    account_type = metadata.get("account_type") or "job_seeker"
    if account_type not in ACCOUNT_TYPES:
        account_type = "job_seeker"

    return AuthContext(user_id=user_id, email=payload.get("email"), account_type=account_type)


# Type alias for dependency injection
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
