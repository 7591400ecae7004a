"""Account routes: sign-up, sign-in, password reset, deletion and metrics."""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, Request, status
from pydantic import EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from vidvault.auth import service
from vidvault.auth.middleware import AuthUser, get_current_user
from vidvault.config import settings
from vidvault.db import Database, get_database, get_db
from vidvault.notifications import EmailSender, get_email_sender
from vidvault.ratelimit import limiter
from vidvault.requestlog import log_request
from vidvault.schemas import CamelModel

router = APIRouter(dependencies=[Depends(log_request)])


# Request models
class SignUpRequest(CamelModel):
    """User registration request."""

    email: EmailStr
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    roles: Optional[List[str]] = Field(None, description="Ignored; new accounts are always CLIENT")


class SignInRequest(CamelModel):
    """User login request."""

    email: EmailStr
    password: str


class PasswordResetRequest(CamelModel):
    """Password reset OTP request."""

    email: EmailStr


class ResetPasswordRequest(CamelModel):
    """Password reset with OTP."""

    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=16)
    new_password: str = Field(..., min_length=8)


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    database: Database = Depends(get_database),
):
    """List users with their roles and agents, one page at a time."""
    return await service.list_users(database, page, limit)


@router.delete("/delete/{id}")
async def delete_user(
    id: int = Path(..., ge=1),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a user together with everything that references it."""
    return await service.delete_user(db, id)


@router.post("/request-password-reset")
@limiter.limit(settings.rate_limit_password_reset)
async def request_password_reset(
    request: Request,
    body: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    """Email a one-time password for resetting the account password."""
    return await service.request_password_reset(db, sender, body.email)


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    """Set a new password using the emailed one-time password."""
    return await service.reset_password(db, body.email, body.otp, body.new_password)


@router.post("/signin")
@limiter.limit(settings.rate_limit_auth)
async def signin(
    request: Request,
    body: SignInRequest,
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password."""
    return await service.login(db, body.email, body.password)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_auth)
async def signup(
    request: Request,
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a new CLIENT account."""
    return await service.sign_up(db, body.email, body.password, body.first_name, body.last_name)


@router.get("/user/count-by-month/{year}")
async def users_count_by_month(
    year: int,
    db: AsyncSession = Depends(get_db),
):
    """Monthly sign-up counts for a calendar year."""
    return await service.users_count_by_month(db, year)


@router.get("/me")
async def get_me(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get current user profile."""
    return await service.get_current_user_profile(db, current_user.id)
