"""Account operations: sign-up, login, password reset, deletion and metrics.

Every function returns the ``{statusCode, message, data?}`` envelope and
raises a specific ``AppError`` subclass on failure. Classified errors are
never re-wrapped, so callers always see the original status code.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vidvault.auth.crypto import create_access_token, hash_password, issue_otp, otp_is_valid, verify_password
from vidvault.config import settings
from vidvault.db import Database, transaction
from vidvault.errors import BadRequestError, ConflictError, InternalError, NotFoundError, UnauthorizedError, envelope
from vidvault.logging_config import logger
from vidvault.models import Agent, AgentReview, Like, Role, Testimony, User, UserRole, Video
from vidvault.models.base import as_utc
from vidvault.notifications import EmailSender
from vidvault.pagination import paginate

PASSWORD_RESET_SUBJECT = "Password Reset - One-Time Password (OTP)"


def user_profile(user: User, roles: Optional[list[str]] = None) -> dict:
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "roles": roles if roles is not None else user.role_names,
    }


def user_summary(user: User) -> dict:
    return {
        **user_profile(user),
        "photo": user.photo,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
        "agents": [
            {"id": agent.id, "agencyName": agent.agency_name}
            for agent in user.agents
        ],
    }


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def list_users(database: Database, page: int = 1, limit: int = 10) -> dict:
    """Page through users with their roles and agents eagerly loaded."""
    stmt = (
        select(User)
        .options(selectinload(User.roles), selectinload(User.agents))
        .order_by(User.id)
    )
    result = await paginate(database, stmt, page, limit)
    return envelope(200, "Users fetched successfully", {
        "data": [user_summary(user) for user in result["data"]],
        "total": result["total"],
        "page": result["page"],
        "limit": result["limit"],
        "totalPages": result["total_pages"],
    })


async def login(db: AsyncSession, email: str, password: str) -> dict:
    """Check credentials and issue a token.

    Unknown email and wrong password fail the same way so the response does
    not reveal which accounts exist.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password):
        logger.info("Login rejected", email=email)
        raise UnauthorizedError("Invalid email or password")

    token = create_access_token(user.email)
    logger.info("User logged in", user_id=user.id)
    return envelope(200, "Login successful", {"token": token, **user_profile(user)})


async def sign_up(db: AsyncSession, email: str, password: str, first_name: str, last_name: str) -> dict:
    """Create a user and its CLIENT role in a single transaction."""
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("User already exists")

    hashed_password = hash_password(password)
    token = create_access_token(email)

    try:
        async with transaction(db):
            user = User(
                email=email,
                first_name=first_name,
                last_name=last_name,
                password=hashed_password,
            )
            db.add(user)
            await db.flush()

            db.add(UserRole(user_id=user.id, role=Role.CLIENT))
            await db.flush()
    except IntegrityError as e:
        # another sign-up for the same email committed first
        logger.info("Sign-up lost unique email race", email=email)
        raise ConflictError("User already exists") from e
    except Exception as e:
        logger.error("Sign-up transaction rolled back", email=email, error=str(e))
        raise InternalError("Failed to create user account") from e

    logger.info("User registered", user_id=user.id, email=email)
    return envelope(201, "User created successfully", {
        "token": token,
        "email": email,
        "firstName": first_name,
        "lastName": last_name,
        "roles": [Role.CLIENT.value],
    })


async def request_password_reset(db: AsyncSession, sender: EmailSender, email: str) -> dict:
    """Store a fresh OTP on the user and email it to them."""
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")

    otp, user.otp_expires_at = issue_otp()
    user.otp = otp
    await db.commit()

    body = (
        f"Dear {user.first_name or 'User'},\n\n"
        "You have requested to reset your password. Please use the following "
        "One-Time Password (OTP) to proceed with the password reset process:\n\n"
        f"OTP: {otp}\n\n"
        "This OTP is valid for a limited time. If you did not request a password "
        "reset, please disregard this email.\n\n"
        f"Best regards,\n{settings.support_signature}\n"
    )
    await sender.send(to=user.email, subject=PASSWORD_RESET_SUBJECT, body=body)

    logger.info("Password reset requested", user_id=user.id)
    return envelope(200, "OTP sent to your email")


async def reset_password(db: AsyncSession, email: str, otp: str, new_password: str) -> dict:
    """Replace the password if ``otp`` matches the stored, unexpired OTP."""
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")

    if not otp_is_valid(user.otp, user.otp_expires_at, otp):
        raise BadRequestError("Invalid or expired OTP")

    user.password = hash_password(new_password)
    user.otp = None
    user.otp_expires_at = None
    await db.commit()

    logger.info("Password reset", user_id=user.id)
    return envelope(200, "Password reset successfully")


async def delete_user(db: AsyncSession, user_id: int) -> dict:
    """Delete a user and every row referencing it, children first."""
    user = await db.get(
        User,
        user_id,
        options=[selectinload(User.agents).selectinload(Agent.agent_review)],
    )
    if user is None:
        raise NotFoundError("User not found")

    agents = list(user.agents)

    try:
        async with transaction(db):
            await db.execute(delete(Like).where(Like.user_id == user_id))
            await db.execute(delete(Testimony).where(Testimony.user_id == user_id))

            for agent in agents:
                if agent.agent_review is not None:
                    await db.execute(delete(AgentReview).where(AgentReview.id == agent.agent_review.id))

            if agents:
                await db.execute(delete(Agent).where(Agent.user_id == user_id))

            await db.execute(delete(Video).where(Video.user_id == user_id))
            await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
            await db.execute(delete(User).where(User.id == user_id))
    except SQLAlchemyError as e:
        logger.error("User deletion rolled back", user_id=user_id, error=str(e))
        raise InternalError("Failed to delete user") from e

    logger.info("User deleted", user_id=user_id, agents=len(agents))
    return envelope(200, "User and related activities deleted successfully")


async def users_count_by_month(db: AsyncSession, year: int) -> dict:
    """Count sign-ups per calendar month (UTC) of ``year``."""
    if not 1 <= year < 9999:
        raise BadRequestError("Invalid year")

    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    result = await db.execute(
        select(User.created_at).where(User.created_at >= start, User.created_at < end)
    )

    counts = [0] * 12
    for created_at in result.scalars():
        counts[as_utc(created_at).month - 1] += 1

    return envelope(200, "Users count by month fetched successfully", counts)


async def get_current_user_profile(db: AsyncSession, user_id: int) -> dict:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return envelope(200, "User fetched successfully", user_profile(user))
