"""Session-cookie account endpoints."""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from split.config import get_settings
from split.dependencies.auth import require_user_api
from split.models.auth_token import AuthToken
from split.models.base import get_db
from split.models.user import User
from split.schemas.auth import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    RegisterRequest,
    UserRead,
)
from split.services.auth_service import generate_token, hash_password, sha256_hex, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, request: Request, db: AsyncSession = Depends(get_db)):
    email = body.email.strip().lower()
    display_name = body.display_name.strip()
    if not email or not display_name or not body.password:
        raise HTTPException(status_code=400, detail="All fields are required")
    _check_password(body.password)

    user = User(
        email=email,
        display_name=display_name,
        hashed_password=hash_password(body.password),
        last_login_at=datetime.now(timezone.utc),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")

    await db.refresh(user)
    request.session["user_id"] = str(user.id)
    return user


@router.post("/login", response_model=UserRead)
async def login(body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == body.email.strip().lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="This account has been deactivated")

    request.session["user_id"] = str(user.id)
    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(user)
    return user


@router.post("/logout", status_code=204)
async def logout(request: Request):
    request.session.clear()


@router.get("/me", response_model=UserRead)
async def me(user: User = Depends(require_user_api)):
    return user


@router.post("/password-reset", status_code=202)
async def request_password_reset(body: PasswordResetRequest, db: AsyncSession = Depends(get_db)):
    """Issue a reset token. The response is identical whether or not the email exists."""
    result = await db.execute(select(User).where(User.email == body.email.strip().lower()))
    user = result.scalar_one_or_none()

    if user and user.is_active:
        token, token_hash = generate_token()
        hours = get_settings().password_reset_token_hours
        db.add(AuthToken(
            user_id=user.id,
            purpose="password_reset",
            token_hash=token_hash,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
        ))
        # TODO: hand the token to the transactional email sender once one is wired up
        logger.info(f"Issued password reset token for user {user.id} (expires in {hours}h)")

    return {"message": "If that account exists, a reset link has been sent"}


@router.post("/password-reset/confirm")
async def confirm_password_reset(body: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    _check_password(body.new_password)

    result = await db.execute(
        select(AuthToken).where(
            AuthToken.token_hash == sha256_hex(body.token),
            AuthToken.purpose == "password_reset",
        )
    )
    auth_token = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)
    expires_at = auth_token.expires_at if auth_token else None
    if expires_at is not None and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if not auth_token or auth_token.used_at is not None or expires_at < now:
        raise HTTPException(status_code=400, detail="Invalid or expired token")

    user = await db.get(User, auth_token.user_id)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired token")

    user.hashed_password = hash_password(body.new_password)
    auth_token.used_at = now
    logger.info(f"Password reset completed for user {user.id}")
    return {"message": "Password updated"}
