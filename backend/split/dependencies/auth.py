"""Authentication dependencies for FastAPI routes."""

import secrets
import uuid
from datetime import datetime, timezone

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from split.config import get_settings
from split.models.base import get_db
from split.models.user import User
from split.models.workspace import Workspace
from split.models.workspace_api_key import WorkspaceApiKey
from split.services.auth_service import looks_like_api_key, sha256_hex


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User | None:
    """Return the logged-in user or None."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None
    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        return None
    result = await db.execute(
        select(User).where(User.id == user_uuid, User.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def require_user_api(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Return the logged-in user or raise 401."""
    user = await get_current_user(request, db)
    if not user:
        raise HTTPException(status_code=401, detail="Login required")
    return user


async def require_admin(user: User = Depends(require_user_api)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_cron_secret(authorization: str | None = Header(None)) -> None:
    """Reject cron calls without ``Authorization: Bearer <CRON_SECRET>``.

    An unset secret rejects every call.
    """
    expected = get_settings().cron_secret
    token = _bearer_token(authorization)
    if not expected or not token or not secrets.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


async def require_workspace_api_key(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Workspace:
    """Resolve a ``Bearer split_live_...`` key to its workspace, or raise 401."""
    token = _bearer_token(authorization)
    if not token or not looks_like_api_key(token):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")

    result = await db.execute(
        select(WorkspaceApiKey).where(
            WorkspaceApiKey.key_hash == sha256_hex(token),
            WorkspaceApiKey.is_active == True,  # noqa: E712
        )
    )
    api_key = result.scalar_one_or_none()
    if not api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")

    api_key.last_used_at = datetime.now(timezone.utc)
    workspace = await db.get(Workspace, api_key.workspace_id)
    if not workspace:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return workspace


async def get_owned_workspace(
    workspace_id: uuid.UUID,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
) -> Workspace:
    """Workspace from the path/query, 404 if missing and 403 if someone else's."""
    workspace = await db.get(Workspace, workspace_id)
    if not workspace:
        raise HTTPException(status_code=404, detail="Workspace not found")
    if workspace.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not your workspace")
    return workspace
