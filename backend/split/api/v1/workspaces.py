"""Workspace and workspace API key management."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from split.config import get_settings
from split.dependencies.auth import get_owned_workspace, require_user_api
from split.models.base import get_db
from split.models.user import User
from split.models.workspace import Workspace
from split.models.workspace_api_key import WorkspaceApiKey
from split.schemas.workspace import ApiKeyCreate, ApiKeyCreated, ApiKeyRead, WorkspaceCreate, WorkspaceRead
from split.services.auth_service import generate_api_key
from split.services.crawler_tracking import normalize_host

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get("", response_model=list[WorkspaceRead])
async def list_workspaces(
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Workspace).where(Workspace.user_id == user.id).order_by(Workspace.created_at)
    )
    return result.scalars().all()


@router.post("", response_model=WorkspaceRead, status_code=201)
async def create_workspace(
    body: WorkspaceCreate,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    name = body.workspace_name.strip()
    domain = normalize_host(body.domain.strip().removeprefix("https://").removeprefix("http://").rstrip("/"))
    if not name or not domain:
        raise HTTPException(status_code=400, detail="Workspace name and domain are required")

    workspace = Workspace(user_id=user.id, workspace_name=name, domain=domain)
    db.add(workspace)
    await db.flush()
    await db.refresh(workspace)
    logger.info(f"Created workspace {workspace.id} ({domain}) for user {user.id}")
    return workspace


@router.get("/{workspace_id}/api-keys", response_model=list[ApiKeyRead])
async def list_api_keys(
    workspace: Workspace = Depends(get_owned_workspace),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(WorkspaceApiKey)
        .where(WorkspaceApiKey.workspace_id == workspace.id)
        .order_by(WorkspaceApiKey.created_at.desc())
    )
    return result.scalars().all()


@router.post("/{workspace_id}/api-keys", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    body: ApiKeyCreate,
    workspace: Workspace = Depends(get_owned_workspace),
    db: AsyncSession = Depends(get_db),
):
    """Issue a new key. The plaintext is returned only in this response."""
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Key name is required")

    active_count = await db.scalar(
        select(func.count()).select_from(WorkspaceApiKey).where(
            WorkspaceApiKey.workspace_id == workspace.id,
            WorkspaceApiKey.is_active == True,  # noqa: E712
        )
    )
    limit = get_settings().max_api_keys_per_workspace
    if active_count >= limit:
        raise HTTPException(status_code=400, detail=f"A workspace can have at most {limit} active API keys")

    plaintext, prefix, key_hash = generate_api_key(body.key_type)
    api_key = WorkspaceApiKey(
        workspace_id=workspace.id,
        name=name,
        key_type=body.key_type,
        key_prefix=prefix,
        key_hash=key_hash,
    )
    db.add(api_key)
    await db.flush()
    await db.refresh(api_key)

    return ApiKeyCreated(**ApiKeyRead.model_validate(api_key).model_dump(), api_key=plaintext)


@router.delete("/{workspace_id}/api-keys/{key_id}", response_model=ApiKeyRead)
async def revoke_api_key(
    key_id: UUID,
    workspace: Workspace = Depends(get_owned_workspace),
    db: AsyncSession = Depends(get_db),
):
    api_key = await db.get(WorkspaceApiKey, key_id)
    if not api_key or api_key.workspace_id != workspace.id:
        raise HTTPException(status_code=404, detail="API key not found")
    api_key.is_active = False
    await db.flush()
    logger.info(f"Revoked API key {api_key.key_prefix}... for workspace {workspace.id}")
    return api_key
