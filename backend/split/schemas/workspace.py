"""Pydantic schemas for workspaces and their API keys."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class WorkspaceCreate(BaseModel):
    workspace_name: str
    domain: str


class WorkspaceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_name: str
    domain: str
    created_at: datetime


class ApiKeyCreate(BaseModel):
    name: str
    key_type: Literal["live", "test"] = "live"


class ApiKeyRead(BaseModel):
    """Stored key metadata; the plaintext key is never returned again."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    key_type: str
    key_prefix: str
    is_active: bool
    last_used_at: datetime | None = None
    created_at: datetime


class ApiKeyCreated(ApiKeyRead):
    api_key: str
