"""Service dependencies: cache and snapshot worker."""

from fastapi import Depends, Request
from sqlalchemy.orm import sessionmaker

from split.models.base import get_sync_session_factory
from split.services.cache import KeyValueCache
from split.services.snapshot_processor import SnapshotProcessor


def get_cache(request: Request) -> KeyValueCache:
    return request.app.state.cache


def get_snapshot_processor(
    session_factory: sessionmaker = Depends(get_sync_session_factory),
) -> SnapshotProcessor:
    return SnapshotProcessor.from_settings(session_factory)
