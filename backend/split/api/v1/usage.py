"""Current plan usage."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from split.dependencies.auth import require_user_api
from split.models.base import get_db
from split.models.user import User
from split.schemas.usage import UsageRead
from split.services.usage_service import get_or_create_usage, usage_report

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("/current", response_model=UsageRead)
async def get_current_usage(
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    usage = await db.run_sync(lambda session: get_or_create_usage(session, user))
    return usage_report(usage)
