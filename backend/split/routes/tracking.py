"""Tracking pixel served to pages instrumented with a workspace snippet."""

import base64
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from split.models.base import get_db
from split.models.workspace import Workspace
from split.services.crawler_detector import detect_crawler
from split.services.crawler_tracking import record_visit, resolve_location
from split.services.usage_service import increment_crawler_visits

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tracking"])

# 1x1 transparent GIF, 43 bytes
PIXEL_GIF = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

PIXEL_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def pixel_response() -> Response:
    return Response(content=PIXEL_GIF, media_type="image/gif", headers=PIXEL_HEADERS)


@router.get("/track/{workspace_id}/pixel.gif")
async def tracking_pixel(
    workspace_id: str,
    request: Request,
    url: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Log a visit when a known AI crawler fetches the pixel.

    The GIF is returned in every case, including unknown workspaces and
    human visitors.
    """
    user_agent = request.headers.get("user-agent", "")
    match = detect_crawler(user_agent)
    if match.kind != "known":
        return pixel_response()

    try:
        workspace_uuid = UUID(workspace_id)
    except ValueError:
        return pixel_response()

    workspace = await db.get(Workspace, workspace_uuid)
    if not workspace:
        logger.debug(f"Pixel hit for unknown workspace {workspace_id}")
        return pixel_response()

    domain, path = resolve_location(url, request.headers.get("referer"), workspace.domain)
    try:
        record_visit(db, workspace, match.crawler, domain=domain, path=path, user_agent=user_agent)
        await db.run_sync(lambda session: increment_crawler_visits(session, workspace.user_id, 1))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"[{workspace_id}] Failed to record pixel visit")
        return pixel_response()
    logger.info(f"[{workspace.id}] {match.crawler.name} fetched {domain}{path}")

    return pixel_response()
