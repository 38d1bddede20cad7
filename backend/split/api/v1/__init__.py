"""API v1 router aggregation."""

from fastapi import APIRouter

from split.api.v1.snapshots import router as snapshots_router
from split.api.v1.processing import router as processing_router
from split.api.v1.tracking import router as tracking_router
from split.api.v1.dashboard import router as dashboard_router
from split.api.v1.cron import router as cron_router
from split.api.v1.workspaces import router as workspaces_router
from split.api.v1.usage import router as usage_router
from split.api.v1.admin import router as admin_router
from split.api.v1.auth import router as auth_router

router = APIRouter(prefix="/api/v1")

router.include_router(snapshots_router)
router.include_router(processing_router)
router.include_router(tracking_router)
router.include_router(dashboard_router)
router.include_router(cron_router)
router.include_router(workspaces_router)
router.include_router(usage_router)
router.include_router(admin_router)
router.include_router(auth_router)
