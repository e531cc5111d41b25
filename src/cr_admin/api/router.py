"""Admin REST API (admin JWT required).

GET  /admin/stats           platform-wide wager, payout and round stats
POST /admin/scheduler/run   one scheduler pass; idempotent, safe to repeat
"""

from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_admin.application.service import AdminService
from src.cr_common.database import get_db_session
from src.cr_common.redis_client import get_redis
from src.cr_common.response import ApiResponse, success_response
from src.cr_gateway.auth.dependencies import require_admin
from src.cr_scheduler.application.runner import build_scheduler
from src.cr_scheduler.application.scheduler import RoundScheduler

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()
_scheduler: RoundScheduler | None = None


def get_scheduler() -> RoundScheduler:
    global _scheduler  # noqa: PLW0603
    if _scheduler is None:
        _scheduler = build_scheduler()
    return _scheduler


@router.get("/stats")
async def get_stats(
    request: Request,
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_global_stats(db)
    return success_response(result, request)


@router.post("/scheduler/run")
async def run_scheduler(
    request: Request,
    admin: Annotated[str, Depends(require_admin)],
    scheduler: Annotated[RoundScheduler, Depends(get_scheduler)],
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> JSONResponse:
    result = await _service.run_scheduler(scheduler, redis)
    resp = success_response(result, request)
    return JSONResponse(
        status_code=200 if result["success"] else 500,
        content=resp.model_dump(),
    )
