"""cr_round REST endpoints.

GET /rounds/current?symbol=      OPEN round with live multipliers
GET /rounds/history?symbol=      settled rounds, newest first
GET /rounds/{round_id}           single round
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cr_common.database import get_db_session
from src.cr_common.response import ApiResponse, success_response
from src.cr_round.application.service import RoundApplicationService
from src.cr_round.domain.config import RoundConfig

router = APIRouter(prefix="/rounds", tags=["rounds"])

_service = RoundApplicationService(RoundConfig.from_settings(settings))


@router.get("/current")
async def get_current_round(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    symbol: str = Query("BTCUSDT", min_length=3, max_length=20),
) -> ApiResponse:
    result = await _service.get_current_round(db, symbol)
    return success_response(result.model_dump(), request)


@router.get("/history")
async def get_round_history(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    symbol: str = Query("BTCUSDT", min_length=3, max_length=20),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    result = await _service.get_history(db, symbol, limit)
    return success_response(result.model_dump(), request)


@router.get("/{round_id}")
async def get_round(
    round_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_round(db, round_id)
    return success_response(result.model_dump(), request)
