"""cr_wager REST endpoints.

POST /wagers                  place a wager on an OPEN round (201)
GET  /wagers?owner_key=       an owner's wagers, newest first, cursor pagination
GET  /wagers/live             most recent wagers across all rounds
GET  /wagers/estimate         net pool credit a payment would buy, from a rail quote
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cr_common.database import get_db_session
from src.cr_common.response import ApiResponse, success_response
from src.cr_payment.domain.normalization import NormalizationPolicy
from src.cr_payment.infrastructure.http_rail import HttpSwapClient
from src.cr_round.domain.config import RoundConfig
from src.cr_wager.application.schemas import PlaceWagerRequest
from src.cr_wager.application.service import WagerApplicationService

router = APIRouter(prefix="/wagers", tags=["wagers"])

_service = WagerApplicationService(
    config=RoundConfig.from_settings(settings),
    policy=NormalizationPolicy.from_settings(settings),
    swap_client=HttpSwapClient(
        settings.PAYMENT_RAIL_URL,
        api_key=settings.PAYMENT_RAIL_API_KEY,
        timeout=settings.PAYMENT_TIMEOUT_SECONDS,
    ),
)


@router.post("", status_code=201)
async def place_wager(
    body: PlaceWagerRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.place_wager(db, body)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_wagers(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    owner_key: str = Query(..., min_length=8, max_length=128),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    result = await _service.list_wagers(db, owner_key, cursor, limit)
    return success_response(result.model_dump(), request)


@router.get("/live")
async def live_wagers(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    result = await _service.live_feed(db, limit)
    return success_response(result.model_dump(), request)


@router.get("/estimate")
async def estimate_wager(
    request: Request,
    asset: str = Query(..., min_length=2, max_length=16),
    amount: Decimal = Query(..., gt=0),
) -> ApiResponse:
    result = await _service.estimate(asset, amount)
    return success_response(result.model_dump(), request)
