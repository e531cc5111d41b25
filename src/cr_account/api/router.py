"""cr_account REST API.

GET /accounts/rankings        leaderboard by profit, volume or wins
GET /accounts/{owner_key}     profile + stats
PUT /accounts/{owner_key}     profile update (username, avatar, anonymity)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.application.schemas import UpdateProfileRequest
from src.cr_account.application.service import AccountApplicationService
from src.cr_common.database import get_db_session
from src.cr_common.enums import RankingSort
from src.cr_common.response import ApiResponse, success_response

router = APIRouter(prefix="/accounts", tags=["accounts"])

_service = AccountApplicationService()


# Declared before /{owner_key} so "rankings" is not captured as an owner key.
@router.get("/rankings")
async def get_rankings(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    sort_by: RankingSort = Query(RankingSort.PROFIT),
    limit: int = Query(50, ge=1, le=100),
) -> ApiResponse:
    data = await _service.get_rankings(db, sort_by, limit)
    return success_response(data.model_dump(), request)


@router.get("/{owner_key}")
async def get_profile(
    owner_key: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_profile(db, owner_key)
    return success_response(data.model_dump(), request)


@router.put("/{owner_key}")
async def update_profile(
    owner_key: str,
    body: UpdateProfileRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.update_profile(db, owner_key, body)
    return success_response(data.model_dump(), request)
