"""RoundApplicationService: read-only views over rounds.

All methods are read-only; no commit/rollback needed.
Round writes belong to the scheduler, the pool accountant and settlement.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.datetime_utils import utc_now
from src.cr_common.errors import InvalidSymbolError, NoOpenRoundError, RoundNotFoundError
from src.cr_round.application.schemas import (
    CurrentRoundResponse,
    RoundHistoryResponse,
    RoundView,
)
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.repository import RoundRepositoryProtocol
from src.cr_round.infrastructure.persistence import RoundRepository


class RoundApplicationService:
    def __init__(
        self,
        config: RoundConfig,
        repo: RoundRepositoryProtocol | None = None,
    ) -> None:
        self._config = config
        self._repo: RoundRepositoryProtocol = repo or RoundRepository()

    def _check_symbol(self, symbol: str) -> str:
        symbol = symbol.upper()
        if symbol not in self._config.active_symbols:
            raise InvalidSymbolError(symbol)
        return symbol

    async def get_current_round(
        self, db: AsyncSession, symbol: str
    ) -> CurrentRoundResponse:
        symbol = self._check_symbol(symbol)
        round_ = await self._repo.get_current_open_round(db, symbol)
        if round_ is None:
            raise NoOpenRoundError(symbol)
        return CurrentRoundResponse.from_domain(round_, utc_now())

    async def get_history(
        self, db: AsyncSession, symbol: str, limit: int
    ) -> RoundHistoryResponse:
        symbol = self._check_symbol(symbol)
        rounds = await self._repo.list_settled_rounds(db, symbol, limit)
        return RoundHistoryResponse(
            symbol=symbol, items=[RoundView.from_domain(r) for r in rounds]
        )

    async def get_round(self, db: AsyncSession, round_id: str) -> RoundView:
        round_ = await self._repo.get_round_by_id(db, round_id)
        if round_ is None:
            raise RoundNotFoundError(round_id)
        return RoundView.from_domain(round_)
