"""Wiring for scheduler runs, shared by the admin endpoint and the cron CLI.

The Redis lease keeps a cron tick and a manual trigger from both hitting the
oracle and the payment rail at the same time. If Redis is down the run goes
ahead without it: the database's conditional writes keep overlapping runs
correct, the lease only saves duplicate outbound traffic.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.cr_common.database import SessionFactory, async_session_factory
from src.cr_common.redis_client import acquire_lease, release_lease
from src.cr_oracle.infrastructure.binance import BinanceKlineOracle
from src.cr_payment.infrastructure.http_rail import HttpPayoutIssuer
from src.cr_round.domain.config import RoundConfig
from src.cr_scheduler.application.scheduler import RoundScheduler, SchedulerRunReport
from src.cr_settlement.domain.payouts import PayoutDispatcher
from src.cr_settlement.domain.settlement import SettlementEngine

logger = logging.getLogger(__name__)

SCHEDULER_LEASE_KEY = "cr:scheduler:lease"


def build_scheduler(session_factory: SessionFactory = async_session_factory) -> RoundScheduler:
    config = RoundConfig.from_settings(settings)
    oracle = BinanceKlineOracle(
        settings.BINANCE_BASE_URL, timeout=settings.ORACLE_TIMEOUT_SECONDS
    )
    issuer = HttpPayoutIssuer(
        settings.PAYMENT_RAIL_URL,
        api_key=settings.PAYMENT_RAIL_API_KEY,
        timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        asset=settings.QUOTE_ASSET,
    )
    return RoundScheduler(
        session_factory=session_factory,
        config=config,
        engine=SettlementEngine(config, oracle),
        dispatcher=PayoutDispatcher(session_factory, issuer, config),
    )


async def run_scheduler_once(
    scheduler: RoundScheduler,
    redis: aioredis.Redis | None = None,
) -> SchedulerRunReport | None:
    """Run one scheduler pass. Returns None if another run holds the lease."""
    token: str | None = None
    if redis is not None:
        try:
            token = await acquire_lease(
                redis, SCHEDULER_LEASE_KEY, settings.SCHEDULER_LEASE_SECONDS
            )
        except RedisError as exc:
            logger.warning("Scheduler lease unavailable, running without it: %s", exc)
        else:
            if token is None:
                logger.info("Scheduler run already in progress elsewhere, skipping")
                return None

    try:
        return await scheduler.run()
    finally:
        if redis is not None and token is not None:
            try:
                await release_lease(redis, SCHEDULER_LEASE_KEY, token)
            except RedisError as exc:
                logger.warning("Failed to release scheduler lease (expires on its own): %s", exc)
