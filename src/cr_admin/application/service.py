"""Admin application service: platform stats and the manual scheduler trigger."""

from typing import Any

import redis.asyncio as aioredis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.units import units_to_display
from src.cr_scheduler.application.runner import run_scheduler_once
from src.cr_scheduler.application.scheduler import RoundScheduler

_WAGER_STATS_SQL = text("""
    SELECT
        COUNT(*) AS total_wagers,
        COUNT(DISTINCT owner_key) AS total_owners,
        COALESCE(SUM(net_amount), 0) AS total_volume,
        COALESCE(SUM(platform_fee), 0) AS contribution_fees,
        COALESCE(SUM(payout) FILTER (WHERE payout_confirmation IS NOT NULL), 0)
            AS total_paid_out,
        COALESCE(SUM(payout) FILTER (WHERE payout > 0 AND payout_confirmation IS NULL), 0)
            AS pending_payout
    FROM wagers
""")

# Settled pool value (stakes + boost) minus what settlement assigned back to
# wagers: the pool fee plus unilateral retention plus rounding dust.
_POOL_RETAINED_SQL = text("""
    SELECT
        COALESCE(SUM(r.total_green + r.total_red + r.bonus_boost), 0)
        - COALESCE((SELECT SUM(w.payout) FROM wagers w
                    JOIN rounds r2 ON r2.id = w.round_id
                    WHERE r2.status = 'SETTLED'), 0) AS pool_retained
    FROM rounds r
    WHERE r.status = 'SETTLED'
""")

_ROUND_COUNTS_SQL = text("SELECT status, COUNT(*) AS n FROM rounds GROUP BY status")

_MOST_POPULAR_SQL = text("""
    SELECT r.symbol, COUNT(*) AS n
    FROM wagers w JOIN rounds r ON r.id = w.round_id
    GROUP BY r.symbol
    ORDER BY n DESC, r.symbol
    LIMIT 1
""")


class AdminService:
    async def get_global_stats(self, db: AsyncSession) -> dict[str, Any]:
        stats = (await db.execute(_WAGER_STATS_SQL)).fetchone()
        retained = (await db.execute(_POOL_RETAINED_SQL)).scalar() or 0
        round_counts = {
            row.status: int(row.n) for row in (await db.execute(_ROUND_COUNTS_SQL)).fetchall()
        }
        popular = (await db.execute(_MOST_POPULAR_SQL)).fetchone()

        total_volume = int(stats.total_volume) if stats else 0
        total_paid_out = int(stats.total_paid_out) if stats else 0
        contribution_fees = int(stats.contribution_fees) if stats else 0
        return {
            "total_wagers": int(stats.total_wagers) if stats else 0,
            "total_owners": int(stats.total_owners) if stats else 0,
            "total_volume_units": total_volume,
            "total_volume_display": units_to_display(total_volume),
            "total_paid_out_units": total_paid_out,
            "total_paid_out_display": units_to_display(total_paid_out),
            "pending_payout_units": int(stats.pending_payout) if stats else 0,
            "contribution_fees_units": contribution_fees,
            "pool_retained_units": int(retained),
            "rounds": {
                "OPEN": round_counts.get("OPEN", 0),
                "LOCKED": round_counts.get("LOCKED", 0),
                "SETTLED": round_counts.get("SETTLED", 0),
            },
            "most_popular_symbol": popular.symbol if popular else None,
        }

    async def run_scheduler(
        self, scheduler: RoundScheduler, redis: aioredis.Redis | None
    ) -> dict[str, Any]:
        report = await run_scheduler_once(scheduler, redis)
        if report is None:
            return {
                "success": True,
                "skipped": True,
                "message": "Another scheduler run is in progress",
            }
        return {"skipped": False, **report.to_dict()}
