"""Unit tests for the scheduler cron entry point."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.cr_scheduler import cli
from src.cr_scheduler.application.scheduler import SchedulerRunReport

NOW = datetime(2026, 3, 1, tzinfo=UTC)


def _patches(report: SchedulerRunReport | None):
    engine = MagicMock()
    engine.dispose = AsyncMock()
    return (
        patch.object(cli, "build_scheduler", return_value=MagicMock()),
        patch.object(cli, "run_scheduler_once", new=AsyncMock(return_value=report)),
        patch.object(cli, "get_redis", new=AsyncMock(return_value=MagicMock())),
        patch.object(cli, "close_redis", new=AsyncMock()),
        patch.object(cli, "engine", engine),
    )


def test_parser_defaults() -> None:
    args = cli._build_parser().parse_args([])
    assert args.loop is None
    assert args.no_lease is False


def test_parser_loop() -> None:
    args = cli._build_parser().parse_args(["--loop", "15", "--no-lease", "-v"])
    assert args.loop == 15.0
    assert args.no_lease is True
    assert args.verbose is True


@pytest.mark.asyncio
async def test_single_pass_success_exits_zero() -> None:
    p_build, p_run, p_redis, p_close, p_engine = _patches(SchedulerRunReport(started_at=NOW))
    with p_build, p_run as run, p_redis as get_redis, p_close as close_redis, p_engine as engine:
        code = await cli._async_main(cli._build_parser().parse_args([]))

    assert code == 0
    run.assert_awaited_once()
    get_redis.assert_awaited_once()
    close_redis.assert_awaited_once()
    engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_pass_exits_one() -> None:
    report = SchedulerRunReport(started_at=NOW, failures=["R1: no candle"])
    p_build, p_run, p_redis, p_close, p_engine = _patches(report)
    with p_build, p_run, p_redis, p_close, p_engine:
        code = await cli._async_main(cli._build_parser().parse_args([]))

    assert code == 1


@pytest.mark.asyncio
async def test_no_lease_skips_redis() -> None:
    p_build, p_run, p_redis, p_close, p_engine = _patches(None)
    with p_build, p_run as run, p_redis as get_redis, p_close, p_engine:
        code = await cli._async_main(cli._build_parser().parse_args(["--no-lease"]))

    assert code == 0
    get_redis.assert_not_awaited()
    assert run.call_args.args[1] is None
