from __future__ import annotations

import asyncio
import logging

from swap_agent.common import log_event

from .engine import TradingAgent


async def wait_with_stop(stop_event: asyncio.Event, timeout_seconds: float) -> None:
    if timeout_seconds <= 0:
        return

    try:
        await asyncio.wait_for(stop_event.wait(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        pass


async def run_decision_loop(
    *,
    logger: logging.Logger,
    stop_event: asyncio.Event,
    agent: TradingAgent,
    interval_seconds: float,
) -> int:
    """Run cycles on a fixed grid until ``stop_event`` is set.

    The first cycle starts immediately. Cycles never overlap: a cycle that
    runs past one or more ticks causes those ticks to be skipped. Returns the
    number of cycles started.
    """
    loop = asyncio.get_running_loop()
    next_tick = loop.time()
    cycles = 0

    while not stop_event.is_set():
        cycles += 1
        try:
            cycle = await agent.run_cycle()
            log_event(
                logger,
                level="info",
                event="cycle_completed",
                message="Decision cycle completed",
                cycle_number=cycles,
                price=cycle.price,
                decision_kind=cycle.decision_kind.value if cycle.decision_kind else None,
                filter_outcome=cycle.filter_outcome.value,
                trade_executed=cycle.executed,
            )
        except Exception as error:
            log_event(
                logger,
                level="exception",
                event="cycle_failed",
                message="Error in decision loop",
                cycle_number=cycles,
                error=str(error) or type(error).__name__,
            )

        next_tick += interval_seconds
        now = loop.time()
        if next_tick <= now:
            missed_ticks = int((now - next_tick) / interval_seconds) + 1
            next_tick += missed_ticks * interval_seconds
            log_event(
                logger,
                level="warning",
                event="cycle_overrun",
                message="Decision cycle ran past its interval; skipping missed ticks",
                missed_ticks=missed_ticks,
                interval_seconds=interval_seconds,
            )

        await wait_with_stop(stop_event, next_tick - now)

    return cycles
