from __future__ import annotations

import asyncio
import logging
import unittest

from swap_agent.bot_runtime import run_decision_loop, wait_with_stop
from swap_agent.trading import Cycle, DecisionKind
from swap_agent.trading.types import now_iso


class _ScriptedAgent:
    def __init__(self, stop_event: asyncio.Event, outcomes: list[object], *, delay: float = 0.0) -> None:
        self._stop_event = stop_event
        self._outcomes = list(outcomes)
        self._delay = delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def run_cycle(self) -> Cycle:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            outcome = self._outcomes.pop(0)
            if not self._outcomes:
                self._stop_event.set()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome  # type: ignore[return-value]
        finally:
            self.in_flight -= 1


def _hold_cycle() -> Cycle:
    return Cycle(started_at=now_iso(), price=1.0, decision_text="HOLD", decision_kind=DecisionKind.HOLD)


class DecisionLoopTests(unittest.IsolatedAsyncioTestCase):
    async def test_cycle_failure_is_logged_and_loop_continues(self) -> None:
        stop_event = asyncio.Event()
        agent = _ScriptedAgent(stop_event, [RuntimeError("price api exploded"), _hold_cycle()])

        with self.assertLogs("test.loop", level="ERROR") as logs:
            cycles = await run_decision_loop(
                logger=logging.getLogger("test.loop"),
                stop_event=stop_event,
                agent=agent,  # type: ignore[arg-type]
                interval_seconds=0.01,
            )

        self.assertEqual(cycles, 2)
        self.assertEqual(agent.calls, 2)
        self.assertIn("Error in decision loop", logs.output[0])

    async def test_first_cycle_runs_immediately(self) -> None:
        stop_event = asyncio.Event()
        agent = _ScriptedAgent(stop_event, [_hold_cycle()])

        await asyncio.wait_for(
            run_decision_loop(
                logger=logging.getLogger("test.loop"),
                stop_event=stop_event,
                agent=agent,  # type: ignore[arg-type]
                interval_seconds=3600.0,
            ),
            timeout=1.0,
        )

        self.assertEqual(agent.calls, 1)

    async def test_overrunning_cycles_never_overlap(self) -> None:
        stop_event = asyncio.Event()
        agent = _ScriptedAgent(stop_event, [_hold_cycle(), _hold_cycle(), _hold_cycle()], delay=0.03)

        with self.assertLogs("test.loop", level="WARNING") as logs:
            await run_decision_loop(
                logger=logging.getLogger("test.loop"),
                stop_event=stop_event,
                agent=agent,  # type: ignore[arg-type]
                interval_seconds=0.01,
            )

        self.assertEqual(agent.max_in_flight, 1)
        self.assertTrue(any("ran past its interval" in line for line in logs.output))


class WaitWithStopTests(unittest.IsolatedAsyncioTestCase):
    async def test_returns_early_when_stopped(self) -> None:
        stop_event = asyncio.Event()
        stop_event.set()

        await asyncio.wait_for(wait_with_stop(stop_event, 60.0), timeout=1.0)


if __name__ == "__main__":
    unittest.main()
