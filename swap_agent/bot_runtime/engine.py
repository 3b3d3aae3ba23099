from __future__ import annotations

import logging

from swap_agent.common import log_event
from swap_agent.market import CoinGeckoPriceSource, LlmDecisionEngine, parse_decision
from swap_agent.reporting import MetricsReporter
from swap_agent.trading import (
    Cycle,
    DecisionKind,
    FilterOutcome,
    ProxySwapExecutor,
    TradeFilter,
)
from swap_agent.trading.types import now_iso

BUY_LABEL = "BUY"
FILTERED_LABEL = "BUY (FILTERED)"
HOLD_LABEL = "HOLD"


def decision_label(prefix: str, decision_text: str) -> str:
    return f"{prefix} - {decision_text}"


class TradingAgent:
    """One fetch, decide, filter, execute, report pass.

    Errors from the price source or completion service propagate to the
    caller; the executor and reporter contain their own failures.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        price_source: CoinGeckoPriceSource,
        decision_engine: LlmDecisionEngine,
        trade_filter: TradeFilter,
        executor: ProxySwapExecutor,
        reporter: MetricsReporter,
    ) -> None:
        self._logger = logger
        self.price_source = price_source
        self.decision_engine = decision_engine
        self.trade_filter = trade_filter
        self.executor = executor
        self.reporter = reporter

    async def run_cycle(self) -> Cycle:
        cycle = Cycle(started_at=now_iso())
        cycle.price = price = await self.price_source.get_price()
        cycle.decision_text = decision_text = await self.decision_engine.decide(price)
        cycle.decision_kind = parse_decision(decision_text)

        if cycle.decision_kind is DecisionKind.HOLD:
            log_event(
                self._logger,
                level="info",
                event="decision_hold",
                message="AI decided: HOLD",
                price=price,
            )
            await self.reporter.report(decision=decision_label(HOLD_LABEL, decision_text), price=price)
            return cycle

        verdict = self.trade_filter.evaluate(DecisionKind.BUY, price)
        if not verdict.should_execute:
            cycle.filter_outcome = FilterOutcome.FILTERED
            log_event(
                self._logger,
                level="info",
                event="trade_filtered",
                message="Filter blocked trade execution, holding instead",
                price=price,
                threshold=self.trade_filter.threshold,
            )
            await self.reporter.report(decision=decision_label(FILTERED_LABEL, decision_text), price=price)
            return cycle

        cycle.filter_outcome = FilterOutcome.EXECUTED
        log_event(
            self._logger,
            level="info",
            event="trade_filter_passed",
            message="AI decided: BUY, executing trade",
            price=price,
            below_threshold=verdict.below_threshold,
            sampled=verdict.sampled,
        )
        result = await self.executor.execute()
        cycle.trade_result = result

        if result.success:
            log_event(
                self._logger,
                level="info",
                event="trade_executed",
                message="Trade executed successfully",
                tx_hash=result.tx_hash,
                amount=str(result.amount_tokens),
            )
        else:
            log_event(
                self._logger,
                level="warning",
                event="trade_skipped",
                message="Trade execution skipped",
                reason=result.reason,
            )

        await self.reporter.report(
            decision=decision_label(BUY_LABEL, decision_text),
            price=price,
            executed=result.success,
            tx_hash=result.tx_hash if result.success else None,
            amount=result.amount_tokens if result.success else None,
        )
        return cycle
