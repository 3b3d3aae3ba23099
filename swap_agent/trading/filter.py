from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable

from swap_agent.common import log_event

from .types import DecisionKind, FilterOutcome


@dataclass(slots=True, frozen=True)
class FilterDecision:
    outcome: FilterOutcome
    below_threshold: bool
    sampled: bool
    draw: float

    @property
    def should_execute(self) -> bool:
        return self.outcome is FilterOutcome.EXECUTED


class TradeFilter:
    """Gate between a BUY recommendation and an actual swap.

    Two arms are evaluated on every call: a deterministic dip arm
    (``price < threshold``) and an exploration arm (a fresh uniform draw
    below ``sample_rate``). Either arm passing lets the trade through.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        threshold: float = 0.38,
        sample_rate: float = 0.30,
        draw: Callable[[], float] = random.random,
    ) -> None:
        self._logger = logger
        self.threshold = threshold
        self.sample_rate = sample_rate
        self._draw = draw

    def evaluate(self, decision_kind: DecisionKind, price: float) -> FilterDecision:
        if decision_kind is not DecisionKind.BUY:
            raise ValueError(f"Trade filter only applies to BUY decisions, got {decision_kind.value}")

        below_threshold = price < self.threshold
        draw = self._draw()
        sampled = draw < self.sample_rate
        outcome = FilterOutcome.EXECUTED if below_threshold or sampled else FilterOutcome.FILTERED

        log_event(
            self._logger,
            level="info" if outcome is FilterOutcome.EXECUTED else "debug",
            event="trade_filter_evaluated",
            message="Trade filter passed" if outcome is FilterOutcome.EXECUTED else "Trade filter blocked execution",
            price=price,
            threshold=self.threshold,
            below_threshold=below_threshold,
            sampled=sampled,
            draw=round(draw, 4),
            sample_rate=self.sample_rate,
            outcome=outcome.value,
        )
        return FilterDecision(outcome=outcome, below_threshold=below_threshold, sampled=sampled, draw=draw)

    def should_execute(self, decision_kind: DecisionKind, price: float) -> bool:
        return self.evaluate(decision_kind, price).should_execute
