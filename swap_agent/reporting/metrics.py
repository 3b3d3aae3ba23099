from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import aiohttp

from swap_agent.common import guarded_call, log_event


def build_metric_payload(
    *,
    repo_url: str,
    branch_name: str,
    decision: str,
    price: float,
    executed: bool,
    tx_hash: str | None,
    amount: Decimal | float | None,
) -> dict[str, Any]:
    return {
        "repo_url": repo_url,
        "branch_name": branch_name,
        "decision": decision,
        "price": price,
        "trade_executed": executed,
        "trade_tx_hash": tx_hash,
        "trade_amount": float(amount) if amount is not None else None,
    }


class MetricsReporter:
    """Fire-and-forget POST of each cycle's outcome to the metrics backend."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        metrics_url: str,
        repo_url: str,
        branch_name: str,
        timeout_seconds: float = 3.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._logger = logger
        self.metrics_url = metrics_url
        self.repo_url = repo_url
        self.branch_name = branch_name
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None

    @property
    def enabled(self) -> bool:
        return bool(self.repo_url)

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _post(self, payload: dict[str, Any]) -> None:
        await self.connect()
        if self._session is None:
            raise RuntimeError("Metrics HTTP session is not initialized.")

        async with self._session.post(
            self.metrics_url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
        ) as response:
            if response.status >= 400:
                raise RuntimeError(f"metrics backend returned status {response.status}")

        log_event(
            self._logger,
            level="debug",
            event="metrics_posted",
            message="Cycle metrics sent",
            decision=payload["decision"],
            trade_executed=payload["trade_executed"],
        )

    async def report(
        self,
        *,
        decision: str,
        price: float,
        executed: bool = False,
        tx_hash: str | None = None,
        amount: Decimal | float | None = None,
    ) -> None:
        if not self.enabled:
            log_event(
                self._logger,
                level="warning",
                event="metrics_disabled",
                message="REPO_URL not set, skipping metrics",
            )
            return

        payload = build_metric_payload(
            repo_url=self.repo_url,
            branch_name=self.branch_name,
            decision=decision,
            price=price,
            executed=executed,
            tx_hash=tx_hash,
            amount=amount,
        )
        await guarded_call(
            lambda: self._post(payload),
            logger=self._logger,
            event="metrics_post_failed",
            message="Failed to send metric",
            metrics_url=self.metrics_url,
        )
