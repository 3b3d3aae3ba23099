from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from swap_agent.common import guarded_call, log_event

from .calldata import encode_approve, encode_exact_input_single
from .types import (
    DEFAULT_TOKEN_DECIMALS,
    MAX_UINT256,
    REASON_CONFIRMED,
    REASON_EMPTY_BALANCE,
    REASON_ERROR,
    REASON_NO_SIGNER,
    AgentIdentity,
    BalanceReader,
    QuoteProvider,
    SwapIntent,
    TradeResult,
    TransactionSubmitter,
    compute_trade_amount,
    to_minor_units,
    to_token_units,
)


class ProxySwapExecutor:
    """Realises a BUY as a single-pool exact-input swap through the owned proxy contract.

    The wallet funds the proxy with the input token, then every approval and
    swap is sent as ``proxy.execute(target, data)`` so tokens leave from, and
    land in, the contract's balance. Failures never escape ``execute``; they
    come back as an unsuccessful ``TradeResult``.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        identity: AgentIdentity | None,
        reader: BalanceReader,
        submitter: TransactionSubmitter,
        quoter: QuoteProvider,
        proxy_address: str,
        router_address: str,
        token_in: str,
        token_out: str,
        pool_fee: int,
        min_trade_amount: Decimal = Decimal("0.0001"),
        explorer_url: str = "",
    ) -> None:
        self._logger = logger
        self.identity = identity
        self._reader = reader
        self._submitter = submitter
        self._quoter = quoter
        self.proxy_address = proxy_address
        self.router_address = router_address
        self.token_in = token_in
        self.token_out = token_out
        self.pool_fee = pool_fee
        self.min_trade_amount = min_trade_amount
        self._explorer_url = explorer_url.rstrip("/")

    def min_amount_units(self, decimals: int) -> int:
        return max(1, to_minor_units(self.min_trade_amount, decimals))

    async def execute(self) -> TradeResult:
        if self.identity is None:
            log_event(
                self._logger,
                level="warning",
                event="trade_skipped_no_signer",
                message="AGENT_PRIVATE_KEY is not set; skipping trade execution",
            )
            return TradeResult.skipped(REASON_NO_SIGNER)

        try:
            return await self._execute(self.identity)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                self._logger,
                level="exception",
                event="trade_execution_failed",
                message="Trade execution failed",
                error=str(error) or type(error).__name__,
                wallet=self.identity.address,
                proxy=self.proxy_address,
                router=self.router_address,
            )
            return TradeResult.skipped(REASON_ERROR)

    async def _read_decimals(self, token: str) -> int:
        decimals = await guarded_call(
            lambda: self._reader.token_decimals(token),
            logger=self._logger,
            event="token_decimals_unavailable",
            message="Could not read token decimals, assuming default",
            token=token,
            default_decimals=DEFAULT_TOKEN_DECIMALS,
        )
        return DEFAULT_TOKEN_DECIMALS if decimals is None else decimals

    async def _execute(self, identity: AgentIdentity) -> TradeResult:
        wallet_balance = await self._reader.token_balance(self.token_in, identity.address)
        if wallet_balance <= 0:
            log_event(
                self._logger,
                level="warning",
                event="trade_skipped_empty_balance",
                message="Wallet holds no input tokens; nothing to swap",
                wallet=identity.address,
                token_in=self.token_in,
            )
            return TradeResult.skipped(REASON_EMPTY_BALANCE)

        decimals_in = await self._read_decimals(self.token_in)
        decimals_out = await self._read_decimals(self.token_out)

        amount_in = compute_trade_amount(
            wallet_balance=wallet_balance,
            min_amount=self.min_amount_units(decimals_in),
        )
        amount_out_minimum = await self._quoter.min_amount_out(
            token_in=self.token_in,
            token_out=self.token_out,
            fee=self.pool_fee,
            amount_in=amount_in,
        )
        intent = SwapIntent(
            token_in=self.token_in,
            token_out=self.token_out,
            fee=self.pool_fee,
            amount_in=amount_in,
            amount_out_minimum=amount_out_minimum,
            recipient=self.proxy_address,
        )
        log_event(
            self._logger,
            level="info",
            event="swap_planned",
            message="Swap amount computed",
            wallet_balance=str(to_token_units(wallet_balance, decimals_in)),
            amount_in=str(to_token_units(amount_in, decimals_in)),
            amount_out_minimum=str(to_token_units(amount_out_minimum, decimals_out)),
            pool_fee=self.pool_fee,
        )

        await self._ensure_proxy_funded(identity, amount_in)
        await self._ensure_router_allowance(amount_in)

        tx_hash = await self._submitter.execute_via_proxy(
            self.router_address,
            encode_exact_input_single(intent),
            action="swap",
        )
        log_event(
            self._logger,
            level="info",
            event="swap_confirmed",
            message="Swap confirmed via proxy contract",
            tx_hash=tx_hash,
            proxy=self.proxy_address,
            tx_url=f"{self._explorer_url}/tx/{tx_hash}" if self._explorer_url else None,
            proxy_url=f"{self._explorer_url}/address/{self.proxy_address}" if self._explorer_url else None,
        )
        return TradeResult(
            success=True,
            tx_hash=tx_hash,
            reason=REASON_CONFIRMED,
            amount_in=amount_in,
            decimals_in=decimals_in,
        )

    async def _ensure_proxy_funded(self, identity: AgentIdentity, amount_in: int) -> None:
        proxy_balance = await self._reader.token_balance(self.token_in, self.proxy_address)
        if proxy_balance >= amount_in:
            log_event(
                self._logger,
                level="debug",
                event="proxy_funding_sufficient",
                message="Proxy contract already holds enough input tokens",
                proxy_balance=proxy_balance,
            )
            return

        shortfall = amount_in - proxy_balance
        log_event(
            self._logger,
            level="info",
            event="proxy_funding_started",
            message="Transferring input tokens from wallet to proxy contract",
            wallet=identity.address,
            proxy=self.proxy_address,
            amount=shortfall,
        )
        await self._submitter.transfer_token(self.token_in, self.proxy_address, shortfall)

    async def _ensure_router_allowance(self, amount_in: int) -> None:
        current = await self._reader.allowance(self.token_in, self.proxy_address, self.router_address)
        if current >= amount_in:
            log_event(
                self._logger,
                level="debug",
                event="router_allowance_sufficient",
                message="Router allowance already covers the swap",
                allowance=current,
            )
            return

        log_event(
            self._logger,
            level="info",
            event="router_approval_started",
            message="Approving router to spend proxy tokens",
            router=self.router_address,
            allowance=current,
        )
        await self._submitter.execute_via_proxy(
            self.token_in,
            encode_approve(self.router_address, MAX_UINT256),
            action="approve",
        )
