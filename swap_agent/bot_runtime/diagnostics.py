from __future__ import annotations

import logging

from web3 import Web3

from swap_agent.common import guarded_call, log_event
from swap_agent.trading import AgentIdentity, Web3ChainClient

from .settings import AppSettings


def _presence(value: str) -> str:
    return value if value else "NOT SET"


def log_environment_summary(logger: logging.Logger, settings: AppSettings) -> None:
    log_event(
        logger,
        level="info",
        event="environment_check",
        message="Environment variables check",
        repo_url=_presence(settings.repo_url),
        branch_name=_presence(settings.branch_name),
        agent_contract_address=_presence(settings.agent_contract_address),
        agent_private_key="SET (hidden)" if settings.signing_enabled else "NOT SET",
        backend_url=settings.backend_url,
        rpc_url=settings.rpc_url,
        metrics_enabled=settings.metrics_enabled,
        token_in=settings.token_in_address,
        token_out=settings.token_out_address,
        router=settings.router_address,
        pool_fee=settings.pool_fee,
        slippage_pct=str(settings.slippage_tolerance_pct),
        buy_price_threshold=settings.buy_price_threshold,
        execution_sample_rate=settings.execution_sample_rate,
        llm_model=settings.llm_model,
        prompt=settings.agent_prompt,
    )


async def verify_network(
    logger: logging.Logger,
    chain: Web3ChainClient,
    *,
    expected_chain_id: int,
) -> int | None:
    chain_id = await guarded_call(
        chain.chain_id,
        logger=logger,
        event="network_unreachable",
        message="Failed to connect to network",
        level="error",
    )
    if chain_id is None:
        return None

    if chain_id != expected_chain_id:
        log_event(
            logger,
            level="warning",
            event="unexpected_chain_id",
            message="Connected to an unexpected chain",
            chain_id=chain_id,
            expected_chain_id=expected_chain_id,
        )
    else:
        log_event(
            logger,
            level="info",
            event="network_connected",
            message="Connected to network",
            chain_id=chain_id,
        )
    return chain_id


async def log_wallet_status(
    logger: logging.Logger,
    chain: Web3ChainClient,
    identity: AgentIdentity | None,
) -> None:
    if identity is None:
        log_event(
            logger,
            level="warning",
            event="read_only_mode",
            message="AGENT_PRIVATE_KEY not set; trades will be skipped",
        )
        return

    wallet_balance = await guarded_call(
        lambda: chain.native_balance(identity.address),
        logger=logger,
        event="wallet_balance_unavailable",
        message="Could not read wallet native balance",
    )
    contract_balance = await guarded_call(
        lambda: chain.native_balance(chain.proxy_address),
        logger=logger,
        event="contract_balance_unavailable",
        message="Could not read proxy contract native balance",
    )
    log_event(
        logger,
        level="info",
        event="wallet_connected",
        message="Agent wallet connected",
        wallet=identity.address,
        proxy=chain.proxy_address,
        wallet_native_balance=(
            str(Web3.from_wei(wallet_balance, "ether")) if wallet_balance is not None else None
        ),
        contract_native_balance=(
            str(Web3.from_wei(contract_balance, "ether")) if contract_balance is not None else None
        ),
    )
