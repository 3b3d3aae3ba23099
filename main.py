from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from dotenv import load_dotenv

from swap_agent.bot_runtime import (
    AppSettings,
    ConfigurationError,
    TradingAgent,
    log_environment_summary,
    log_wallet_status,
    run_decision_loop,
    setup_logger,
    verify_network,
)
from swap_agent.common import log_event
from swap_agent.market import CoinGeckoPriceSource, LlmDecisionEngine
from swap_agent.reporting import MetricsReporter
from swap_agent.trading import (
    AgentIdentity,
    ProxySwapExecutor,
    SlippageFloorQuoter,
    TradeFilter,
    Web3ChainClient,
)


def load_identity(settings: AppSettings) -> AgentIdentity | None:
    if not settings.signing_enabled:
        return None
    try:
        return AgentIdentity.from_private_key(settings.agent_private_key)
    except Exception as error:
        # Never echo the key itself.
        raise ConfigurationError(["AGENT_PRIVATE_KEY (invalid key)"]) from error


def build_agent(
    *,
    logger: logging.Logger,
    settings: AppSettings,
    identity: AgentIdentity | None,
    chain: Web3ChainClient,
) -> TradingAgent:
    price_source = CoinGeckoPriceSource(
        logger=logger,
        api_url=settings.price_api_url,
        asset_id=settings.price_asset_id,
        currency=settings.price_currency,
        timeout_seconds=settings.price_timeout_seconds,
    )
    decision_engine = LlmDecisionEngine(
        logger=logger,
        api_key=settings.groq_api_key,
        system_prompt=settings.agent_prompt,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
    trade_filter = TradeFilter(
        logger=logger,
        threshold=settings.buy_price_threshold,
        sample_rate=settings.execution_sample_rate,
    )
    executor = ProxySwapExecutor(
        logger=logger,
        identity=identity,
        reader=chain,
        submitter=chain,
        quoter=SlippageFloorQuoter(slippage_pct=settings.slippage_tolerance_pct),
        proxy_address=chain.proxy_address,
        router_address=settings.router_address,
        token_in=settings.token_in_address,
        token_out=settings.token_out_address,
        pool_fee=settings.pool_fee,
        min_trade_amount=settings.min_trade_amount,
        explorer_url=settings.explorer_url,
    )
    reporter = MetricsReporter(
        logger=logger,
        metrics_url=settings.metrics_url,
        repo_url=settings.repo_url,
        branch_name=settings.branch_name,
        timeout_seconds=settings.metrics_timeout_seconds,
    )
    return TradingAgent(
        logger=logger,
        price_source=price_source,
        decision_engine=decision_engine,
        trade_filter=trade_filter,
        executor=executor,
        reporter=reporter,
    )


async def main() -> int:
    load_dotenv()
    logger = setup_logger()

    settings = AppSettings.from_env()
    log_environment_summary(logger, settings)

    try:
        settings.validate()
        identity = load_identity(settings)
        chain = Web3ChainClient(
            logger=logger,
            rpc_url=settings.rpc_url,
            proxy_address=settings.agent_contract_address,
            identity=identity,
            confirmation_timeout_seconds=settings.confirmation_timeout_seconds,
        )
    except ValueError as error:
        log_event(
            logger,
            level="critical",
            event="configuration_error",
            message="Agent cannot start",
            error=str(error),
        )
        return 1

    agent = build_agent(logger=logger, settings=settings, identity=identity, chain=chain)

    await verify_network(logger, chain, expected_chain_id=settings.expected_chain_id)
    await log_wallet_status(logger, chain, identity)
    log_event(
        logger,
        level="info",
        event="agent_started",
        message="AI agent starting",
        proxy=chain.proxy_address,
        branch_name=settings.branch_name,
        interval_seconds=settings.decision_interval_seconds,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_shutdown(sig: signal.Signals) -> None:
        log_event(
            logger,
            level="info",
            event="shutdown_signal_received",
            message="Shutdown signal received",
            signal=sig.name,
        )
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, request_shutdown, sig)

    try:
        await run_decision_loop(
            logger=logger,
            stop_event=stop_event,
            agent=agent,
            interval_seconds=settings.decision_interval_seconds,
        )
    finally:
        with contextlib.suppress(Exception):
            await agent.price_source.close()
        with contextlib.suppress(Exception):
            await agent.reporter.close()
        with contextlib.suppress(Exception):
            await agent.decision_engine.close()
        with contextlib.suppress(Exception):
            await chain.close()

        log_event(logger, level="info", event="shutdown_completed", message="Shutdown completed")

    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
