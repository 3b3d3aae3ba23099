from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

DEFAULT_AGENT_PROMPT = (
    "You are a conservative risk-averse financial analyst. You only BUY when the price has "
    "dropped significantly (below $0.38) or shows strong upward momentum. Otherwise, you HOLD "
    "to preserve capital. Based on the current price, should I 'BUY' or 'HOLD'?"
)

# Mantle Sepolia testnet deployment used by the agent template.
DEFAULT_RPC_URL = "https://rpc.sepolia.mantle.xyz"
DEFAULT_ROUTER_ADDRESS = "0x738fD6d10bCc05c230388B4027CAd37f82fe2AF2"
DEFAULT_TOKEN_IN_ADDRESS = "0xF4Ab10F0a84Cf504Dec2c1Aa5D250fd3F31EF84e"
DEFAULT_TOKEN_OUT_ADDRESS = "0xAcab8129E2cE587fD203FD770ec9ECAFA2C88080"
DEFAULT_EXPLORER_URL = "https://sepolia.mantlescan.xyz"
DEFAULT_CHAIN_ID = 5003

# Pool fee is a uint24 in the router call.
MAX_POOL_FEE = 2**24 - 1


class ConfigurationError(ValueError):
    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing mandatory settings: {', '.join(self.missing)}")


def to_int(value: Any, default: int) -> int:
    try:
        if value is None or str(value).strip() == "":
            return default
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default


def to_float(value: Any, default: float) -> float:
    try:
        if value is None or str(value).strip() == "":
            return default
        parsed = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if math.isfinite(parsed) else default


def to_decimal(value: Any, default: Decimal) -> Decimal:
    try:
        if value is None or str(value).strip() == "":
            return default
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    return parsed if parsed.is_finite() else default


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip() or default


@dataclass(slots=True, frozen=True)
class AppSettings:
    groq_api_key: str = field(repr=False)
    agent_contract_address: str
    agent_prompt: str
    rpc_url: str
    backend_url: str
    repo_url: str
    branch_name: str
    agent_private_key: str = field(repr=False)
    token_in_address: str
    token_out_address: str
    pool_fee: int
    slippage_tolerance_pct: Decimal
    router_address: str
    llm_base_url: str
    llm_model: str
    llm_temperature: float
    llm_max_tokens: int
    price_api_url: str
    price_asset_id: str
    price_currency: str
    price_timeout_seconds: float
    metrics_timeout_seconds: float
    buy_price_threshold: float
    execution_sample_rate: float
    min_trade_amount: Decimal
    decision_interval_seconds: float
    confirmation_timeout_seconds: float
    expected_chain_id: int
    explorer_url: str

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            groq_api_key=_env("GROQ_API_KEY"),
            agent_contract_address=_env("AGENT_CONTRACT_ADDRESS"),
            agent_prompt=_env("AI_PROMPT", DEFAULT_AGENT_PROMPT),
            rpc_url=_env("MANTLE_RPC_URL", DEFAULT_RPC_URL),
            backend_url=_env("BACKEND_URL", "http://localhost:3005").rstrip("/"),
            repo_url=_env("REPO_URL"),
            branch_name=_env("BRANCH_NAME", "main"),
            agent_private_key=_env("AGENT_PRIVATE_KEY"),
            token_in_address=_env("TOKEN_IN_ADDRESS", DEFAULT_TOKEN_IN_ADDRESS),
            token_out_address=_env("TOKEN_OUT_ADDRESS", DEFAULT_TOKEN_OUT_ADDRESS),
            pool_fee=min(MAX_POOL_FEE, max(1, to_int(os.getenv("POOL_FEE"), 500))),
            slippage_tolerance_pct=min(
                Decimal(100),
                max(Decimal(0), to_decimal(os.getenv("SLIPPAGE_TOLERANCE"), Decimal(3))),
            ),
            router_address=_env("ROUTER_ADDRESS", DEFAULT_ROUTER_ADDRESS),
            llm_base_url=_env("LLM_BASE_URL", "https://api.groq.com/openai/v1"),
            llm_model=_env("LLM_MODEL", "llama-3.1-8b-instant"),
            llm_temperature=max(0.0, to_float(os.getenv("LLM_TEMPERATURE"), 0.3)),
            llm_max_tokens=max(1, to_int(os.getenv("LLM_MAX_TOKENS"), 50)),
            price_api_url=_env("PRICE_API_URL", "https://api.coingecko.com/api/v3/simple/price"),
            price_asset_id=_env("PRICE_ASSET_ID", "ethereum"),
            price_currency=_env("PRICE_CURRENCY", "usd"),
            price_timeout_seconds=max(0.5, to_float(os.getenv("PRICE_TIMEOUT_SECONDS"), 5.0)),
            metrics_timeout_seconds=max(0.5, to_float(os.getenv("METRICS_TIMEOUT_SECONDS"), 3.0)),
            buy_price_threshold=to_float(os.getenv("BUY_PRICE_THRESHOLD"), 0.38),
            execution_sample_rate=min(
                1.0,
                max(0.0, to_float(os.getenv("EXECUTION_SAMPLE_RATE"), 0.30)),
            ),
            min_trade_amount=max(
                Decimal(0),
                to_decimal(os.getenv("MIN_TRADE_AMOUNT"), Decimal("0.0001")),
            ),
            decision_interval_seconds=max(
                1.0,
                to_float(os.getenv("DECISION_INTERVAL_SECONDS"), 30.0),
            ),
            confirmation_timeout_seconds=max(
                10.0,
                to_float(os.getenv("CONFIRMATION_TIMEOUT_SECONDS"), 600.0),
            ),
            expected_chain_id=to_int(os.getenv("EXPECTED_CHAIN_ID"), DEFAULT_CHAIN_ID),
            explorer_url=_env("EXPLORER_URL", DEFAULT_EXPLORER_URL).rstrip("/"),
        )

    @property
    def signing_enabled(self) -> bool:
        return bool(self.agent_private_key)

    @property
    def metrics_enabled(self) -> bool:
        return bool(self.repo_url)

    @property
    def metrics_url(self) -> str:
        return f"{self.backend_url}/api/metrics"

    def validate(self) -> None:
        missing = []
        if not self.groq_api_key:
            missing.append("GROQ_API_KEY")
        if not self.agent_contract_address:
            missing.append("AGENT_CONTRACT_ADDRESS")
        if missing:
            raise ConfigurationError(missing)
