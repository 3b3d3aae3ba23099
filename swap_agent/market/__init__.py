from .decision import FALLBACK_DECISION, LlmDecisionEngine, build_user_message, parse_decision
from .price_source import CoinGeckoPriceSource, PriceFeedError, parse_price

__all__ = [
    "CoinGeckoPriceSource",
    "FALLBACK_DECISION",
    "LlmDecisionEngine",
    "PriceFeedError",
    "build_user_message",
    "parse_decision",
    "parse_price",
]
