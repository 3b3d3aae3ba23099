from .chain import Web3ChainClient
from .executor import ProxySwapExecutor
from .filter import FilterDecision, TradeFilter
from .quotes import SlippageFloorQuoter, slippage_to_bps
from .types import (
    AgentIdentity,
    BalanceReader,
    Cycle,
    DecisionKind,
    FilterOutcome,
    QuoteProvider,
    SwapIntent,
    TradeResult,
    TransactionRevertedError,
    TransactionSubmitter,
    compute_trade_amount,
)

__all__ = [
    "AgentIdentity",
    "BalanceReader",
    "Cycle",
    "DecisionKind",
    "FilterDecision",
    "FilterOutcome",
    "ProxySwapExecutor",
    "QuoteProvider",
    "SlippageFloorQuoter",
    "SwapIntent",
    "TradeFilter",
    "TradeResult",
    "TransactionRevertedError",
    "TransactionSubmitter",
    "Web3ChainClient",
    "compute_trade_amount",
    "slippage_to_bps",
]
