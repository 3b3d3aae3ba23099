from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Protocol

from eth_account import Account

DEFAULT_TOKEN_DECIMALS = 18
MAX_UINT256 = 2**256 - 1

# Trade size is a fixed fraction of the wallet balance.
TRADE_BALANCE_DIVISOR = 10_000
BPS_DENOMINATOR = 10_000

REASON_NO_SIGNER = "no_signer"
REASON_EMPTY_BALANCE = "empty_balance"
REASON_CONFIRMED = "confirmed"
REASON_ERROR = "error"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_token_units(amount: int, decimals: int) -> Decimal:
    return Decimal(amount).scaleb(-decimals)


def to_minor_units(amount: Decimal, decimals: int) -> int:
    return int(amount.scaleb(decimals))


def compute_trade_amount(*, wallet_balance: int, min_amount: int) -> int:
    return max(min_amount, wallet_balance // TRADE_BALANCE_DIVISOR)


class DecisionKind(str, Enum):
    BUY = "BUY"
    HOLD = "HOLD"


class FilterOutcome(str, Enum):
    EXECUTED = "executed"
    FILTERED = "filtered"
    NOT_APPLICABLE = "not_applicable"


class TransactionRevertedError(RuntimeError):
    def __init__(self, tx_hash: str, *, action: str) -> None:
        self.tx_hash = tx_hash
        self.action = action
        super().__init__(f"{action} transaction reverted: {tx_hash}")


@dataclass(slots=True, frozen=True)
class AgentIdentity:
    address: str
    private_key: str = field(repr=False)

    @classmethod
    def from_private_key(cls, private_key: str) -> "AgentIdentity":
        account = Account.from_key(private_key)
        return cls(address=account.address, private_key=private_key)


@dataclass(slots=True, frozen=True)
class SwapIntent:
    token_in: str
    token_out: str
    fee: int
    amount_in: int
    amount_out_minimum: int
    recipient: str
    sqrt_price_limit_x96: int = 0

    def as_router_params(self) -> tuple[str, str, int, str, int, int, int]:
        return (
            self.token_in,
            self.token_out,
            self.fee,
            self.recipient,
            self.amount_in,
            self.amount_out_minimum,
            self.sqrt_price_limit_x96,
        )


@dataclass(slots=True, frozen=True)
class TradeResult:
    success: bool
    tx_hash: str | None
    reason: str
    amount_in: int | None = None
    decimals_in: int = DEFAULT_TOKEN_DECIMALS

    @property
    def amount_tokens(self) -> Decimal | None:
        if self.amount_in is None:
            return None
        return to_token_units(self.amount_in, self.decimals_in)

    @classmethod
    def skipped(cls, reason: str) -> "TradeResult":
        return cls(success=False, tx_hash=None, reason=reason)


@dataclass(slots=True)
class Cycle:
    started_at: str
    price: float | None = None
    decision_text: str | None = None
    decision_kind: DecisionKind | None = None
    filter_outcome: FilterOutcome = FilterOutcome.NOT_APPLICABLE
    trade_result: TradeResult | None = None

    @property
    def executed(self) -> bool:
        return self.trade_result is not None and self.trade_result.success


class BalanceReader(Protocol):
    async def token_balance(self, token: str, owner: str) -> int:
        ...

    async def token_decimals(self, token: str) -> int:
        ...

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        ...


class TransactionSubmitter(Protocol):
    async def transfer_token(self, token: str, recipient: str, amount: int) -> str:
        ...

    async def execute_via_proxy(self, target: str, data: bytes, *, action: str = "proxy_execute") -> str:
        ...


class QuoteProvider(Protocol):
    async def min_amount_out(
        self,
        *,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> int:
        ...
