from __future__ import annotations

from decimal import ROUND_CEILING, Decimal

from .types import BPS_DENOMINATOR


def slippage_to_bps(slippage_pct: Decimal) -> int:
    # Rounded up so the tolerance never ends up tighter than configured.
    bps = int((slippage_pct * 100).to_integral_value(rounding=ROUND_CEILING))
    return max(0, min(BPS_DENOMINATOR, bps))


class SlippageFloorQuoter:
    """Minimum output without a live quote: ``amount_in`` less the slippage tolerance.

    This assumes roughly 1:1 pricing between the two tokens. Swap in a quoter
    contract implementation of ``QuoteProvider`` for pools that are not.
    """

    def __init__(self, *, slippage_pct: Decimal) -> None:
        self.slippage_bps = slippage_to_bps(slippage_pct)

    async def min_amount_out(
        self,
        *,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> int:
        return amount_in * (BPS_DENOMINATOR - self.slippage_bps) // BPS_DENOMINATOR
