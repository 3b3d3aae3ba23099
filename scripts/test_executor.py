from __future__ import annotations

import logging
import unittest
from decimal import Decimal

from eth_abi import decode

from fakes import FakeChain
from swap_agent.trading import (
    AgentIdentity,
    ProxySwapExecutor,
    SlippageFloorQuoter,
    compute_trade_amount,
)
from swap_agent.trading.calldata import APPROVE_SELECTOR, EXACT_INPUT_SINGLE_SELECTOR
from swap_agent.trading.types import MAX_UINT256

WALLET = "0x1111111111111111111111111111111111111111"
PROXY = "0x2222222222222222222222222222222222222222"
ROUTER = "0x3333333333333333333333333333333333333333"
TOKEN_IN = "0x4444444444444444444444444444444444444444"
TOKEN_OUT = "0x5555555555555555555555555555555555555555"

IDENTITY = AgentIdentity(address=WALLET, private_key="0x" + "11" * 32)


def _make_executor(chain: FakeChain, *, identity: AgentIdentity | None = IDENTITY) -> ProxySwapExecutor:
    return ProxySwapExecutor(
        logger=logging.getLogger("test.executor"),
        identity=identity,
        reader=chain,
        submitter=chain,
        quoter=SlippageFloorQuoter(slippage_pct=Decimal(3)),
        proxy_address=PROXY,
        router_address=ROUTER,
        token_in=TOKEN_IN,
        token_out=TOKEN_OUT,
        pool_fee=500,
        min_trade_amount=Decimal("0.0001"),
    )


class ComputeTradeAmountTests(unittest.TestCase):
    def test_fraction_of_balance_above_minimum(self) -> None:
        self.assertEqual(compute_trade_amount(wallet_balance=100_000_000, min_amount=100), 10_000)

    def test_minimum_unit_floors_small_balances(self) -> None:
        self.assertEqual(compute_trade_amount(wallet_balance=50_000, min_amount=100), 100)

    def test_minimum_unit_follows_token_decimals(self) -> None:
        executor = _make_executor(FakeChain())
        self.assertEqual(executor.min_amount_units(6), 100)
        self.assertEqual(executor.min_amount_units(18), 10**14)
        self.assertEqual(executor.min_amount_units(2), 1)


class SlippageFloorQuoterTests(unittest.IsolatedAsyncioTestCase):
    async def test_integer_slippage_floor(self) -> None:
        quoter = SlippageFloorQuoter(slippage_pct=Decimal(3))
        self.assertEqual(
            await quoter.min_amount_out(token_in=TOKEN_IN, token_out=TOKEN_OUT, fee=500, amount_in=10_000),
            9_700,
        )

    async def test_fractional_slippage(self) -> None:
        quoter = SlippageFloorQuoter(slippage_pct=Decimal("0.5"))
        self.assertEqual(quoter.slippage_bps, 50)
        self.assertEqual(
            await quoter.min_amount_out(token_in=TOKEN_IN, token_out=TOKEN_OUT, fee=500, amount_in=1_000),
            995,
        )


class ProxySwapExecutorTests(unittest.IsolatedAsyncioTestCase):
    async def test_without_identity_no_network_call_is_made(self) -> None:
        chain = FakeChain(balances={(TOKEN_IN, WALLET): 10**18})
        result = await _make_executor(chain, identity=None).execute()

        self.assertFalse(result.success)
        self.assertIsNone(result.tx_hash)
        self.assertEqual(chain.calls, [])

    async def test_empty_wallet_stops_after_one_balance_query(self) -> None:
        chain = FakeChain(decimals={TOKEN_IN: 6, TOKEN_OUT: 6})
        result = await _make_executor(chain).execute()

        self.assertFalse(result.success)
        self.assertIsNone(result.tx_hash)
        self.assertEqual(chain.calls, [("token_balance", TOKEN_IN, WALLET)])

    async def test_full_swap_runs_every_step_in_order(self) -> None:
        chain = FakeChain(
            balances={(TOKEN_IN, WALLET): 100_000_000},
            decimals={TOKEN_IN: 6, TOKEN_OUT: 6},
        )
        result = await _make_executor(chain).execute()

        self.assertTrue(result.success)
        self.assertIsNotNone(result.tx_hash)
        self.assertEqual(result.amount_in, 10_000)
        self.assertEqual(result.amount_tokens, Decimal("0.01"))
        self.assertEqual(
            chain.call_names(),
            [
                "token_balance",
                "token_decimals",
                "token_decimals",
                "token_balance",
                "transfer_token",
                "allowance",
                "execute_via_proxy",
                "execute_via_proxy",
            ],
        )

        transfer = chain.calls[4]
        self.assertEqual(transfer, ("transfer_token", TOKEN_IN, PROXY, 10_000))

        _, approve_target, approve_data, approve_action = chain.calls[6]
        self.assertEqual((approve_target, approve_action), (TOKEN_IN, "approve"))
        self.assertEqual(approve_data[:4], APPROVE_SELECTOR)
        spender, amount = decode(["address", "uint256"], approve_data[4:])
        self.assertEqual(spender.lower(), ROUTER)
        self.assertEqual(amount, MAX_UINT256)

        _, swap_target, swap_data, swap_action = chain.calls[7]
        self.assertEqual((swap_target, swap_action), (ROUTER, "swap"))
        self.assertEqual(swap_data[:4], EXACT_INPUT_SINGLE_SELECTOR)
        (params,) = decode(["(address,address,uint24,address,uint256,uint256,uint160)"], swap_data[4:])
        token_in, token_out, fee, recipient, amount_in, amount_out_minimum, price_limit = params
        self.assertEqual((token_in.lower(), token_out.lower()), (TOKEN_IN, TOKEN_OUT))
        self.assertEqual(fee, 500)
        self.assertEqual(recipient.lower(), PROXY)
        self.assertEqual((amount_in, amount_out_minimum, price_limit), (10_000, 9_700, 0))
        self.assertEqual(result.tx_hash, "0x" + f"{3:064x}")

    async def test_funded_and_approved_proxy_only_swaps(self) -> None:
        chain = FakeChain(
            balances={(TOKEN_IN, WALLET): 100_000_000, (TOKEN_IN, PROXY): 50_000},
            allowances={(TOKEN_IN, PROXY, ROUTER): MAX_UINT256},
            decimals={TOKEN_IN: 6, TOKEN_OUT: 6},
        )
        result = await _make_executor(chain).execute()

        self.assertTrue(result.success)
        self.assertNotIn("transfer_token", chain.call_names())
        proxy_calls = [call for call in chain.calls if call[0] == "execute_via_proxy"]
        self.assertEqual([call[3] for call in proxy_calls], ["swap"])

    async def test_partial_proxy_balance_transfers_only_shortfall(self) -> None:
        chain = FakeChain(
            balances={(TOKEN_IN, WALLET): 100_000_000, (TOKEN_IN, PROXY): 4_000},
            decimals={TOKEN_IN: 6, TOKEN_OUT: 6},
        )
        await _make_executor(chain).execute()

        transfers = [call for call in chain.calls if call[0] == "transfer_token"]
        self.assertEqual(transfers, [("transfer_token", TOKEN_IN, PROXY, 6_000)])

    async def test_missing_decimals_default_to_eighteen(self) -> None:
        chain = FakeChain(balances={(TOKEN_IN, WALLET): 10**18}, fail_on="token_decimals")
        result = await _make_executor(chain).execute()

        self.assertTrue(result.success)
        self.assertEqual(result.decimals_in, 18)
        self.assertEqual(result.amount_in, 10**14)

    async def test_reverted_swap_is_reported_not_raised(self) -> None:
        chain = FakeChain(
            balances={(TOKEN_IN, WALLET): 100_000_000},
            decimals={TOKEN_IN: 6, TOKEN_OUT: 6},
            fail_on="swap",
        )
        with self.assertLogs("test.executor", level="ERROR"):
            result = await _make_executor(chain).execute()

        self.assertFalse(result.success)
        self.assertIsNone(result.tx_hash)
        self.assertEqual(result.reason, "error")

    async def test_rpc_failure_on_first_read_is_contained(self) -> None:
        chain = FakeChain(fail_on="token_balance")
        result = await _make_executor(chain).execute()

        self.assertFalse(result.success)
        self.assertEqual(chain.call_names(), ["token_balance"])


if __name__ == "__main__":
    unittest.main()
