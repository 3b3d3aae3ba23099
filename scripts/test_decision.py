from __future__ import annotations

import logging
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from swap_agent.market import LlmDecisionEngine, build_user_message, parse_decision
from swap_agent.trading import DecisionKind


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _make_engine(create: AsyncMock) -> LlmDecisionEngine:
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return LlmDecisionEngine(
        logger=logging.getLogger("test.decision"),
        api_key="unused",
        system_prompt="You are careful.",
        client=client,
    )


class ParseDecisionTests(unittest.TestCase):
    def test_buy_substring_is_case_insensitive(self) -> None:
        self.assertEqual(parse_decision("I recommend BUY now"), DecisionKind.BUY)
        self.assertEqual(parse_decision("buy"), DecisionKind.BUY)

    def test_hold_and_empty_text(self) -> None:
        self.assertEqual(parse_decision("I suggest HOLD"), DecisionKind.HOLD)
        self.assertEqual(parse_decision(""), DecisionKind.HOLD)
        self.assertEqual(parse_decision(None), DecisionKind.HOLD)

    def test_user_message_embeds_price(self) -> None:
        self.assertEqual(
            build_user_message(0.3),
            "The current price is $0.3000. Should I BUY or HOLD?",
        )


class LlmDecisionEngineTests(unittest.IsolatedAsyncioTestCase):
    async def test_decide_sends_prompt_and_returns_text(self) -> None:
        create = AsyncMock(return_value=_completion("BUY, the dip is deep"))
        engine = _make_engine(create)

        decision = await engine.decide(0.31)

        self.assertEqual(decision, "BUY, the dip is deep")
        kwargs = create.await_args.kwargs
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": "You are careful."})
        self.assertIn("$0.3100", kwargs["messages"][1]["content"])
        self.assertEqual(kwargs["max_tokens"], 50)
        self.assertLessEqual(kwargs["temperature"], 0.5)

    async def test_empty_content_falls_back_to_hold(self) -> None:
        for completion in (_completion(None), _completion(""), SimpleNamespace(choices=[])):
            engine = _make_engine(AsyncMock(return_value=completion))
            self.assertEqual(await engine.decide(1.0), "HOLD")

    async def test_remote_failure_propagates(self) -> None:
        engine = _make_engine(AsyncMock(side_effect=RuntimeError("rate limited")))

        with self.assertRaises(RuntimeError):
            await engine.decide(1.0)


if __name__ == "__main__":
    unittest.main()
