from __future__ import annotations

import logging
from typing import Any

from openai import AsyncOpenAI

from swap_agent.common import log_event
from swap_agent.trading.types import DecisionKind

FALLBACK_DECISION = "HOLD"


def parse_decision(text: str | None) -> DecisionKind:
    if text and "BUY" in text.upper():
        return DecisionKind.BUY
    return DecisionKind.HOLD


def build_user_message(price: float) -> str:
    return f"The current price is ${price:.4f}. Should I BUY or HOLD?"


class LlmDecisionEngine:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        api_key: str,
        system_prompt: str,
        model: str = "llama-3.1-8b-instant",
        base_url: str = "https://api.groq.com/openai/v1",
        temperature: float = 0.3,
        max_tokens: int = 50,
        client: Any | None = None,
    ) -> None:
        self._logger = logger
        self.system_prompt = system_prompt
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def close(self) -> None:
        await self._client.close()

    async def decide(self, price: float) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": build_user_message(price)},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        content = None
        if response.choices:
            content = response.choices[0].message.content
        decision = (content or "").strip() or FALLBACK_DECISION

        log_event(
            self._logger,
            level="info",
            event="decision_received",
            message="Completion service returned a decision",
            model=self.model,
            decision=decision,
            decision_kind=parse_decision(decision).value,
        )
        return decision
