from __future__ import annotations

from typing import Any


class FakeChain:
    """In-memory BalanceReader/TransactionSubmitter that records every call in order."""

    def __init__(
        self,
        *,
        balances: dict[tuple[str, str], int] | None = None,
        allowances: dict[tuple[str, str, str], int] | None = None,
        decimals: dict[str, int] | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.balances = dict(balances or {})
        self.allowances = dict(allowances or {})
        self.decimals = dict(decimals or {})
        self.fail_on = fail_on
        self.calls: list[tuple[Any, ...]] = []
        self._tx_counter = 0

    def _next_hash(self) -> str:
        self._tx_counter += 1
        return "0x" + f"{self._tx_counter:064x}"

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise RuntimeError(f"{name} reverted")

    async def token_balance(self, token: str, owner: str) -> int:
        self.calls.append(("token_balance", token, owner))
        self._maybe_fail("token_balance")
        return self.balances.get((token, owner), 0)

    async def token_decimals(self, token: str) -> int:
        self.calls.append(("token_decimals", token))
        self._maybe_fail("token_decimals")
        return self.decimals[token]

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        self.calls.append(("allowance", token, owner, spender))
        return self.allowances.get((token, owner, spender), 0)

    async def transfer_token(self, token: str, recipient: str, amount: int) -> str:
        self.calls.append(("transfer_token", token, recipient, amount))
        self._maybe_fail("transfer_token")
        return self._next_hash()

    async def execute_via_proxy(self, target: str, data: bytes, *, action: str = "proxy_execute") -> str:
        self.calls.append(("execute_via_proxy", target, data, action))
        self._maybe_fail(action)
        return self._next_hash()

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeResponse:
    def __init__(self, *, status: int = 200, payload: Any = None, error: Exception | None = None) -> None:
        self.status = status
        self._payload = payload
        self._error = error

    async def json(self, content_type: str | None = "application/json") -> Any:
        if self._error is not None:
            raise self._error
        return self._payload


class _RequestContext:
    def __init__(self, response: FakeResponse | None, error: BaseException | None) -> None:
        self._response = response
        self._error = error

    async def __aenter__(self) -> FakeResponse:
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeSession:
    """Stands in for ``aiohttp.ClientSession`` in get/post context-manager form."""

    def __init__(self, *, response: FakeResponse | None = None, error: BaseException | None = None) -> None:
        self.response = response or FakeResponse()
        self.error = error
        self.requests: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> _RequestContext:
        self.requests.append(("GET", url, kwargs))
        return _RequestContext(self.response, self.error)

    def post(self, url: str, **kwargs: Any) -> _RequestContext:
        self.requests.append(("POST", url, kwargs))
        return _RequestContext(self.response, self.error)

    async def close(self) -> None:
        self.closed = True
