from __future__ import annotations

import logging
from typing import Any

import aiohttp
from eth_account import Account
from web3 import AsyncWeb3, Web3

from swap_agent.common import log_event

from .calldata import AGENT_PROXY_ABI, ERC20_ABI
from .types import AgentIdentity, TransactionRevertedError


class Web3ChainClient:
    """JSON-RPC access for the agent wallet and its proxy contract.

    Reads work without a signing identity; every state-changing call requires
    one and waits for the receipt before returning the transaction hash.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        rpc_url: str,
        proxy_address: str,
        identity: AgentIdentity | None = None,
        confirmation_timeout_seconds: float = 600.0,
        request_timeout_seconds: float = 30.0,
    ) -> None:
        self._logger = logger
        self.proxy_address = Web3.to_checksum_address(proxy_address)
        self.identity = identity
        self._confirmation_timeout_seconds = confirmation_timeout_seconds
        self._w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=request_timeout_seconds)},
            )
        )

    async def close(self) -> None:
        await self._w3.provider.disconnect()

    async def chain_id(self) -> int:
        return int(await self._w3.eth.chain_id)

    async def native_balance(self, address: str) -> int:
        return int(await self._w3.eth.get_balance(Web3.to_checksum_address(address)))

    def _token(self, token: str) -> Any:
        return self._w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)

    async def token_balance(self, token: str, owner: str) -> int:
        return int(await self._token(token).functions.balanceOf(Web3.to_checksum_address(owner)).call())

    async def token_decimals(self, token: str) -> int:
        return int(await self._token(token).functions.decimals().call())

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return int(
            await self._token(token)
            .functions.allowance(Web3.to_checksum_address(owner), Web3.to_checksum_address(spender))
            .call()
        )

    async def transfer_token(self, token: str, recipient: str, amount: int) -> str:
        call = self._token(token).functions.transfer(Web3.to_checksum_address(recipient), amount)
        return await self._send(call, action="transfer")

    async def execute_via_proxy(self, target: str, data: bytes, *, action: str = "proxy_execute") -> str:
        proxy = self._w3.eth.contract(address=self.proxy_address, abi=AGENT_PROXY_ABI)
        call = proxy.functions.execute(Web3.to_checksum_address(target), data)
        return await self._send(call, action=action)

    async def _send(self, call: Any, *, action: str) -> str:
        if self.identity is None:
            raise RuntimeError("Signing identity is not configured.")

        sender = self.identity.address
        nonce = await self._w3.eth.get_transaction_count(sender, "pending")
        transaction = await call.build_transaction({"from": sender, "nonce": nonce})
        signed = Account.sign_transaction(transaction, self.identity.private_key)
        tx_hash = Web3.to_hex(await self._w3.eth.send_raw_transaction(signed.raw_transaction))

        log_event(
            self._logger,
            level="info",
            event="transaction_sent",
            message="Transaction submitted, waiting for confirmation",
            action=action,
            tx_hash=tx_hash,
            nonce=nonce,
        )

        receipt = await self._w3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self._confirmation_timeout_seconds,
        )
        if receipt["status"] != 1:
            raise TransactionRevertedError(tx_hash, action=action)

        log_event(
            self._logger,
            level="info",
            event="transaction_confirmed",
            message="Transaction confirmed",
            action=action,
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
        )
        return tx_hash
