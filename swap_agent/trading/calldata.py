from __future__ import annotations

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from .types import SwapIntent

ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "transfer",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

# Owned proxy: execute(target, data) forwards a call under the contract's identity.
AGENT_PROXY_ABI = [
    {
        "name": "execute",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "target", "type": "address"},
            {"name": "data", "type": "bytes"},
        ],
        "outputs": [{"name": "", "type": "bytes"}],
    },
    {
        "name": "owner",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

APPROVE_SIGNATURE = "approve(address,uint256)"
EXACT_INPUT_SINGLE_SIGNATURE = (
    "exactInputSingle((address,address,uint24,address,uint256,uint256,uint160))"
)

APPROVE_SELECTOR = function_signature_to_4byte_selector(APPROVE_SIGNATURE)
EXACT_INPUT_SINGLE_SELECTOR = function_signature_to_4byte_selector(EXACT_INPUT_SINGLE_SIGNATURE)


def encode_approve(spender: str, amount: int) -> bytes:
    return APPROVE_SELECTOR + encode(
        ["address", "uint256"],
        [to_checksum_address(spender), amount],
    )


def encode_exact_input_single(intent: SwapIntent) -> bytes:
    token_in, token_out, fee, recipient, amount_in, amount_out_minimum, price_limit = (
        intent.as_router_params()
    )
    return EXACT_INPUT_SINGLE_SELECTOR + encode(
        ["(address,address,uint24,address,uint256,uint256,uint160)"],
        [
            (
                to_checksum_address(token_in),
                to_checksum_address(token_out),
                fee,
                to_checksum_address(recipient),
                amount_in,
                amount_out_minimum,
                price_limit,
            )
        ],
    )
