"""EIP-712 typed data for GPv2 orders and order cancellations.

Builds the ``eth_signTypedData`` payloads handed to wallets, hashes them
the way the settlement contract does, and packs order UIDs.
"""

from __future__ import annotations

import copy
from typing import Any

from eth_account.messages import encode_typed_data
from eth_utils import keccak, to_bytes, to_checksum_address

from models.order import UnsignedOrder
from web3_infra.domain import TypedDataDomain

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Token balance source/destination; only plain ERC-20 balances are used
BALANCE_ERC20 = "erc20"

EIP712_DOMAIN_TYPE_FIELDS: list[dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

ORDER_TYPE_FIELDS: list[dict[str, str]] = [
    {"name": "sellToken", "type": "address"},
    {"name": "buyToken", "type": "address"},
    {"name": "receiver", "type": "address"},
    {"name": "sellAmount", "type": "uint256"},
    {"name": "buyAmount", "type": "uint256"},
    {"name": "validTo", "type": "uint32"},
    {"name": "appData", "type": "bytes32"},
    {"name": "feeAmount", "type": "uint256"},
    {"name": "kind", "type": "string"},
    {"name": "partiallyFillable", "type": "bool"},
    {"name": "sellTokenBalance", "type": "string"},
    {"name": "buyTokenBalance", "type": "string"},
]

CANCELLATION_TYPE_FIELDS: list[dict[str, str]] = [
    {"name": "orderUid", "type": "bytes"},
]

ORDER_UID_LENGTH = 56  # digest (32) + owner (20) + validTo (4)


def normalize_order(order: UnsignedOrder) -> dict[str, Any]:
    """Order as an EIP-712 ``Order`` message (JSON-safe, uints as strings)."""
    receiver = order.receiver if order.receiver else ZERO_ADDRESS
    return {
        "sellToken": to_checksum_address(order.sell_token),
        "buyToken": to_checksum_address(order.buy_token),
        "receiver": to_checksum_address(receiver),
        "sellAmount": order.sell_amount,
        "buyAmount": order.buy_amount,
        "validTo": order.valid_to,
        "appData": order.app_data,
        "feeAmount": order.fee_amount,
        "kind": order.kind.value,
        "partiallyFillable": order.partially_fillable,
        "sellTokenBalance": BALANCE_ERC20,
        "buyTokenBalance": BALANCE_ERC20,
    }


def order_typed_data(
    domain: TypedDataDomain,
    order: UnsignedOrder,
    int_chain_id: bool = True,
) -> dict[str, Any]:
    """Full typed-data document for signing an order."""
    return _typed_data(
        domain,
        primary_type="Order",
        fields=ORDER_TYPE_FIELDS,
        message=normalize_order(order),
        int_chain_id=int_chain_id,
    )


def cancellation_typed_data(
    domain: TypedDataDomain,
    order_uid: str,
    int_chain_id: bool = True,
) -> dict[str, Any]:
    """Full typed-data document for signing an order cancellation."""
    return _typed_data(
        domain,
        primary_type="OrderCancellation",
        fields=CANCELLATION_TYPE_FIELDS,
        message={"orderUid": order_uid},
        int_chain_id=int_chain_id,
    )


def _typed_data(
    domain: TypedDataDomain,
    primary_type: str,
    fields: list[dict[str, str]],
    message: dict[str, Any],
    int_chain_id: bool,
) -> dict[str, Any]:
    return {
        "types": {
            "EIP712Domain": list(EIP712_DOMAIN_TYPE_FIELDS),
            primary_type: list(fields),
        },
        "primaryType": primary_type,
        "domain": domain.as_dict(int_chain_id=int_chain_id),
        "message": message,
    }


def to_signable(typed_data: dict[str, Any]) -> dict[str, Any]:
    """Coerce a wallet payload into what ``encode_typed_data`` accepts.

    Wallet payloads carry uints and the chain id as strings and bytes as
    hex; hashing needs integers and raw bytes.
    """
    data = copy.deepcopy(typed_data)
    data["domain"]["chainId"] = int(data["domain"]["chainId"])
    message = data["message"]
    for field in data["types"][data["primaryType"]]:
        name, type_ = field["name"], field["type"]
        value = message[name]
        if type_.startswith("uint"):
            message[name] = int(value)
        elif type_.startswith("bytes") and isinstance(value, str):
            message[name] = to_bytes(hexstr=value)
    return data


def hash_typed_data(typed_data: dict[str, Any]) -> bytes:
    """EIP-712 digest: ``keccak256(0x1901 ‖ domainSeparator ‖ structHash)``."""
    signable = encode_typed_data(full_message=to_signable(typed_data))
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def compute_order_uid(order_digest: bytes, owner: str, valid_to: int) -> str:
    """Pack the 56 byte order UID the order API assigns to an order."""
    if len(order_digest) != 32:
        raise ValueError("order digest must be 32 bytes")
    packed = order_digest + to_bytes(hexstr=to_checksum_address(owner)) + valid_to.to_bytes(4, "big")
    return "0x" + packed.hex()
