"""Order — unsigned orders, API payloads and the local order entity."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional

from eth_utils import is_address
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .signing import SigningScheme
from .token import Token

_UINT_RE = re.compile(r"^\d+$")
_BYTES32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")

_MAX_UINT32 = 2**32 - 1
_ECDSA_SIGNATURE_HEX_LEN = 130  # 65 bytes: r + s + v


class OrderKind(str, Enum):
    """Which side of the trade is fixed."""

    SELL = "sell"
    BUY = "buy"


class OrderStatus(str, Enum):
    """Status of a locally tracked order."""

    PENDING = "PENDING"
    PRESIGNATURE_PENDING = "PRESIGNATURE_PENDING"
    FULFILLED = "FULFILLED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class _WireModel(BaseModel):
    """Base for models serialised camelCase to the order API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_api(self) -> dict[str, Any]:
        """JSON-ready dict with wire field names."""
        return self.model_dump(mode="json", by_alias=True)


class UnsignedOrder(_WireModel):
    """Order parameters covered by the signature.

    Amounts are decimal strings of token base units. Orders are always
    fill-or-kill, so ``partially_fillable`` can only be ``False``.
    """

    sell_token: str = Field(..., min_length=1)
    buy_token: str = Field(..., min_length=1)
    sell_amount: str
    buy_amount: str
    valid_to: int = Field(..., ge=0, le=_MAX_UINT32)
    app_data: str
    fee_amount: str = "0"
    kind: OrderKind
    receiver: str = Field(..., min_length=1)
    partially_fillable: bool = False

    @field_validator("sell_amount", "buy_amount", "fee_amount")
    @classmethod
    def uint_string(cls, v: str) -> str:
        if not _UINT_RE.match(v):
            raise ValueError(f"amount must be a base-10 unsigned integer string, got {v!r}")
        return v

    @field_validator("app_data")
    @classmethod
    def bytes32_hex(cls, v: str) -> str:
        if not _BYTES32_RE.match(v):
            raise ValueError("app_data must be a 0x-prefixed 32 byte hex string")
        return v.lower()

    @field_validator("partially_fillable")
    @classmethod
    def fill_or_kill(cls, v: bool) -> bool:
        if v:
            raise ValueError("partially fillable orders are not supported")
        return v


class OrderCreation(UnsignedOrder):
    """Body of ``POST /orders``.

    ``signature`` is hex without ``0x``: 65 bytes for EIP712/ETHSIGN, the
    owner address (as given) for PRESIGN, contract-defined bytes for
    EIP1271.
    """

    signing_scheme: SigningScheme
    signature: str

    @model_validator(mode="after")
    def signature_matches_scheme(self) -> OrderCreation:
        _check_signature(self.signature, self.signing_scheme)
        return self


class OrderCancellation(_WireModel):
    """Body of the order cancellation request."""

    order_uid: str = Field(..., min_length=1)
    signature: str
    signing_scheme: SigningScheme

    @model_validator(mode="after")
    def signature_matches_scheme(self) -> OrderCancellation:
        _check_signature(self.signature, self.signing_scheme)
        return self


class Order(UnsignedOrder):
    """Locally tracked order, created once the API accepted it."""

    model_config = ConfigDict(frozen=False)

    id: str = Field(..., min_length=1, description="Order UID assigned by the API")
    owner: str
    summary: str
    input_token: Token
    output_token: Token
    status: OrderStatus = OrderStatus.PENDING
    creation_time: str
    signature: str
    # Needed later to compute how much of an unfilled order remains
    sell_amount_before_fee: str
    is_cancelling: bool = False
    api_additional_info: Optional[dict[str, Any]] = None


class AddPendingOrderParams(BaseModel):
    """Result of a successful order submission."""

    chain_id: int
    id: str
    order: Order


class ChangeOrderStatusParams(BaseModel):
    """Identifies an order whose local status must change."""

    model_config = ConfigDict(frozen=True)

    chain_id: int
    id: str


def _check_signature(signature: str, scheme: SigningScheme) -> None:
    if scheme == SigningScheme.PRESIGN:
        if not is_address(signature):
            raise ValueError("presign signature must be the owner address")
        return
    if signature.startswith("0x"):
        raise ValueError("signature must not carry the 0x prefix")
    if not _HEX_RE.match(signature):
        raise ValueError("signature must be hex encoded")
    if scheme in (SigningScheme.EIP712, SigningScheme.ETHSIGN) and len(signature) != _ECDSA_SIGNATURE_HEX_LEN:
        raise ValueError(
            f"{scheme.value} signature must be 65 bytes, got {len(signature) // 2}"
        )
