"""Token / TokenAmount — ERC-20 tokens and base-unit amounts."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Token(BaseModel):
    """ERC-20 token on a given chain."""

    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., gt=0)
    address: str
    symbol: str = Field(..., min_length=1)
    decimals: int = Field(..., ge=0, le=255)
    name: str | None = None

    @field_validator("address")
    @classmethod
    def checksum_address(cls, v: str) -> str:
        if not is_address(v):
            raise ValueError(f"invalid token address: {v}")
        return to_checksum_address(v)


class TokenAmount(BaseModel):
    """Amount of a token held in integer base units (``raw``)."""

    model_config = ConfigDict(frozen=True)

    token: Token
    raw: int = Field(..., ge=0)

    @classmethod
    def from_decimal(cls, token: Token, value: Decimal | str) -> TokenAmount:
        """Build from a human amount, truncating below the token precision."""
        scaled = (Decimal(value) * (Decimal(10) ** token.decimals)).quantize(
            Decimal("1"), rounding=ROUND_DOWN
        )
        return cls(token=token, raw=int(scaled))

    def to_decimal(self) -> Decimal:
        return Decimal(self.raw).scaleb(-self.token.decimals)

    @property
    def quotient(self) -> str:
        """Base units as a decimal string (wire format)."""
        return str(self.raw)

    def add(self, other: TokenAmount) -> TokenAmount:
        if other.token.address != self.token.address or other.token.chain_id != self.token.chain_id:
            raise ValueError(
                f"cannot add {other.token.symbol} to {self.token.symbol}"
            )
        return TokenAmount(token=self.token, raw=self.raw + other.raw)
