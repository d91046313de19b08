"""Signing schemes, wallet signing methods and signing results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SigningScheme(str, Enum):
    """How an order is authenticated by the settlement contract.

    The enum value is the order API wire value; ``lib_value`` is the
    numeric encoding used on-chain.
    """

    EIP712 = "eip712"
    ETHSIGN = "ethsign"
    EIP1271 = "eip1271"
    PRESIGN = "presign"

    @property
    def api_value(self) -> str:
        return get_signing_scheme_api_value(self)

    @property
    def lib_value(self) -> int:
        return get_signing_scheme_lib_value(self)


_LIBRARY_VALUES: dict[SigningScheme, int] = {
    SigningScheme.EIP712: 0,
    SigningScheme.ETHSIGN: 1,
    SigningScheme.EIP1271: 2,
    SigningScheme.PRESIGN: 3,
}


def _scheme_info(scheme: object) -> SigningScheme:
    try:
        return SigningScheme(scheme)
    except ValueError:
        raise ValueError(f"Unknown schema {scheme}") from None


def get_signing_scheme_api_value(scheme: SigningScheme | str) -> str:
    """Return the order API value (``"eip712"``, ``"presign"``...)."""
    return _scheme_info(scheme).value


def get_signing_scheme_lib_value(scheme: SigningScheme | str) -> int:
    """Return the numeric on-chain encoding of a signing scheme."""
    return _LIBRARY_VALUES[_scheme_info(scheme)]


class SigningMethod(str, Enum):
    """Wallet signing method tried by the signing cascade."""

    V4 = "v4"  # eth_signTypedData_v4
    INT_V4 = "int_v4"  # eth_signTypedData_v4, integer chainId in the domain
    DEFAULT = "default"  # eth_signTypedData (unversioned)
    V3 = "v3"  # eth_signTypedData_v3
    ETH_SIGN = "eth_sign"  # personal_sign over the EIP-712 digest

    @property
    def is_typed_data(self) -> bool:
        return self is not SigningMethod.ETH_SIGN


class SigningResult(BaseModel):
    """Signature produced by one successful signing run."""

    model_config = ConfigDict(frozen=True)

    signature: str = Field(..., min_length=1, description="Hex, no 0x prefix")
    signing_scheme: SigningScheme
