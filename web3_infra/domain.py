"""EIP-712 signing domain of the GPv2 settlement contract, per chain."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

DOMAIN_NAME = "Gnosis Protocol"
DOMAIN_VERSION = "v2"


class SupportedChainId(IntEnum):
    """Chains with a deployed settlement contract."""

    MAINNET = 1
    RINKEBY = 4
    GOERLI = 5
    GNOSIS_CHAIN = 100


# GPv2Settlement is deployed deterministically to the same address everywhere
_SETTLEMENT = "0x9008D19f58AAbD9eD0D60971565AA8510560ab41"

GP_SETTLEMENT_CONTRACT_ADDRESS: dict[int, str] = {
    SupportedChainId.MAINNET: _SETTLEMENT,
    SupportedChainId.RINKEBY: _SETTLEMENT,
    SupportedChainId.GOERLI: _SETTLEMENT,
    SupportedChainId.GNOSIS_CHAIN: _SETTLEMENT,
}


@dataclass(frozen=True)
class TypedDataDomain:
    """EIP-712 domain scoping signatures to one chain and contract."""

    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def as_dict(self, int_chain_id: bool = True) -> dict[str, Any]:
        """Render as a wallet ``domain`` object.

        ``int_chain_id=False`` emits the chain id as a decimal string, which
        is what some providers forward and what newer MetaMask rejects.
        """
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id if int_chain_id else str(self.chain_id),
            "verifyingContract": self.verifying_contract,
        }


def get_domain(chain_id: int) -> TypedDataDomain:
    """Return the signing domain for ``chain_id``.

    Raises
    ------
    UnsupportedNetworkError
        If no settlement contract is registered for the chain.
    """
    settlement_contract = GP_SETTLEMENT_CONTRACT_ADDRESS.get(chain_id)
    if not settlement_contract:
        raise UnsupportedNetworkError(chain_id)

    return TypedDataDomain(
        name=DOMAIN_NAME,
        version=DOMAIN_VERSION,
        chain_id=int(chain_id),
        verifying_contract=settlement_contract,
    )


class UnsupportedNetworkError(Exception):
    """No settlement contract is deployed on the requested chain."""

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(
            f"Unsupported network {chain_id}. Settlement contract is not deployed"
        )
