"""WalletSigner — the signing agent interface and its implementations.

Implementations:
- ``JsonRpcWalletSigner`` — an injected/remote wallet reached over JSON-RPC
  through a web3 provider.
- ``LocalAccountSigner`` — a local private key (scripts, tests).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import structlog
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_utils import to_checksum_address
from web3 import AsyncWeb3
from web3.types import RPCEndpoint

from models.signing import SigningMethod
from web3_infra.typed_data import to_signable

logger = structlog.get_logger("web3_infra.wallet")

# JSON-RPC method used for each typed-data signing method
_TYPED_DATA_RPC_METHODS: dict[SigningMethod, str] = {
    SigningMethod.V4: "eth_signTypedData_v4",
    SigningMethod.INT_V4: "eth_signTypedData_v4",
    SigningMethod.DEFAULT: "eth_signTypedData",
    SigningMethod.V3: "eth_signTypedData_v3",
}


def strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


class WalletSigner(ABC):
    """Abstract signing agent.

    Failures raise an exception exposing a numeric ``code`` attribute
    and/or a free-text message; the signing cascade classifies them.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address of the signing account."""

    @abstractmethod
    async def sign_typed_data(self, typed_data: dict[str, Any], method: SigningMethod) -> str:
        """Sign an EIP-712 document with the given typed-data method.

        Returns the signature as a hex string.
        """

    @abstractmethod
    async def sign_message(self, message: bytes) -> str:
        """Sign ``message`` as an EIP-191 personal message."""


class JsonRpcWalletSigner(WalletSigner):
    """Drives a JSON-RPC wallet (EIP-1193 provider) via ``AsyncWeb3``.

    Parameters
    ----------
    w3:
        ``AsyncWeb3`` whose provider routes to the wallet.
    address:
        Account to sign with.
    """

    def __init__(self, w3: AsyncWeb3, address: str) -> None:
        self._w3 = w3
        self._address = to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    async def sign_typed_data(self, typed_data: dict[str, Any], method: SigningMethod) -> str:
        rpc_method = _TYPED_DATA_RPC_METHODS.get(method)
        if rpc_method is None:
            raise ValueError(f"{method.value} is not a typed-data signing method")
        params = [self._address.lower(), json.dumps(typed_data)]
        return await self._request(rpc_method, params)

    async def sign_message(self, message: bytes) -> str:
        params = ["0x" + message.hex(), self._address.lower()]
        return await self._request("personal_sign", params)

    async def _request(self, method: str, params: list[Any]) -> str:
        logger.debug("wallet.request", method=method, address=self._address)
        response = await self._w3.provider.make_request(RPCEndpoint(method), params)
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise WalletRpcError(error.get("message", ""), code=error.get("code"))
            raise WalletRpcError(str(error))
        return response["result"]


class LocalAccountSigner(WalletSigner):
    """Signs with a local private key; supports every signing method."""

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_typed_data(self, typed_data: dict[str, Any], method: SigningMethod) -> str:
        if not method.is_typed_data:
            raise ValueError(f"{method.value} is not a typed-data signing method")
        signable = encode_typed_data(full_message=to_signable(typed_data))
        signed = self._account.sign_message(signable)
        return "0x" + strip_0x(signed.signature.hex())

    async def sign_message(self, message: bytes) -> str:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return "0x" + strip_0x(signed.signature.hex())


class WalletRpcError(Exception):
    """Error object returned by a wallet over JSON-RPC."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"{self.message} (code={self.code})"
