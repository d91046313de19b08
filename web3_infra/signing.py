"""Signing cascade — negotiates a signature with a wallet of unknown abilities.

Wallets disagree on which ``eth_signTypedData`` flavour they implement
and report missing support in inconsistent ways (proper JSON-RPC codes,
free-text messages, or generic RPC failures).  The cascade tries the
candidate methods one at a time::

    v4 ─► default ─► v3 ─► eth_sign
     │       ▲
     └► int_v4 (chain id type mismatch)

Each failure is reduced to a ``FailureKind`` by ``classify_failure`` and
the transition table picks the next method.  Attempts are sequential and
bounded; no method is tried twice.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from models.order import UnsignedOrder
from models.signing import SigningMethod, SigningResult, SigningScheme
from web3_infra.domain import TypedDataDomain, get_domain
from web3_infra.typed_data import cancellation_typed_data, hash_typed_data, order_typed_data
from web3_infra.wallet import WalletSigner, strip_0x

logger = structlog.get_logger("web3_infra.signing")

# JSON-RPC error codes, see
# - https://eth.wiki/json-rpc/json-rpc-error-codes-improvement-proposal
# - https://www.jsonrpc.org/specification#error_object
METHOD_NOT_FOUND_ERROR_CODE = -32601
METAMASK_SIGNATURE_ERROR_CODE = -32603

METHOD_NOT_FOUND_ERROR = "Method not found"

# Some wallets (1inch) send no error code, only text
METHOD_NOT_FOUND_ERROR_MSG_REGEX = re.compile(r"Method not found", re.IGNORECASE)
RPC_REQUEST_FAILED_REGEX = re.compile(r"RPC request failed", re.IGNORECASE)
V4_ERROR_MSG_REGEX = re.compile(r"eth_signTypedData_v4 does not exist", re.IGNORECASE)
V3_ERROR_MSG_REGEX = re.compile(r"eth_signTypedData_v3 does not exist", re.IGNORECASE)
METAMASK_STRING_CHAINID_REGEX = re.compile(
    r"provided chainid .* must match the active chainid", re.IGNORECASE
)

MAX_SIGNING_ATTEMPTS = 5


class FailureKind(str, Enum):
    """Classified wallet signing failure."""

    METHOD_NOT_FOUND = "METHOD_NOT_FOUND"
    RPC_REQUEST_FAILED = "RPC_REQUEST_FAILED"
    CHAIN_ID_FORMAT_MISMATCH = "CHAIN_ID_FORMAT_MISMATCH"
    HARDWARE_WALLET_SIGNATURE_REJECTED = "HARDWARE_WALLET_SIGNATURE_REJECTED"
    V4_UNSUPPORTED = "V4_UNSUPPORTED"
    V3_UNSUPPORTED = "V3_UNSUPPORTED"
    FATAL = "FATAL"


# Order in which unsupported methods are abandoned
_LINEAR_NEXT: dict[SigningMethod, SigningMethod | None] = {
    SigningMethod.V4: SigningMethod.DEFAULT,
    SigningMethod.INT_V4: SigningMethod.DEFAULT,
    SigningMethod.DEFAULT: SigningMethod.V3,
    SigningMethod.V3: SigningMethod.ETH_SIGN,
    SigningMethod.ETH_SIGN: None,
}

# Failures that walk ``_LINEAR_NEXT``
_LINEAR_FAILURES = frozenset({FailureKind.METHOD_NOT_FOUND, FailureKind.RPC_REQUEST_FAILED})


# ── Payloads ─────────────────────────────────────────────────────────


class SigningPayload(ABC):
    """Something the cascade can sign: an order or a cancellation."""

    @abstractmethod
    def typed_data(self, domain: TypedDataDomain, int_chain_id: bool) -> dict[str, Any]:
        """EIP-712 document for the wallet."""

    @abstractmethod
    def log_context(self) -> dict[str, Any]:
        """Fields identifying the payload in logs."""


@dataclass(frozen=True)
class OrderPayload(SigningPayload):
    order: UnsignedOrder

    def typed_data(self, domain: TypedDataDomain, int_chain_id: bool) -> dict[str, Any]:
        return order_typed_data(domain, self.order, int_chain_id=int_chain_id)

    def log_context(self) -> dict[str, Any]:
        return {
            "payload": "order",
            "sell_token": self.order.sell_token,
            "buy_token": self.order.buy_token,
            "kind": self.order.kind.value,
        }


@dataclass(frozen=True)
class CancellationPayload(SigningPayload):
    order_id: str

    def typed_data(self, domain: TypedDataDomain, int_chain_id: bool) -> dict[str, Any]:
        return cancellation_typed_data(domain, self.order_id, int_chain_id=int_chain_id)

    def log_context(self) -> dict[str, Any]:
        return {"payload": "cancellation", "order_id": self.order_id}


# ── Classification ───────────────────────────────────────────────────


def _error_texts(exc: BaseException) -> list[str]:
    # Not every wallet error has a ``message``, so ``str()`` is checked too
    texts = [str(exc)]
    message = getattr(exc, "message", None)
    if isinstance(message, str):
        texts.insert(0, message)
    return texts


def classify_failure(exc: BaseException, method: SigningMethod) -> FailureKind:
    """Reduce a raw wallet error to a ``FailureKind``.

    Rules are evaluated in order; the first match wins.
    """
    code = getattr(exc, "code", None)
    texts = _error_texts(exc)

    def matches(regex: re.Pattern[str]) -> bool:
        return any(regex.search(text) for text in texts)

    if code == METHOD_NOT_FOUND_ERROR_CODE or matches(METHOD_NOT_FOUND_ERROR_MSG_REGEX):
        return FailureKind.METHOD_NOT_FOUND
    if matches(RPC_REQUEST_FAILED_REGEX):
        return FailureKind.RPC_REQUEST_FAILED
    if matches(METAMASK_STRING_CHAINID_REGEX):
        # MetaMask enforces an integer chainId in the domain
        return FailureKind.CHAIN_ID_FORMAT_MISMATCH
    if code == METAMASK_SIGNATURE_ERROR_CODE and method.is_typed_data:
        # MetaMask + hardware wallet cannot sign typed data, see
        # https://github.com/MetaMask/metamask-extension/issues/10240#issuecomment-810552020
        # Heuristic: other wallets may raise the same generic code.
        return FailureKind.HARDWARE_WALLET_SIGNATURE_REJECTED
    if matches(V4_ERROR_MSG_REGEX):
        return FailureKind.V4_UNSUPPORTED
    if matches(V3_ERROR_MSG_REGEX):
        return FailureKind.V3_UNSUPPORTED
    return FailureKind.FATAL


def next_signing_method(kind: FailureKind, method: SigningMethod) -> SigningMethod | None:
    """Transition table. ``None`` means the failure is not recoverable."""
    if kind in _LINEAR_FAILURES:
        return _LINEAR_NEXT[method]
    if kind == FailureKind.CHAIN_ID_FORMAT_MISMATCH:
        return SigningMethod.INT_V4 if method == SigningMethod.V4 else None
    if kind == FailureKind.HARDWARE_WALLET_SIGNATURE_REJECTED:
        return SigningMethod.ETH_SIGN
    if kind == FailureKind.V4_UNSUPPORTED:
        return SigningMethod.V3
    if kind == FailureKind.V3_UNSUPPORTED:
        return SigningMethod.ETH_SIGN
    return None


def signing_scheme_for(method: SigningMethod, is_smart_contract: bool) -> SigningScheme:
    if method == SigningMethod.ETH_SIGN:
        return SigningScheme.ETHSIGN
    return SigningScheme.EIP1271 if is_smart_contract else SigningScheme.EIP712


# ── Cascade ──────────────────────────────────────────────────────────


async def _attempt(
    payload: SigningPayload,
    domain: TypedDataDomain,
    signer: WalletSigner,
    method: SigningMethod,
) -> str:
    if method == SigningMethod.ETH_SIGN:
        # Legacy signing covers the EIP-712 digest as a personal message
        digest = hash_typed_data(payload.typed_data(domain, int_chain_id=True))
        return await signer.sign_message(digest)

    typed_data = payload.typed_data(domain, int_chain_id=method == SigningMethod.INT_V4)
    return await signer.sign_typed_data(typed_data, method)


async def sign_payload(
    payload: SigningPayload,
    chain_id: int,
    signer: WalletSigner,
    is_smart_contract: bool,
    signing_method: SigningMethod = SigningMethod.V4,
) -> SigningResult:
    """Run the cascade from ``signing_method`` until a wallet signs.

    Raises
    ------
    UnsupportedNetworkError
        Before any wallet call, if the chain has no settlement contract.
    SmartContractSigningUnsupported
        If a smart-contract wallet ran out of typed-data methods.  A
        hardware rejection or missing ``v3`` re-raises the wallet error
        instead.
    SigningExhausted
        If the candidate methods ran out.
    Exception
        Any unrecognised wallet error, unchanged.
    """
    domain = get_domain(chain_id)
    log = logger.bind(chain_id=chain_id, is_smart_contract=is_smart_contract, **payload.log_context())

    method: SigningMethod | None = signing_method
    attempted: list[SigningMethod] = []
    last_error: BaseException | None = None

    while method is not None:
        if method in attempted or len(attempted) >= MAX_SIGNING_ATTEMPTS:
            raise SigningExhausted(attempted, last_error) from last_error
        if is_smart_contract and method == SigningMethod.ETH_SIGN:
            log.warning("signing.smart_contract_eth_sign", attempted=[m.value for m in attempted])
            raise SmartContractSigningUnsupported() from last_error

        attempted.append(method)
        log.info("signing.attempt", method=method.value, attempt=len(attempted))
        try:
            signature = await _attempt(payload, domain, signer, method)
        except Exception as exc:
            kind = classify_failure(exc, method)
            next_method = next_signing_method(kind, method)
            if next_method is None:
                log.warning(
                    "signing.failed",
                    method=method.value,
                    failure=kind.value,
                    error=str(exc)[:200],
                )
                if kind == FailureKind.FATAL:
                    raise
                raise SigningExhausted(attempted, exc) from exc
            if (
                is_smart_contract
                and next_method == SigningMethod.ETH_SIGN
                and kind not in _LINEAR_FAILURES
            ):
                # Only running out of typed-data methods may end in presign
                log.warning(
                    "signing.smart_contract_rejected",
                    method=method.value,
                    failure=kind.value,
                    error=str(exc)[:200],
                )
                raise
            log.info(
                "signing.fallback",
                method=method.value,
                failure=kind.value,
                next_method=next_method.value,
            )
            last_error = exc
            method = next_method
            continue

        scheme = signing_scheme_for(method, is_smart_contract)
        log.info("signing.succeeded", method=method.value, signing_scheme=scheme.value)
        return SigningResult(signature=strip_0x(signature), signing_scheme=scheme)

    raise SigningExhausted(attempted, last_error) from last_error


async def sign_order(
    order: UnsignedOrder,
    chain_id: int,
    signer: WalletSigner,
    is_smart_contract: bool,
) -> SigningResult:
    return await sign_payload(OrderPayload(order), chain_id, signer, is_smart_contract)


async def sign_order_cancellation(
    order_id: str,
    chain_id: int,
    signer: WalletSigner,
    is_smart_contract: bool,
) -> SigningResult:
    return await sign_payload(CancellationPayload(order_id), chain_id, signer, is_smart_contract)


class SmartContractSigningUnsupported(Exception):
    """A smart-contract wallet cannot fall back to ``eth_sign``."""

    code = METHOD_NOT_FOUND_ERROR_CODE

    def __init__(self) -> None:
        super().__init__(
            f"{METHOD_NOT_FOUND_ERROR}: smart contract wallets cannot sign with eth_sign"
        )


class SigningExhausted(Exception):
    """Every applicable signing method failed."""

    def __init__(self, attempted: list[SigningMethod], last_error: BaseException | None) -> None:
        self.attempted = list(attempted)
        self.last_error = last_error
        methods = " -> ".join(m.value for m in self.attempted) or "none"
        super().__init__(f"Wallet could not sign with any method ({methods}): {last_error}")
