"""Smart-contract wallet signing: EIP-1271 first, presignature otherwise.

Contract wallets (Safe and friends) verify signatures on-chain via
EIP-1271 when their wallet bridge can produce one.  When it cannot, the
order is posted with the PRESIGN scheme and stays inactive until the
owner sends the ``setPreSignature`` transaction.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog

from models.signing import SigningMethod, SigningResult, SigningScheme
from web3_infra.signing import (
    FailureKind,
    SmartContractSigningUnsupported,
    classify_failure,
)

logger = structlog.get_logger("web3_infra.smart_contract")


def is_method_not_found(exc: BaseException) -> bool:
    """True for the failure class that makes a contract wallet presign."""
    if isinstance(exc, SmartContractSigningUnsupported):
        return True
    return classify_failure(exc, SigningMethod.V4) == FailureKind.METHOD_NOT_FOUND


def presign_result(account: str) -> SigningResult:
    """PRESIGN carries the owner address in place of a signature."""
    return SigningResult(signature=account, signing_scheme=SigningScheme.PRESIGN)


async def sign_with_presign_fallback(
    sign: Callable[[], Awaitable[SigningResult]],
    account: str,
) -> SigningResult:
    """Run ``sign`` once; fall back to PRESIGN on method-not-found.

    ``sign`` is a smart-contract cascade run (EIP-1271 expected).  Any
    other failure propagates.
    """
    try:
        return await sign()
    except Exception as exc:
        if not is_method_not_found(exc):
            raise
        logger.info(
            "smart_contract.presign_fallback",
            account=account,
            error=str(exc)[:200],
        )
        return presign_result(account)
