"""GP orders — web3_infra package.

- Domain resolution and EIP-712 typed data for the settlement contract
- WalletSigner implementations (JSON-RPC wallet, local key)
- The signing cascade and the smart-contract (EIP-1271 / presign) adapter
"""

from .domain import TypedDataDomain, UnsupportedNetworkError, get_domain
from .signing import (
    FailureKind,
    SigningExhausted,
    SmartContractSigningUnsupported,
    classify_failure,
    sign_order,
    sign_order_cancellation,
    sign_payload,
)
from .smart_contract import sign_with_presign_fallback
from .wallet import JsonRpcWalletSigner, LocalAccountSigner, WalletRpcError, WalletSigner

__all__ = [
    "FailureKind",
    "JsonRpcWalletSigner",
    "LocalAccountSigner",
    "SigningExhausted",
    "SmartContractSigningUnsupported",
    "TypedDataDomain",
    "UnsupportedNetworkError",
    "WalletRpcError",
    "WalletSigner",
    "classify_failure",
    "get_domain",
    "sign_order",
    "sign_order_cancellation",
    "sign_payload",
    "sign_with_presign_fallback",
]
