"""Property-based tests for the signing cascade and amount formatting via hypothesis."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from execution.formatting import AMOUNT_PRECISION, format_smart
from models.order import OrderKind, UnsignedOrder
from models.signing import SigningMethod, SigningScheme
from web3_infra.signing import (
    MAX_SIGNING_ATTEMPTS,
    SigningExhausted,
    SmartContractSigningUnsupported,
    sign_order,
)
from web3_infra.wallet import WalletRpcError, WalletSigner

ACCOUNT = "0x1111111111111111111111111111111111111111"

# Wallet errors covering every recoverable failure class plus one fatal one
wallet_errors = st.sampled_from([
    WalletRpcError("nope", code=-32601),
    WalletRpcError("Method not found"),
    WalletRpcError("RPC request failed"),
    WalletRpcError('Provided chainId "1" must match the active chainId "1"', code=-32603),
    WalletRpcError("device error", code=-32603),
    WalletRpcError("eth_signTypedData_v4 does not exist"),
    WalletRpcError("eth_signTypedData_v3 does not exist"),
    WalletRpcError("User denied message signature", code=4001),
])

scripts = st.dictionaries(
    keys=st.sampled_from(list(SigningMethod)),
    values=wallet_errors,
)


class ScriptedSigner(WalletSigner):

    def __init__(self, script: dict[SigningMethod, Exception]) -> None:
        self.script = script
        self.calls: list[SigningMethod] = []

    @property
    def address(self) -> str:
        return ACCOUNT

    async def sign_typed_data(self, typed_data: dict[str, Any], method: SigningMethod) -> str:
        return self._outcome(method)

    async def sign_message(self, message: bytes) -> str:
        return self._outcome(SigningMethod.ETH_SIGN)

    def _outcome(self, method: SigningMethod) -> str:
        self.calls.append(method)
        if method in self.script:
            raise self.script[method]
        return "0x" + "ab" * 65


ORDER = UnsignedOrder(
    sell_token="0xe91d153e0b41518a2ce8dd3d7944fa863463a97d",
    buy_token="0xddafbb505ad214d7b80b1f830fccc89b60fb7a83",
    sell_amount="1000",
    buy_amount="990",
    valid_to=1700000000,
    app_data="0x" + "00" * 32,
    kind=OrderKind.SELL,
    receiver=ACCOUNT,
)


def _run(script: dict[SigningMethod, Exception], is_smart_contract: bool):
    signer = ScriptedSigner(script)
    try:
        result = asyncio.run(sign_order(ORDER, 1, signer, is_smart_contract))
    except (SigningExhausted, SmartContractSigningUnsupported, WalletRpcError) as exc:
        return signer, None, exc
    return signer, result, None


class TestCascadeProperties:

    @given(script=scripts, is_smart_contract=st.booleans())
    @settings(max_examples=200, deadline=None)
    def test_attempts_bounded_and_unique(self, script, is_smart_contract: bool) -> None:
        signer, _, _ = _run(script, is_smart_contract)
        assert 1 <= len(signer.calls) <= MAX_SIGNING_ATTEMPTS
        assert len(set(signer.calls)) == len(signer.calls)
        assert signer.calls[0] == SigningMethod.V4

    @given(script=scripts)
    @settings(max_examples=200, deadline=None)
    def test_smart_contract_never_eth_signs(self, script) -> None:
        signer, result, _ = _run(script, True)
        assert SigningMethod.ETH_SIGN not in signer.calls
        if result is not None:
            assert result.signing_scheme == SigningScheme.EIP1271

    @given(script=scripts, is_smart_contract=st.booleans())
    @settings(max_examples=200, deadline=None)
    def test_int_v4_follows_v4(self, script, is_smart_contract: bool) -> None:
        signer, _, _ = _run(script, is_smart_contract)
        if SigningMethod.INT_V4 in signer.calls:
            assert signer.calls.index(SigningMethod.INT_V4) == 1

    @given(script=scripts)
    @settings(max_examples=200, deadline=None)
    def test_scheme_matches_last_method(self, script) -> None:
        signer, result, _ = _run(script, False)
        if result is not None:
            expected = SigningScheme.ETHSIGN if signer.calls[-1] == SigningMethod.ETH_SIGN else SigningScheme.EIP712
            assert result.signing_scheme == expected
            assert not result.signature.startswith("0x")


amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000000"),
    places=8,
    allow_nan=False,
    allow_infinity=False,
)


class TestFormatSmartProperties:

    @given(value=amounts)
    @settings(max_examples=200)
    def test_never_rounds_up(self, value: Decimal) -> None:
        rendered = format_smart(value)
        if rendered.startswith("<"):
            assert 0 < value < Decimal("0.0001")
            return
        shown = Decimal(rendered.replace(",", ""))
        assert shown <= value
        assert value - shown < Decimal(1).scaleb(-AMOUNT_PRECISION)

    @given(value=amounts)
    @settings(max_examples=200)
    def test_precision(self, value: Decimal) -> None:
        rendered = format_smart(value)
        if "." in rendered and not rendered.startswith("<"):
            assert len(rendered.split(".")[1]) <= AMOUNT_PRECISION
            assert not rendered.endswith("0")


@pytest.mark.parametrize("value", [Decimal("0.0001"), Decimal("0.00019")])
def test_smallest_shown_amount(value: Decimal) -> None:
    assert format_smart(value) == "0.0001"
