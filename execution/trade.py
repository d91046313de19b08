"""Order submission and cancellation pipelines.

``sign_and_submit_order`` builds an unsigned order, gets it signed by the
connected wallet, posts it to the order book and returns the local order
entity.  ``send_order_cancellation`` signs and posts a cancellation, then
marks the local order as cancelling.  Both are all-or-nothing: any
signing or API failure propagates and nothing is created or mutated.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

import structlog
from eth_utils import is_address

from execution.formatting import format_smart, same_address, shorten_address
from execution.order_submitter import OrderSubmitter
from models.order import (
    AddPendingOrderParams,
    ChangeOrderStatusParams,
    Order,
    OrderCancellation,
    OrderCreation,
    OrderKind,
    OrderStatus,
    UnsignedOrder,
)
from models.signing import SigningResult, SigningScheme
from models.token import Token, TokenAmount
from web3_infra.domain import get_domain
from web3_infra.signing import sign_order, sign_order_cancellation
from web3_infra.smart_contract import sign_with_presign_fallback
from web3_infra.typed_data import compute_order_uid, hash_typed_data, order_typed_data
from web3_infra.wallet import WalletSigner

logger = structlog.get_logger("execution.trade")

CancelPendingOrder = Callable[[ChangeOrderStatusParams], Union[None, Awaitable[None]]]


@dataclass
class PostOrderParams:
    """Everything needed to sign and post one order.

    ``input_amount`` is the fee-adjusted sell amount and ``output_amount``
    the slippage-adjusted buy amount.  ``recipient`` is the receiver
    address; ``recipient_address_or_name`` is what the user typed (an
    address or an ENS name) and is only used for the summary.
    """

    account: str
    chain_id: int
    signer: WalletSigner
    kind: OrderKind
    input_amount: TokenAmount
    output_amount: TokenAmount
    sell_amount_before_fee: TokenAmount
    fee_amount: Optional[TokenAmount]
    sell_token: Token
    buy_token: Token
    valid_to: int
    recipient: str
    recipient_address_or_name: Optional[str]
    is_smart_contract_wallet: bool
    app_data_hash: str


@dataclass
class OrderCancellationParams:
    order_id: str
    account: str
    chain_id: int
    signer: WalletSigner
    cancel_pending_order: CancelPendingOrder
    is_smart_contract_wallet: bool


def get_summary(params: PostOrderParams) -> str:
    """One-line description, e.g. ``Swap 5 WETH for at least 10 DAI``."""
    input_quantifier = "at most " if params.kind == OrderKind.BUY else ""
    output_quantifier = "at least " if params.kind == OrderKind.SELL else ""

    input_amount = params.input_amount
    if params.fee_amount is not None:
        input_amount = input_amount.add(params.fee_amount)

    base = (
        f"Swap {input_quantifier}{format_smart(input_amount)} {params.input_amount.token.symbol} "
        f"for {output_quantifier}{format_smart(params.output_amount)} {params.output_amount.token.symbol}"
    )

    if same_address(params.recipient, params.account):
        return base

    recipient = params.recipient_address_or_name or params.recipient
    to_address = shorten_address(recipient) if is_address(recipient) else recipient
    return f"{base} to {to_address}"


def build_unsigned_order(params: PostOrderParams) -> UnsignedOrder:
    return UnsignedOrder(
        sell_token=params.sell_token.address,
        buy_token=params.buy_token.address,
        sell_amount=params.input_amount.quotient,
        buy_amount=params.output_amount.quotient,
        valid_to=params.valid_to,
        app_data=params.app_data_hash,
        fee_amount=params.fee_amount.quotient if params.fee_amount is not None else "0",
        kind=params.kind,
        receiver=params.recipient,
        partially_fillable=False,  # always fill or kill
    )


async def _sign(params: PostOrderParams, order: UnsignedOrder) -> SigningResult:
    if not params.is_smart_contract_wallet:
        return await sign_order(order, params.chain_id, params.signer, False)
    return await sign_with_presign_fallback(
        lambda: sign_order(order, params.chain_id, params.signer, True),
        params.account,
    )


async def sign_and_submit_order(
    params: PostOrderParams,
    api: OrderSubmitter,
) -> AddPendingOrderParams:
    """Sign ``params`` as an order, post it and build the pending order.

    Raises whatever signing or the order book raised; in that case no
    order has been posted (signing) or recorded (API).
    """
    summary = get_summary(params)
    creation_time = datetime.now(timezone.utc).isoformat()
    unsigned_order = build_unsigned_order(params)

    log = logger.bind(chain_id=params.chain_id, account=params.account)
    log.info("trade.sign_order", summary=summary, is_smart_contract=params.is_smart_contract_wallet)

    signing = await _sign(params, unsigned_order)
    status = (
        OrderStatus.PRESIGNATURE_PENDING
        if signing.signing_scheme == SigningScheme.PRESIGN
        else OrderStatus.PENDING
    )

    expected_order_id = _expected_order_uid(unsigned_order, params)
    order_creation = OrderCreation(
        **unsigned_order.model_dump(),
        signing_scheme=signing.signing_scheme,
        signature=signing.signature,
    )
    order_id = await api.submit_order(params.chain_id, order_creation, owner=params.account)
    if order_id.lower() != expected_order_id:
        log.warning(
            "trade.order_uid_mismatch",
            order_id=order_id,
            expected_order_id=expected_order_id,
        )

    order = Order(
        **unsigned_order.model_dump(),
        id=order_id,
        owner=params.account,
        summary=summary,
        input_token=params.sell_token,
        output_token=params.buy_token,
        status=status,
        creation_time=creation_time,
        signature=signing.signature,
        sell_amount_before_fee=params.sell_amount_before_fee.quotient,
    )
    log.info(
        "trade.order_submitted",
        order_id=order_id,
        status=status.value,
        signing_scheme=signing.signing_scheme.value,
    )
    return AddPendingOrderParams(chain_id=params.chain_id, id=order_id, order=order)


def _expected_order_uid(order: UnsignedOrder, params: PostOrderParams) -> str:
    digest = hash_typed_data(order_typed_data(get_domain(params.chain_id), order))
    return compute_order_uid(digest, params.account, order.valid_to)


async def send_order_cancellation(params: OrderCancellationParams, api: OrderSubmitter) -> None:
    """Sign and post a cancellation, then flag the local order.

    ``cancel_pending_order`` only runs once the order book accepted the
    cancellation.
    """
    log = logger.bind(chain_id=params.chain_id, order_id=params.order_id)
    log.info("trade.cancel_order", is_smart_contract=params.is_smart_contract_wallet)

    signing = await sign_order_cancellation(
        params.order_id,
        params.chain_id,
        params.signer,
        params.is_smart_contract_wallet,
    )
    cancellation = OrderCancellation(
        order_uid=params.order_id,
        signature=signing.signature,
        signing_scheme=signing.signing_scheme,
    )
    await api.submit_cancellation(params.chain_id, cancellation, owner=params.account)

    result: Any = params.cancel_pending_order(
        ChangeOrderStatusParams(chain_id=params.chain_id, id=params.order_id)
    )
    if inspect.isawaitable(result):
        await result
    log.info("trade.cancellation_requested", signing_scheme=signing.signing_scheme.value)
