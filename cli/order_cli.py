"""Order CLI — sign and post orders or cancellations from the command line.

Signs with ``PRIVATE_KEY`` from the environment / .env, or with a JSON-RPC
wallet when ``--rpc-url`` and ``--account`` are given.

Usage:
    python3 -m cli.order_cli submit --chain-id 100 --kind sell \\
        --sell-token 0x... --sell-symbol WXDAI --sell-decimals 18 --sell-amount 10 \\
        --buy-token 0x... --buy-symbol USDC --buy-decimals 6 --buy-amount 9.9
    python3 -m cli.order_cli cancel <order_uid> --chain-id 100
    python3 -m cli.order_cli has-trades --chain-id 100 --owner 0x...
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from decimal import Decimal

import structlog
from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider

from config.settings import settings
from core.logger import setup_logging
from data.order_api import OrderBookApi
from execution.app_data import build_app_data
from execution.trade import (
    OrderCancellationParams,
    PostOrderParams,
    send_order_cancellation,
    sign_and_submit_order,
)
from models.order import ChangeOrderStatusParams, OrderKind
from models.token import Token, TokenAmount
from web3_infra.wallet import JsonRpcWalletSigner, LocalAccountSigner, WalletSigner

logger = structlog.get_logger("cli.order_cli")


def _make_signer(args: argparse.Namespace) -> WalletSigner:
    """Create the signing agent from CLI flags or settings."""
    rpc_url = args.rpc_url or settings.WALLET_RPC_URL
    if rpc_url:
        if not args.account:
            print("ERROR: --account is required with a JSON-RPC wallet")
            sys.exit(1)
        return JsonRpcWalletSigner(AsyncWeb3(AsyncHTTPProvider(rpc_url)), args.account)

    if not settings.PRIVATE_KEY:
        print("ERROR: set PRIVATE_KEY or pass --rpc-url/--account")
        sys.exit(1)
    return LocalAccountSigner(settings.PRIVATE_KEY)


def _build_order_params(args: argparse.Namespace, signer: WalletSigner) -> PostOrderParams:
    chain_id = args.chain_id
    account = signer.address
    sell_token = Token(
        chain_id=chain_id,
        address=args.sell_token,
        symbol=args.sell_symbol,
        decimals=args.sell_decimals,
    )
    buy_token = Token(
        chain_id=chain_id,
        address=args.buy_token,
        symbol=args.buy_symbol,
        decimals=args.buy_decimals,
    )

    sell_amount_before_fee = TokenAmount.from_decimal(sell_token, Decimal(args.sell_amount))
    fee_amount = TokenAmount.from_decimal(sell_token, Decimal(args.fee_amount))
    if fee_amount.raw > sell_amount_before_fee.raw:
        print("ERROR: fee exceeds the sell amount")
        sys.exit(1)
    input_amount = TokenAmount(token=sell_token, raw=sell_amount_before_fee.raw - fee_amount.raw)
    output_amount = TokenAmount.from_decimal(buy_token, Decimal(args.buy_amount))

    app_data = build_app_data(
        sell_amount=input_amount.quotient,
        buy_amount=output_amount.quotient,
        referrer_account=args.referrer,
    )
    receiver = args.receiver or account
    valid_for = args.valid_for or settings.DEFAULT_ORDER_TTL_SECONDS

    return PostOrderParams(
        account=account,
        chain_id=chain_id,
        signer=signer,
        kind=OrderKind(args.kind),
        input_amount=input_amount,
        output_amount=output_amount,
        sell_amount_before_fee=sell_amount_before_fee,
        fee_amount=fee_amount if fee_amount.raw else None,
        sell_token=sell_token,
        buy_token=buy_token,
        valid_to=int(time.time()) + valid_for,
        recipient=receiver,
        recipient_address_or_name=args.receiver,
        is_smart_contract_wallet=args.smart_contract_wallet,
        app_data_hash=app_data.hash,
    )


async def cmd_submit(args: argparse.Namespace) -> None:
    """Sign and post an order, print the pending order."""
    signer = _make_signer(args)
    params = _build_order_params(args, signer)

    async with OrderBookApi() as api:
        result = await sign_and_submit_order(params, api)

    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))


async def cmd_cancel(args: argparse.Namespace) -> None:
    """Sign and post a cancellation for an order UID."""
    signer = _make_signer(args)

    def _on_cancelled(change: ChangeOrderStatusParams) -> None:
        print(f"Order {change.id} on chain {change.chain_id} is being cancelled")

    params = OrderCancellationParams(
        order_id=args.order_id,
        account=signer.address,
        chain_id=args.chain_id,
        signer=signer,
        cancel_pending_order=_on_cancelled,
        is_smart_contract_wallet=args.smart_contract_wallet,
    )
    async with OrderBookApi() as api:
        await send_order_cancellation(params, api)


async def cmd_has_trades(args: argparse.Namespace) -> None:
    """Report whether an address has traded before."""
    async with OrderBookApi() as api:
        traded = await api.has_trades(args.chain_id, args.owner)
    print(json.dumps({"owner": args.owner, "hasTrades": traded}))


def _add_wallet_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--chain-id", type=int, required=True, help="Chain id (1, 4, 5, 100)")
    parser.add_argument("--rpc-url", default="", help="JSON-RPC wallet endpoint")
    parser.add_argument("--account", default="", help="Account to sign with (JSON-RPC wallet)")
    parser.add_argument(
        "--smart-contract-wallet",
        action="store_true",
        help="Account is a smart contract wallet (EIP-1271 / presign)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="GP orders — sign and post orders to the order book",
        prog="order_cli",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO...)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # submit
    sub_submit = subparsers.add_parser("submit", help="Sign and post an order")
    _add_wallet_args(sub_submit)
    sub_submit.add_argument("--kind", choices=[k.value for k in OrderKind], default="sell")
    for side in ("sell", "buy"):
        sub_submit.add_argument(f"--{side}-token", required=True, help=f"{side} token address")
        sub_submit.add_argument(f"--{side}-symbol", required=True)
        sub_submit.add_argument(f"--{side}-decimals", type=int, required=True)
    sub_submit.add_argument(
        "--sell-amount",
        required=True,
        help="Sell amount before fee, in token units",
    )
    sub_submit.add_argument("--buy-amount", required=True, help="Buy amount, in token units")
    sub_submit.add_argument("--fee-amount", default="0", help="Fee in sell token units (default: 0)")
    sub_submit.add_argument("--receiver", default=None, help="Receiver address (default: account)")
    sub_submit.add_argument(
        "--valid-for",
        type=int,
        default=None,
        help="Seconds until the order expires (default: DEFAULT_ORDER_TTL_SECONDS)",
    )
    sub_submit.add_argument("--referrer", default=None, help="Referrer address for app data")

    # cancel
    sub_cancel = subparsers.add_parser("cancel", help="Cancel an order")
    sub_cancel.add_argument("order_id", help="Order UID")
    _add_wallet_args(sub_cancel)

    # has-trades
    sub_trades = subparsers.add_parser("has-trades", help="Check whether an address has traded")
    sub_trades.add_argument("--chain-id", type=int, required=True)
    sub_trades.add_argument("--owner", required=True)

    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(level=args.log_level)

    cmd_map = {
        "submit": cmd_submit,
        "cancel": cmd_cancel,
        "has-trades": cmd_has_trades,
    }

    handler = cmd_map.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(handler(args))
    except Exception as exc:
        logger.error("order_cli.failed", command=args.command, error=str(exc))
        print(f"ERROR: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
