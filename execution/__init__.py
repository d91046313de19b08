"""GP orders — execution package."""

from .app_data import AppDataInfo, build_app_data
from .formatting import format_smart, shorten_address
from .order_submitter import OrderSubmitter
from .trade import (
    OrderCancellationParams,
    PostOrderParams,
    get_summary,
    send_order_cancellation,
    sign_and_submit_order,
)

__all__ = [
    "AppDataInfo",
    "OrderCancellationParams",
    "OrderSubmitter",
    "PostOrderParams",
    "build_app_data",
    "format_smart",
    "get_summary",
    "send_order_cancellation",
    "shorten_address",
    "sign_and_submit_order",
]
