"""GP orders — models package."""

from .order import (
    AddPendingOrderParams,
    ChangeOrderStatusParams,
    Order,
    OrderCancellation,
    OrderCreation,
    OrderKind,
    OrderStatus,
    UnsignedOrder,
)
from .signing import (
    SigningMethod,
    SigningResult,
    SigningScheme,
    get_signing_scheme_api_value,
    get_signing_scheme_lib_value,
)
from .token import Token, TokenAmount

__all__ = [
    "AddPendingOrderParams",
    "ChangeOrderStatusParams",
    "Order",
    "OrderCancellation",
    "OrderCreation",
    "OrderKind",
    "OrderStatus",
    "SigningMethod",
    "SigningResult",
    "SigningScheme",
    "Token",
    "TokenAmount",
    "UnsignedOrder",
    "get_signing_scheme_api_value",
    "get_signing_scheme_lib_value",
]
