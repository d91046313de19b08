"""GP orders — data package (order book API client)."""

from .order_api import ApiSubmissionError, OrderBookApi

__all__ = [
    "ApiSubmissionError",
    "OrderBookApi",
]
