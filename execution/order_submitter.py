"""OrderSubmitter — ABC interface for order book backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from models.order import OrderCancellation, OrderCreation


class OrderSubmitter(ABC):
    """Abstract order book the pipelines post signed payloads to.

    Implementations:
    - ``OrderBookApi`` — the HTTP order book API
    - scripted fakes in tests

    Implementations raise on rejection; they never return a partial result.
    """

    @abstractmethod
    async def submit_order(self, chain_id: int, order: OrderCreation, owner: str) -> str:
        """Post a signed order.

        Returns the order UID assigned by the order book.
        """

    @abstractmethod
    async def submit_cancellation(
        self,
        chain_id: int,
        cancellation: OrderCancellation,
        owner: str,
    ) -> None:
        """Post a signed cancellation of ``cancellation.order_uid``."""
