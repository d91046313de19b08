"""OrderBookApi — async HTTP client for the GPv2 order book API.

Posts signed orders and cancellations.  Requests are never retried:
re-posting an order the API already accepted is the caller's call.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx
import structlog

from config.settings import settings
from execution.order_submitter import OrderSubmitter
from models.order import OrderCancellation, OrderCreation
from web3_infra.domain import SupportedChainId, UnsupportedNetworkError

logger = structlog.get_logger("data.order_api")


def default_base_urls() -> dict[int, str]:
    """Per-chain API base URLs from settings."""
    return {
        SupportedChainId.MAINNET: settings.ORDER_API_BASE_URL_MAINNET,
        SupportedChainId.RINKEBY: settings.ORDER_API_BASE_URL_RINKEBY,
        SupportedChainId.GOERLI: settings.ORDER_API_BASE_URL_GOERLI,
        SupportedChainId.GNOSIS_CHAIN: settings.ORDER_API_BASE_URL_GNOSIS_CHAIN,
    }


class OrderBookApi(OrderSubmitter):
    """Order book API client.

    Parameters
    ----------
    base_urls:
        Chain id → API base URL (``.../api/v1``).  Defaults to settings.
    timeout:
        HTTP request timeout in seconds.
    transport:
        Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_urls: dict[int, str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_urls = {
            int(chain_id): url.rstrip("/")
            for chain_id, url in (base_urls or default_base_urls()).items()
        }
        self._timeout = timeout or settings.ORDER_API_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # ── Lifecycle ────────────────────────────────────────────────

    async def start(self) -> None:
        """Create the underlying HTTP client.  Idempotent."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
            logger.info("order_api.started", chains=sorted(self._base_urls))

    async def stop(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("order_api.stopped")

    async def __aenter__(self) -> OrderBookApi:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # ── Public API ───────────────────────────────────────────────

    def base_url(self, chain_id: int) -> str:
        url = self._base_urls.get(int(chain_id))
        if not url:
            raise UnsupportedNetworkError(chain_id)
        return url

    async def submit_order(self, chain_id: int, order: OrderCreation, owner: str) -> str:
        """POST a signed order; return the order UID assigned by the API."""
        body = {**order.to_api(), "from": owner}
        logger.info(
            "order_api.post_order",
            chain_id=chain_id,
            owner=owner,
            signing_scheme=order.signing_scheme.value,
        )
        response = await self._post(chain_id, "/orders", body)
        if not response.is_success:
            raise ApiSubmissionError.from_response(response, ApiAction.CREATE)

        order_id = _parse_order_id(response)
        logger.info("order_api.order_posted", chain_id=chain_id, order_id=order_id)
        return order_id

    async def submit_cancellation(
        self,
        chain_id: int,
        cancellation: OrderCancellation,
        owner: str,
    ) -> None:
        """POST a signed order cancellation."""
        logger.info(
            "order_api.post_cancellation",
            chain_id=chain_id,
            owner=owner,
            order_id=cancellation.order_uid,
        )
        response = await self._post(chain_id, "/orders/cancellations", cancellation.to_api())
        if not response.is_success:
            raise ApiSubmissionError.from_response(response, ApiAction.CANCEL)
        logger.info("order_api.cancellation_posted", chain_id=chain_id, order_id=cancellation.order_uid)

    async def has_trades(self, chain_id: int, owner: str) -> bool:
        """True if ``owner`` has at least one settled trade."""
        client = self._require_client()
        response = await client.get(
            f"{self.base_url(chain_id)}/trades",
            params={"owner": owner, "limit": 1},
        )
        if not response.is_success:
            raise ApiSubmissionError.from_response(response, ApiAction.QUERY)
        trades = response.json()
        return isinstance(trades, list) and len(trades) > 0

    # ── Internals ────────────────────────────────────────────────

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("OrderBookApi not started, call start() first")
        return self._client

    async def _post(self, chain_id: int, path: str, body: dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url(chain_id)}{path}"
        client = self._require_client()
        return await client.post(url, json=body)


def _parse_order_id(response: httpx.Response) -> str:
    payload = response.json()
    if isinstance(payload, dict):
        payload = payload.get("uid") or payload.get("orderUid")
    if not isinstance(payload, str) or not payload:
        raise ApiSubmissionError(
            status_code=response.status_code,
            error_type="UnexpectedResponse",
            description=f"order API returned no order id: {response.text[:200]}",
        )
    return payload


# ── Errors ──────────────────────────────────────────────────────────


class ApiAction(str, Enum):
    """Which kind of request failed."""

    CREATE = "create"
    CANCEL = "cancel"
    QUERY = "query"


_DEFAULT_MESSAGES: dict[ApiAction, str] = {
    ApiAction.CREATE: "Order could not be placed",
    ApiAction.CANCEL: "Order could not be cancelled",
    ApiAction.QUERY: "Order book request failed",
}

# Operator ``errorType`` → message for the user
_OPERATOR_ERROR_MESSAGES: dict[str, str] = {
    "DuplicateOrder": "There was another identical order already submitted. Please try again.",
    "InsufficientFee": (
        "The signed fee is insufficient. It's possible that is higher now due to a change "
        "in the gas price, ether price, or the sell token price. Please try again to get "
        "an updated fee quote."
    ),
    "InvalidSignature": "The order signature is invalid. Check whether your Wallet app supports off-chain signing.",
    "MissingOrderData": "The order has missing information",
    "InsufficientValidTo": (
        "The order you are signing is already expired. This can happen if you set a short "
        "expiration in the settings and waited too long before signing the transaction. "
        "Please try again with a longer expiration."
    ),
    "InsufficientAllowance": "The account needs to approve the selling token in order to trade",
    "InsufficientBalance": "The account needs to have enough balance of the selling token in order to trade",
    "InsufficientFunds": "The account doesn't have enough funds",
    "WrongOwner": (
        "The signature is invalid. It's likely that the signing method provided by your "
        "wallet doesn't comply with the standards required by the protocol. Check whether "
        "your Wallet app supports off-chain signing (EIP-712 or ETHSIGN)."
    ),
    "UnsupportedToken": "One of the tokens you are trading is unsupported.",
    "SellAmountDoesNotCoverFee": "The sell amount for the sell order is lower than the fee.",
    "TransferSimulationFailed": "Transfer of the sell token failed in simulation; the token may not be tradable.",
    "ZeroAmount": "Order amount cannot be zero",
    "IncompatibleSigningScheme": "The signing scheme is not compatible with this order.",
    "OrderNotFound": "The order you are trying to cancel does not exist",
    "AlreadyCancelled": "The order is already cancelled",
    "OrderFullyExecuted": "The order was already fully executed",
    "OrderExpired": "The order is expired",
}


class ApiSubmissionError(Exception):
    """The order API rejected a request.

    ``message`` is fit for showing to a user; ``error_type`` and
    ``description`` are the raw operator error fields.
    """

    def __init__(
        self,
        status_code: int,
        error_type: str | None,
        description: str,
        action: ApiAction = ApiAction.CREATE,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.description = description
        self.action = action
        self.message = _OPERATOR_ERROR_MESSAGES.get(error_type or "") or description or _DEFAULT_MESSAGES[action]
        super().__init__(self.message)

    @classmethod
    def from_response(cls, response: httpx.Response, action: ApiAction) -> ApiSubmissionError:
        error_type: str | None = None
        description = ""
        try:
            body = response.json()
        except ValueError:
            description = response.text[:500]
        else:
            if isinstance(body, dict):
                error_type = body.get("errorType")
                description = body.get("description") or ""
        logger.warning(
            "order_api.rejected",
            status=response.status_code,
            error_type=error_type,
            description=description,
            action=action.value,
        )
        return cls(
            status_code=response.status_code,
            error_type=error_type,
            description=description,
            action=action,
        )
