"""Tests for data/order_api.py (order book client over httpx.MockTransport)."""

from __future__ import annotations

import json

import httpx
import pytest

from data.order_api import ApiAction, ApiSubmissionError, OrderBookApi
from models.order import OrderCancellation, OrderCreation, OrderKind
from models.signing import SigningScheme
from web3_infra.domain import UnsupportedNetworkError

BASE_URL = "https://api.test/xdai/api/v1"
OWNER = "0x1111111111111111111111111111111111111111"
ORDER_UID = "0x" + "cd" * 56


class RecordingTransport:
    """Builds an ``httpx.MockTransport`` that records requests."""

    def __init__(self, status_code: int = 201, body=None, text: str | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.body = body
        self.text = text

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _make_api(recorder: RecordingTransport) -> OrderBookApi:
    return OrderBookApi(base_urls={100: BASE_URL + "/"}, transport=recorder.transport())


def _make_order(**kwargs) -> OrderCreation:
    defaults = {
        "sell_token": "0xe91d153e0b41518a2ce8dd3d7944fa863463a97d",
        "buy_token": "0xddafbb505ad214d7b80b1f830fccc89b60fb7a83",
        "sell_amount": "1000",
        "buy_amount": "990",
        "valid_to": 1700000000,
        "app_data": "0x" + "00" * 32,
        "fee_amount": "10",
        "kind": OrderKind.SELL,
        "receiver": OWNER,
        "signing_scheme": SigningScheme.EIP712,
        "signature": "ab" * 65,
    }
    defaults.update(kwargs)
    return OrderCreation(**defaults)


class TestSubmitOrder:

    @pytest.mark.asyncio
    async def test_posts_order(self) -> None:
        recorder = RecordingTransport(body=ORDER_UID)
        async with _make_api(recorder) as api:
            order_id = await api.submit_order(100, _make_order(), owner=OWNER)

        assert order_id == ORDER_UID
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/orders"
        body = json.loads(request.content)
        assert body["from"] == OWNER
        assert body["signingScheme"] == "eip712"
        assert body["signature"] == "ab" * 65
        assert body["sellAmount"] == "1000"
        assert body["feeAmount"] == "10"
        assert body["validTo"] == 1700000000
        assert body["partiallyFillable"] is False
        assert body["kind"] == "sell"

    @pytest.mark.asyncio
    async def test_uid_object_response(self) -> None:
        recorder = RecordingTransport(body={"uid": ORDER_UID})
        async with _make_api(recorder) as api:
            assert await api.submit_order(100, _make_order(), owner=OWNER) == ORDER_UID

    @pytest.mark.asyncio
    async def test_empty_response_is_an_error(self) -> None:
        recorder = RecordingTransport(body={})
        async with _make_api(recorder) as api:
            with pytest.raises(ApiSubmissionError) as exc_info:
                await api.submit_order(100, _make_order(), owner=OWNER)
        assert exc_info.value.error_type == "UnexpectedResponse"

    @pytest.mark.asyncio
    async def test_presign_order(self) -> None:
        recorder = RecordingTransport(body=ORDER_UID)
        order = _make_order(signing_scheme=SigningScheme.PRESIGN, signature=OWNER)
        async with _make_api(recorder) as api:
            await api.submit_order(100, order, owner=OWNER)
        body = json.loads(recorder.requests[0].content)
        assert body["signingScheme"] == "presign"
        assert body["signature"] == OWNER

    @pytest.mark.asyncio
    async def test_known_operator_error(self) -> None:
        recorder = RecordingTransport(
            status_code=400,
            body={"errorType": "InsufficientFee", "description": "fee too low"},
        )
        async with _make_api(recorder) as api:
            with pytest.raises(ApiSubmissionError) as exc_info:
                await api.submit_order(100, _make_order(), owner=OWNER)
        err = exc_info.value
        assert err.status_code == 400
        assert err.error_type == "InsufficientFee"
        assert err.description == "fee too low"
        assert err.action == ApiAction.CREATE
        assert err.message.startswith("The signed fee is insufficient")

    @pytest.mark.asyncio
    async def test_unknown_operator_error_uses_description(self) -> None:
        recorder = RecordingTransport(
            status_code=400,
            body={"errorType": "SomethingNew", "description": "brand new failure"},
        )
        async with _make_api(recorder) as api:
            with pytest.raises(ApiSubmissionError, match="brand new failure"):
                await api.submit_order(100, _make_order(), owner=OWNER)

    @pytest.mark.asyncio
    async def test_non_json_error(self) -> None:
        recorder = RecordingTransport(status_code=502, text="Bad Gateway")
        async with _make_api(recorder) as api:
            with pytest.raises(ApiSubmissionError) as exc_info:
                await api.submit_order(100, _make_order(), owner=OWNER)
        assert exc_info.value.error_type is None
        assert exc_info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_unsupported_chain(self) -> None:
        recorder = RecordingTransport(body=ORDER_UID)
        async with _make_api(recorder) as api:
            with pytest.raises(UnsupportedNetworkError):
                await api.submit_order(1, _make_order(), owner=OWNER)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_not_started_raises(self) -> None:
        api = _make_api(RecordingTransport(body=ORDER_UID))
        with pytest.raises(RuntimeError, match="not started"):
            await api.submit_order(100, _make_order(), owner=OWNER)


class TestSubmitCancellation:

    @pytest.mark.asyncio
    async def test_posts_cancellation(self) -> None:
        recorder = RecordingTransport(status_code=200, body="Cancelled")
        cancellation = OrderCancellation(
            order_uid=ORDER_UID,
            signature="ab" * 65,
            signing_scheme=SigningScheme.ETHSIGN,
        )
        async with _make_api(recorder) as api:
            await api.submit_cancellation(100, cancellation, owner=OWNER)

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/orders/cancellations"
        assert json.loads(request.content) == {
            "orderUid": ORDER_UID,
            "signature": "ab" * 65,
            "signingScheme": "ethsign",
        }

    @pytest.mark.asyncio
    async def test_rejected_cancellation(self) -> None:
        recorder = RecordingTransport(status_code=400, body={"errorType": "AlreadyCancelled"})
        cancellation = OrderCancellation(
            order_uid=ORDER_UID,
            signature="ab" * 65,
            signing_scheme=SigningScheme.EIP712,
        )
        async with _make_api(recorder) as api:
            with pytest.raises(ApiSubmissionError) as exc_info:
                await api.submit_cancellation(100, cancellation, owner=OWNER)
        assert exc_info.value.action == ApiAction.CANCEL
        assert exc_info.value.message == "The order is already cancelled"


class TestHasTrades:

    @pytest.mark.asyncio
    async def test_with_trades(self) -> None:
        recorder = RecordingTransport(status_code=200, body=[{"orderUid": ORDER_UID}])
        async with _make_api(recorder) as api:
            assert await api.has_trades(100, OWNER) is True
        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/xdai/api/v1/trades"
        assert request.url.params["owner"] == OWNER
        assert request.url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_without_trades(self) -> None:
        recorder = RecordingTransport(status_code=200, body=[])
        async with _make_api(recorder) as api:
            assert await api.has_trades(100, OWNER) is False


class TestApiSubmissionError:

    def test_default_message(self) -> None:
        err = ApiSubmissionError(500, None, "", action=ApiAction.CANCEL)
        assert err.message == "Order could not be cancelled"
        assert str(err) == err.message
