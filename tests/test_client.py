"""Tests for the REST request pipeline."""

import asyncio
import json
from typing import Any

import httpx
import pytest

from conftest import envelope
from bybit_sdk import (
    APIError,
    AuthenticationError,
    ConnectionError,
    ConsoleLogger,
    Credentials,
    InvalidParameterError,
    LogLevel,
    RequestError,
    SerializationError,
    ServerTime,
    TimeoutError,
    decode_response,
    generate_signature,
)
from bybit_sdk.client import _adapter, encode_query

AUTH_HEADERS = ("X-BAPI-API-KEY", "X-BAPI-TIMESTAMP", "X-BAPI-SIGN", "X-BAPI-RECV-WINDOW")


class TestDecodeResponse:
    """Test envelope decoding."""

    def test_success_returns_typed_result(self):
        """retCode 0 yields the result as the requested type."""
        text = '{"retCode":0,"retMsg":"OK","result":{"timeSecond":"1","timeNano":"2"},"retExtInfo":{},"time":3}'

        result = decode_response(text, ServerTime)

        assert isinstance(result, ServerTime)
        assert result.time_second == "1"
        assert result.time_nano == "2"

    def test_error_envelope_raises_api_error(self):
        """Non-zero retCode raises APIError with code and message verbatim."""
        text = '{"retCode":10006,"retMsg":"rate limit","result":{},"retExtInfo":{},"time":0}'

        with pytest.raises(APIError) as exc_info:
            decode_response(text, ServerTime)

        assert exc_info.value.ret_code == 10006
        assert exc_info.value.ret_msg == "rate limit"

    def test_error_envelope_other_code(self):
        """Any non-zero code is an API error, never a result."""
        with pytest.raises(APIError) as exc_info:
            decode_response(envelope({"timeSecond": "1", "timeNano": "2"}, ret_code=10001, ret_msg="x"), ServerTime)

        assert exc_info.value.ret_code == 10001
        assert exc_info.value.ret_msg == "x"

    def test_invalid_json(self):
        """Unparseable text raises SerializationError."""
        with pytest.raises(SerializationError):
            decode_response("<html>403 Forbidden</html>", ServerTime, status_code=403)

    def test_missing_envelope_fields(self):
        """JSON without the envelope shape raises SerializationError."""
        with pytest.raises(SerializationError):
            decode_response('{"foo": "bar"}')

    def test_result_shape_mismatch(self):
        """Success envelope whose result does not fit the type raises SerializationError."""
        with pytest.raises(SerializationError):
            decode_response(envelope({"unexpected": True}), ServerTime)

    def test_untyped_result(self):
        """Default result type passes the result through."""
        assert decode_response(envelope({"a": [1, 2]})) == {"a": [1, 2]}

    def test_missing_ext_info_defaults(self):
        """retExtInfo is optional on the wire."""
        text = '{"retCode":0,"retMsg":"OK","result":{"x":1},"time":3}'

        assert decode_response(text, dict[str, Any]) == {"x": 1}

    def test_result_adapter_reused(self):
        """Adapters are built once per result type."""
        first = _adapter(ServerTime)

        decode_response(envelope({"timeSecond": "1", "timeNano": "2"}), ServerTime)

        assert _adapter(ServerTime) is first
        assert _adapter(list[ServerTime]) is _adapter(list[ServerTime])


class TestEncodeQuery:
    """Test query string encoding."""

    def test_preserves_order(self):
        assert encode_query([("symbol", "BTCUSDT"), ("category", "linear")]) == "symbol=BTCUSDT&category=linear"

    def test_drops_none(self):
        assert encode_query([("category", "linear"), ("symbol", None)]) == "category=linear"

    def test_mapping(self):
        assert encode_query({"category": "option", "symbol": "BTC-29JUL22-25000-C"}) == (
            "category=option&symbol=BTC-29JUL22-25000-C"
        )

    def test_empty(self):
        assert encode_query(None) == ""
        assert encode_query([]) == ""


class TestRequestPipeline:
    """Test building, signing and dispatching requests."""

    @pytest.mark.asyncio
    async def test_url_and_query(self, exchange, make_rest):
        """URL is base + path with the query appended in caller order."""
        rest = make_rest()

        await rest.get("/v5/market/tickers", query=[("symbol", "BTCUSDT"), ("category", "linear")])

        request = exchange.last
        assert request.method == "GET"
        assert request.url.host == "api-testnet.bybit.com"
        assert request.url.path == "/v5/market/tickers"
        assert request.url.query.decode() == "symbol=BTCUSDT&category=linear"

    @pytest.mark.asyncio
    async def test_unauthenticated_has_no_auth_headers(self, exchange, make_rest):
        """Client without credentials never sends signing headers."""
        rest = make_rest()

        await rest.get("/v5/market/time")
        await rest.post("/v5/order/create", body={"symbol": "BTCUSDT"})

        for request in exchange.requests:
            for header in AUTH_HEADERS:
                assert header not in request.headers

    @pytest.mark.asyncio
    async def test_empty_credentials_are_unauthenticated(self, exchange, make_rest):
        """Empty key or secret means public mode."""
        rest = make_rest(Credentials(api_key="", api_secret=""))

        await rest.get("/v5/market/time")

        assert not rest.is_authenticated
        assert "X-BAPI-SIGN" not in exchange.last.headers

    @pytest.mark.asyncio
    async def test_get_is_signed_over_sent_query(self, exchange, make_rest, credentials):
        """GET signature covers the exact query string that was sent."""
        rest = make_rest(credentials)

        await rest.get("/v5/order/realtime", query=[("category", "option"), ("symbol", "BTC-29JUL22-25000-C")])

        request = exchange.last
        for header in AUTH_HEADERS:
            assert header in request.headers
        assert request.headers["X-BAPI-API-KEY"] == "XXXXXXXXXX"
        assert request.headers["X-BAPI-RECV-WINDOW"] == "5000"

        timestamp = int(request.headers["X-BAPI-TIMESTAMP"])
        expected = generate_signature(timestamp, "XXXXXXXXXX", 5000, request.url.query.decode(), "test_secret")
        assert request.headers["X-BAPI-SIGN"] == expected

    @pytest.mark.asyncio
    async def test_post_body_bytes_equal_signed_payload(self, exchange, make_rest, credentials):
        """POST signature covers the exact bytes transmitted as body."""
        rest = make_rest(credentials)
        body = {"category": "linear", "symbol": "BTCUSDT", "side": "Buy", "orderType": "Market", "qty": "0.001"}

        await rest.post("/v5/order/create", body=body)

        request = exchange.last
        sent = request.content.decode()
        assert json.loads(sent) == body
        assert sent == '{"category":"linear","symbol":"BTCUSDT","side":"Buy","orderType":"Market","qty":"0.001"}'
        assert request.headers["Content-Type"] == "application/json"

        timestamp = int(request.headers["X-BAPI-TIMESTAMP"])
        expected = generate_signature(timestamp, "XXXXXXXXXX", 5000, sent, "test_secret")
        assert request.headers["X-BAPI-SIGN"] == expected

    @pytest.mark.asyncio
    async def test_post_without_body(self, exchange, make_rest, credentials):
        """POST without body signs an empty payload."""
        rest = make_rest(credentials)

        await rest.post("/v5/order/cancel-all")

        request = exchange.last
        assert request.content == b""
        timestamp = int(request.headers["X-BAPI-TIMESTAMP"])
        assert request.headers["X-BAPI-SIGN"] == generate_signature(timestamp, "XXXXXXXXXX", 5000, "", "test_secret")

    @pytest.mark.asyncio
    async def test_public_body_has_content_type(self, exchange, make_rest):
        """Bodies are sent as JSON even without credentials."""
        rest = make_rest()

        await rest.post("/v5/order/create", body={"a": 1})

        assert exchange.last.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_fresh_timestamp_per_call(self, exchange, make_rest, credentials, monkeypatch):
        """Each call takes a new timestamp."""
        stamps = iter([1000, 2000])
        monkeypatch.setattr("bybit_sdk.client.get_current_timestamp_ms", lambda: next(stamps))
        rest = make_rest(credentials)

        await rest.get("/v5/market/time")
        await rest.get("/v5/market/time")

        assert [r.headers["X-BAPI-TIMESTAMP"] for r in exchange.requests] == ["1000", "2000"]

    @pytest.mark.asyncio
    async def test_one_request_per_call(self, exchange, make_rest):
        """Failures are not retried."""
        exchange.reply("/v5/market/time", ret_code=10006, ret_msg="Too many visits!")
        rest = make_rest()

        with pytest.raises(APIError):
            await rest.get("/v5/market/time", ServerTime)

        assert len(exchange.requests) == 1

    @pytest.mark.asyncio
    async def test_typed_result(self, exchange, make_rest):
        """Result is decoded into the requested type."""
        exchange.reply("/v5/market/time", {"timeSecond": "1688639403", "timeNano": "1688639403423213947"})
        rest = make_rest()

        result = await rest.get("/v5/market/time", ServerTime)

        assert result.time_second == "1688639403"

    @pytest.mark.asyncio
    async def test_api_error_from_http_error_status(self, exchange, make_rest):
        """The envelope decides, not the HTTP status."""
        exchange.reply_raw("/v5/order/create", envelope(ret_code=10003, ret_msg="API key is invalid."), status_code=401)
        rest = make_rest()

        with pytest.raises(APIError) as exc_info:
            await rest.post("/v5/order/create", body={})

        assert exc_info.value.ret_code == 10003

    @pytest.mark.asyncio
    async def test_non_json_response(self, exchange, make_rest):
        """HTML error pages become SerializationError carrying the status."""
        exchange.reply_raw("/v5/market/time", "<html>403 Forbidden</html>", status_code=403)
        rest = make_rest()

        with pytest.raises(SerializationError) as exc_info:
            await rest.get("/v5/market/time", ServerTime)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_connect_error(self, exchange, make_rest):
        """Connection failures surface as ConnectionError."""
        exchange.fail("/v5/market/time", httpx.ConnectError)
        rest = make_rest()

        with pytest.raises(ConnectionError) as exc_info:
            await rest.get("/v5/market/time")

        assert isinstance(exc_info.value, RequestError)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout(self, exchange, make_rest):
        """Transport timeouts surface as TimeoutError."""
        exchange.fail("/v5/market/time", httpx.ReadTimeout, "slow")
        rest = make_rest()

        with pytest.raises(TimeoutError):
            await rest.get("/v5/market/time")

    @pytest.mark.asyncio
    async def test_other_transport_error(self, exchange, make_rest):
        """Remaining transport failures surface as RequestError."""
        exchange.fail("/v5/market/time", httpx.UnsupportedProtocol)
        rest = make_rest()

        with pytest.raises(RequestError):
            await rest.get("/v5/market/time")

    @pytest.mark.asyncio
    async def test_bad_api_key_fails_before_dispatch(self, exchange, make_rest):
        """Key that cannot be a header value never reaches the network."""
        rest = make_rest(Credentials(api_key="clé\n", api_secret="secret"))

        with pytest.raises(AuthenticationError) as exc_info:
            await rest.get("/v5/market/time")

        assert isinstance(exc_info.value, InvalidParameterError)
        assert exchange.requests == []

    @pytest.mark.asyncio
    async def test_unserializable_body_fails_before_dispatch(self, exchange, make_rest):
        """Body that is not JSON raises InvalidParameterError without sending."""
        rest = make_rest()

        with pytest.raises(InvalidParameterError):
            await rest.post("/v5/order/create", body={"when": object()})

        assert exchange.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    async def test_non_finite_body_fails_before_dispatch(self, exchange, make_rest, credentials, number):
        """NaN and infinities have no JSON form, so nothing is signed or sent."""
        rest = make_rest(credentials)

        with pytest.raises(InvalidParameterError):
            await rest.post("/v5/order/create", body={"price": number})

        assert exchange.requests == []

    @pytest.mark.asyncio
    async def test_concurrent_calls(self, exchange, make_rest, credentials):
        """One client serves concurrent calls independently."""
        exchange.reply("/v5/market/time", {"timeSecond": "1", "timeNano": "2"})
        rest = make_rest(credentials)

        results = await asyncio.gather(*(rest.get("/v5/market/time", ServerTime) for _ in range(5)))

        assert len(results) == 5
        assert len(exchange.requests) == 5
        assert all(r.time_second == "1" for r in results)


class TestClientConfiguration:
    """Test client construction and lifecycle."""

    def test_with_credentials_returns_new_client(self, make_rest):
        """Original client stays public; the copy shares the transport."""
        rest = make_rest()

        signed = rest.with_credentials("key", "secret")

        assert not rest.is_authenticated
        assert signed.is_authenticated
        assert signed.base_url == rest.base_url
        assert signed._client is rest._client

    def test_base_url_trailing_slash(self, make_rest):
        rest = make_rest()
        rest2 = type(rest)(base_url="https://api.bybit.com/", http_client=rest._client)

        assert rest2.base_url == "https://api.bybit.com"

    @pytest.mark.asyncio
    async def test_close_leaves_external_client_open(self, make_rest):
        """Caller-supplied httpx clients are not closed."""
        rest = make_rest()

        await rest.close()

        assert not rest._client.is_closed

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        """Self-created transport is closed on exit."""
        from bybit_sdk import RestClient

        async with RestClient() as rest:
            pass

        assert rest._client.is_closed

    @pytest.mark.asyncio
    async def test_debug_log_redacts_key(self, exchange, make_rest, credentials, capsys):
        """Dispatch log shows a masked key and never the secret."""
        rest = make_rest(credentials, logger=ConsoleLogger(level=LogLevel.DEBUG))

        await rest.get("/v5/position/list", query=[("category", "linear")])

        out = capsys.readouterr().out
        assert "GET /v5/position/list" in out
        assert "XXXX******" in out
        assert "XXXXXXXXXX" not in out
        assert "test_secret" not in out
