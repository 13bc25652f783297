"""REST client: request signing, dispatch and envelope decoding."""

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Union
from urllib.parse import urlencode

import httpx
from pydantic import TypeAdapter, ValidationError

from .auth import RECV_WINDOW, Credentials, generate_signature, get_current_timestamp_ms
from .exceptions import (
    APIError,
    AuthenticationError,
    ConnectionError,
    InvalidParameterError,
    RequestError,
    SerializationError,
    TimeoutError,
)
from .logger import Logger, NoopLogger, redact
from .types import ApiResponse

Query = Union[Sequence[tuple[str, Any]], Mapping[str, Any]]

TESTNET_URL = "https://api-testnet.bybit.com"
MAINNET_URL = "https://api.bybit.com"

API_KEY_HEADER = "X-BAPI-API-KEY"
TIMESTAMP_HEADER = "X-BAPI-TIMESTAMP"
SIGN_HEADER = "X-BAPI-SIGN"
RECV_WINDOW_HEADER = "X-BAPI-RECV-WINDOW"


def encode_query(query: Optional[Query]) -> str:
    """
    URL-encode query pairs in the order given, skipping ``None`` values.

    The returned string is both appended to the URL and signed.
    """
    if not query:
        return ""
    pairs = query.items() if isinstance(query, Mapping) else query
    return urlencode([(key, _query_value(value)) for key, value in pairs if value is not None])


def _query_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_body(body: Any) -> str:
    """Serialize a request body once; the result is sent and signed verbatim."""
    try:
        return json.dumps(body, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as error:
        raise InvalidParameterError(f"body is not JSON serializable: {error}") from error


def _credential_header(name: str, value: str) -> str:
    if value.isascii() and value.isprintable():
        return value
    raise AuthenticationError(f"header {name} contains characters that cannot be sent")


@lru_cache(maxsize=None)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def decode_response(text: str, result_type: Any = Any, status_code: Optional[int] = None) -> Any:
    """
    Decode an envelope and return its ``result`` as ``result_type``.

    The envelope is parsed with an untyped ``result`` first so error envelopes
    (whose ``result`` is usually ``{}``) surface as ``APIError`` rather than a
    shape mismatch.

    Args:
        text: Raw response body
        result_type: Type the ``result`` field is validated into
        status_code: HTTP status, attached to serialization errors

    Returns:
        The validated result

    Raises:
        SerializationError: Body is not an envelope, or result does not fit ``result_type``
        APIError: Envelope carries a non-zero ``retCode``
    """
    try:
        envelope = ApiResponse[Any].model_validate_json(text)
    except ValidationError as error:
        raise SerializationError(str(error), status_code=status_code, body=text) from error

    if envelope.ret_code != 0:
        raise APIError(
            ret_code=envelope.ret_code,
            ret_msg=envelope.ret_msg,
            ret_ext_info=envelope.ret_ext_info,
            time=envelope.time,
        )

    try:
        return _adapter(result_type).validate_python(envelope.result)
    except ValidationError as error:
        raise SerializationError(str(error), status_code=status_code, body=text) from error


class RestClient:
    """
    Low-level Bybit v5 REST client.

    Every call is one HTTP request: no retries, no caching. When credentials
    are configured each request is signed with a fresh timestamp.
    """

    def __init__(
        self,
        base_url: str = MAINNET_URL,
        credentials: Optional[Credentials] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize REST client.

        Args:
            base_url: API root, e.g. ``https://api-testnet.bybit.com``
            credentials: API key/secret; requests are unauthenticated without them
            timeout: Transport timeout in seconds (ignored when http_client is given)
            http_client: Pre-configured httpx client; the caller keeps ownership
            logger: Logger instance
        """
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.logger = logger or NoopLogger()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def is_authenticated(self) -> bool:
        return self.credentials is not None and self.credentials.is_usable()

    def with_credentials(self, api_key: str, api_secret: str) -> "RestClient":
        """Return a new client signing with the given credentials, sharing this transport."""
        return RestClient(
            base_url=self.base_url,
            credentials=Credentials(api_key=api_key, api_secret=api_secret),
            http_client=self._client,
            logger=self.logger,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_auth_headers(self, method: str, query_string: str, body_text: Optional[str]) -> dict[str, str]:
        """
        Build signing headers for one request.

        Args:
            method: HTTP verb
            query_string: Encoded query exactly as it will be sent
            body_text: JSON body exactly as it will be sent

        Returns:
            Header mapping including the signature
        """
        creds = self.credentials
        timestamp = get_current_timestamp_ms()
        payload = query_string if method == "GET" else (body_text or "")
        signature = generate_signature(timestamp, creds.api_key, RECV_WINDOW, payload, creds.api_secret)

        return {
            API_KEY_HEADER: _credential_header(API_KEY_HEADER, creds.api_key),
            TIMESTAMP_HEADER: str(timestamp),
            SIGN_HEADER: signature,
            RECV_WINDOW_HEADER: str(RECV_WINDOW),
            "Content-Type": "application/json",
        }

    async def request(
        self,
        method: str,
        path: str,
        result_type: Any = Any,
        *,
        query: Optional[Query] = None,
        body: Any = None,
    ) -> Any:
        """
        Send one request and decode its envelope.

        Args:
            method: HTTP verb
            path: API path, e.g. ``/v5/market/time``
            result_type: Type the envelope's ``result`` is decoded into
            query: Ordered query pairs or a mapping
            body: JSON-serializable request body

        Returns:
            Decoded result

        Raises:
            InvalidParameterError: Request cannot be encoded (nothing is sent)
            RequestError: Transport failure
            SerializationError: Response is not a valid envelope/result
            APIError: Exchange returned a non-zero retCode
        """
        method = method.upper()
        url = self.base_url + path
        query_string = encode_query(query)
        if query_string:
            url = f"{url}?{query_string}"

        body_text = encode_body(body) if body is not None else None

        headers: dict[str, str] = {}
        if body_text is not None:
            headers["Content-Type"] = "application/json"
        if self.is_authenticated:
            headers.update(self.build_auth_headers(method, query_string, body_text))
            self.logger.debug(f"{method} {path} signed with key {redact(self.credentials.api_key)}")
        else:
            self.logger.debug(f"{method} {path} (public)")

        content = body_text.encode("utf-8") if body_text is not None else None
        try:
            response = await self._client.request(method, url, headers=headers, content=content)
        except httpx.TimeoutException as error:
            raise TimeoutError(str(error) or type(error).__name__) from error
        except (httpx.ConnectError, httpx.NetworkError) as error:
            raise ConnectionError(str(error) or type(error).__name__) from error
        except httpx.HTTPError as error:
            raise RequestError(str(error) or type(error).__name__) from error

        return decode_response(response.text, result_type, status_code=response.status_code)

    async def get(self, path: str, result_type: Any = Any, query: Optional[Query] = None) -> Any:
        return await self.request("GET", path, result_type, query=query)

    async def post(self, path: str, result_type: Any = Any, body: Any = None) -> Any:
        return await self.request("POST", path, result_type, body=body)
