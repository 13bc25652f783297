"""Main Bybit SDK client with market, account and trade endpoints."""

import copy
from typing import Any, Optional

import httpx

from .auth import Credentials
from .client import MAINNET_URL, TESTNET_URL, RestClient
from .config import BybitSettings
from .logger import ConsoleLogger, Logger, LogLevel
from .types import (
    Category,
    CreateOrderRequest,
    CreateOrderResponse,
    InstrumentList,
    KlineList,
    OrderBook,
    OrderList,
    PositionList,
    ServerTime,
    TickerList,
    WalletBalance,
)


class BybitClient:
    """
    Bybit v5 API client.

    Example:
        ```python
        async with BybitClient.testnet() as client:
            server_time = await client.get_server_time()
            tickers = await client.get_tickers("linear")

        signed = BybitClient.testnet().with_credentials(api_key, api_secret)
        balance = await signed.get_wallet_balance("UNIFIED")
        ```
    """

    def __init__(
        self,
        base_url: str = MAINNET_URL,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: float = 30.0,
        log_level: LogLevel = LogLevel.INFO,
        logger: Optional[Logger] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the Bybit SDK.

        Args:
            base_url: API root (see ``testnet()`` / ``mainnet()``)
            api_key: API key; requests stay public unless key and secret are both set
            api_secret: API secret
            timeout: Request timeout in seconds
            log_level: Minimum log level
            logger: Custom logger instance
            http_client: Pre-configured httpx client, left open on ``close()``
        """
        if not base_url:
            raise ValueError("base_url is required")

        self.logger = logger or ConsoleLogger(level=log_level)

        credentials = None
        if api_key and api_secret:
            credentials = Credentials(api_key=api_key, api_secret=api_secret)

        self.rest = RestClient(
            base_url=base_url,
            credentials=credentials,
            timeout=timeout,
            http_client=http_client,
            logger=self.logger,
        )

    @classmethod
    def testnet(cls, **kwargs: Any) -> "BybitClient":
        """Client for ``https://api-testnet.bybit.com``."""
        return cls(base_url=TESTNET_URL, **kwargs)

    @classmethod
    def mainnet(cls, **kwargs: Any) -> "BybitClient":
        """Client for ``https://api.bybit.com``."""
        return cls(base_url=MAINNET_URL, **kwargs)

    @classmethod
    def from_env(cls, settings: Optional[BybitSettings] = None, **kwargs: Any) -> "BybitClient":
        """
        Build a client from ``BYBIT_*`` environment variables.

        Missing credentials are fine: the client then only reaches public endpoints.
        Keyword arguments override the matching settings.
        """
        settings = settings or BybitSettings()
        options: dict[str, Any] = {
            "base_url": settings.resolved_base_url(),
            "api_key": settings.api_key,
            "api_secret": settings.api_secret,
            "timeout": settings.timeout,
            "log_level": settings.log_level,
        }
        options.update(kwargs)
        return cls(**options)

    def with_credentials(self, api_key: str, api_secret: str) -> "BybitClient":
        """
        Return a signing copy of this client.

        The copy shares this client's HTTP transport; this client is unchanged.
        """
        clone = copy.copy(self)
        clone.rest = self.rest.with_credentials(api_key, api_secret)
        return clone

    @property
    def base_url(self) -> str:
        return self.rest.base_url

    @property
    def is_authenticated(self) -> bool:
        return self.rest.is_authenticated

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close connections."""
        await self.rest.close()

    # ========================================================================
    # Market Data
    # ========================================================================

    async def get_server_time(self) -> ServerTime:
        """Get exchange server time."""
        return await self.rest.get("/v5/market/time", ServerTime)

    async def get_kline(
        self,
        category: Category | str,
        symbol: str,
        interval: str,
        start: Optional[int] = None,
        end: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> KlineList:
        """
        Get candles.

        Args:
            category: Product category
            symbol: Symbol, e.g. ``BTCUSDT``
            interval: ``1 3 5 15 30 60 120 240 360 720 D W M``
            start: Start timestamp (ms)
            end: End timestamp (ms)
            limit: Rows per page
        """
        query = [
            ("category", category),
            ("symbol", symbol),
            ("interval", interval),
            ("start", start),
            ("end", end),
            ("limit", limit),
        ]
        return await self.rest.get("/v5/market/kline", KlineList, query)

    async def get_tickers(self, category: Category | str, symbol: Optional[str] = None) -> TickerList:
        """Get tickers for a category, optionally one symbol."""
        return await self.rest.get(
            "/v5/market/tickers", TickerList, [("category", category), ("symbol", symbol)]
        )

    async def get_orderbook(self, category: Category | str, symbol: str, limit: int = 25) -> OrderBook:
        """Get orderbook depth."""
        query = [("category", category), ("symbol", symbol), ("limit", limit)]
        return await self.rest.get("/v5/market/orderbook", OrderBook, query)

    async def get_instruments(self, category: Category | str, symbol: Optional[str] = None) -> InstrumentList:
        """Get instrument specifications."""
        return await self.rest.get(
            "/v5/market/instruments-info", InstrumentList, [("category", category), ("symbol", symbol)]
        )

    # ========================================================================
    # Account
    # ========================================================================

    async def get_wallet_balance(
        self, account_type: Optional[str] = None, coin: Optional[str] = None
    ) -> WalletBalance:
        """Get wallet balance (requires credentials)."""
        query = [("accountType", account_type), ("coin", coin)]
        return await self.rest.get("/v5/account/wallet-balance", WalletBalance, query)

    async def get_position(self, category: Category | str, symbol: Optional[str] = None) -> PositionList:
        """Get open positions (requires credentials)."""
        query = [("category", category), ("symbol", symbol)]
        return await self.rest.get("/v5/position/list", PositionList, query)

    async def set_leverage(
        self,
        category: Category | str,
        symbol: str,
        buy_leverage: str,
        sell_leverage: str,
    ) -> dict[str, Any]:
        """Set leverage for a symbol (requires credentials)."""
        body = {
            "category": _category(category),
            "symbol": symbol,
            "buyLeverage": buy_leverage,
            "sellLeverage": sell_leverage,
        }
        return await self.rest.post("/v5/position/set-leverage", dict[str, Any], body)

    async def get_execution_list(self, category: Category | str, symbol: Optional[str] = None) -> dict[str, Any]:
        """Get trade executions (requires credentials)."""
        query = [("category", category), ("symbol", symbol)]
        return await self.rest.get("/v5/execution/list", dict[str, Any], query)

    async def get_closed_pnl(self, category: Category | str, symbol: Optional[str] = None) -> dict[str, Any]:
        """Get closed profit and loss records (requires credentials)."""
        query = [("category", category), ("symbol", symbol)]
        return await self.rest.get("/v5/position/closed-pnl", dict[str, Any], query)

    # ========================================================================
    # Trade
    # ========================================================================

    async def create_order(self, request: CreateOrderRequest) -> CreateOrderResponse:
        """Place an order (requires credentials)."""
        return await self.rest.post("/v5/order/create", CreateOrderResponse, request.to_body())

    async def cancel_order(
        self,
        category: Category | str,
        symbol: str,
        order_id: Optional[str] = None,
        order_link_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Cancel one order by exchange or client order ID.

        Raises:
            ValueError: If neither ID is given
        """
        if not order_id and not order_link_id:
            raise ValueError("order_id or order_link_id is required")

        body = {"category": _category(category), "symbol": symbol}
        if order_id:
            body["orderId"] = order_id
        if order_link_id:
            body["orderLinkId"] = order_link_id
        return await self.rest.post("/v5/order/cancel", dict[str, Any], body)

    async def cancel_all_orders(self, category: Category | str, symbol: Optional[str] = None) -> dict[str, Any]:
        """Cancel all open orders, optionally for one symbol."""
        body = {"category": _category(category)}
        if symbol:
            body["symbol"] = symbol
        return await self.rest.post("/v5/order/cancel-all", dict[str, Any], body)

    async def get_order(self, category: Category | str, order_id: str) -> OrderList:
        """Get one open or recent order."""
        query = [("category", category), ("orderId", order_id)]
        return await self.rest.get("/v5/order/realtime", OrderList, query)

    async def get_open_orders(self, category: Category | str, symbol: Optional[str] = None) -> OrderList:
        """Get open orders."""
        query = [("category", category), ("symbol", symbol)]
        return await self.rest.get("/v5/order/realtime", OrderList, query)


def _category(category: Category | str) -> str:
    return category.value if isinstance(category, Category) else category
