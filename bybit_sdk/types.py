"""Type definitions for the Bybit SDK.

List-style endpoints wrap their rows in an object with a ``list`` field
(``TickerList``, ``InstrumentList``, ``PositionList``, ``OrderList``,
``WalletBalance``), usually alongside a ``nextPageCursor``.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import InvalidEnumValueError, MissingRequiredFieldError

T = TypeVar("T")


# ============================================================================
# Enums
# ============================================================================


class Category(str, Enum):
    """Product category."""

    LINEAR = "linear"
    INVERSE = "inverse"
    SPOT = "spot"
    OPTION = "option"


class Side(str, Enum):
    """Order side."""

    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, Enum):
    """Order type."""

    MARKET = "Market"
    LIMIT = "Limit"


class TimeInForce(str, Enum):
    """Time in force."""

    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"
    POST_ONLY = "PostOnly"
    RPI = "RPI"


class OrderStatus(str, Enum):
    """Order status."""

    NEW = "New"
    PARTIALLY_FILLED = "PartiallyFilled"
    FILLED = "Filled"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"


def enum_value(enum_cls: type[Enum], value: Any) -> str:
    """
    Normalize an enum member or raw string to its wire value.

    Raises:
        InvalidEnumValueError: If ``value`` is a string that is not a member value
    """
    if isinstance(value, enum_cls):
        return value.value
    try:
        return enum_cls(value).value
    except ValueError:
        raise InvalidEnumValueError(enum_cls.__name__, str(value)) from None


class BybitModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Envelope
# ============================================================================


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every API response."""

    model_config = ConfigDict(populate_by_name=True)

    ret_code: int = Field(alias="retCode")
    ret_msg: str = Field(alias="retMsg")
    result: Optional[T] = None
    ret_ext_info: Any = Field(default_factory=dict, alias="retExtInfo")
    time: int


# ============================================================================
# Market Models
# ============================================================================


class ServerTime(BybitModel):
    """Server time."""

    time_second: str
    time_nano: str


class Ticker(BybitModel):
    """Ticker snapshot. Spot tickers carry no index/mark price."""

    symbol: str
    last_price: str
    index_price: Optional[str] = None
    mark_price: Optional[str] = None
    bid1_price: Optional[str] = None
    bid1_size: Optional[str] = None
    ask1_price: Optional[str] = None
    ask1_size: Optional[str] = None


class TickerList(BybitModel):
    category: Optional[str] = None
    list: list[Ticker]
    next_page_cursor: Optional[str] = None


class InstrumentInfo(BybitModel):
    """Instrument specification."""

    symbol: str
    status: str
    base_coin: str
    quote_coin: str
    contract_type: Optional[str] = None
    settle_coin: Optional[str] = None
    price_scale: Optional[str] = None


class InstrumentList(BybitModel):
    category: Optional[str] = None
    list: list[InstrumentInfo]
    next_page_cursor: Optional[str] = None


class OrderBook(BybitModel):
    """Orderbook snapshot; ``b``/``a`` are ``[price, size]`` pairs."""

    s: Optional[str] = None
    b: list[tuple[str, str]]
    a: list[tuple[str, str]]
    ts: int
    u: int


class KlineList(BybitModel):
    """Candles, newest first: ``[start, open, high, low, close, volume, turnover]``."""

    category: Optional[str] = None
    symbol: str
    list: list[list[str]]


# ============================================================================
# Account Models
# ============================================================================


class CoinBalance(BybitModel):
    coin: str
    wallet_balance: str
    transfer_balance: Optional[str] = None
    equity: Optional[str] = None
    unrealised_pnl: Optional[str] = None


class AccountBalance(BybitModel):
    """Balance summary of one account."""

    account_type: str
    account_im_rate: Optional[str] = Field(default=None, alias="accountIMRate")
    account_mm_rate: Optional[str] = Field(default=None, alias="accountMMRate")
    total_equity: str
    total_wallet_balance: str
    total_margin_balance: Optional[str] = None
    total_available_balance: Optional[str] = None
    total_perp_upl: Optional[str] = Field(default=None, alias="totalPerpUPL")
    total_initial_margin: Optional[str] = None
    total_maintenance_margin: Optional[str] = None
    coin: list[CoinBalance] = Field(default_factory=list)


class WalletBalance(BybitModel):
    list: list[AccountBalance]


class Position(BybitModel):
    """Open position."""

    symbol: str
    position_idx: int
    side: str
    size: str
    position_status: Optional[str] = None
    position_value: Optional[str] = None
    unrealised_pnl: Optional[str] = None


class PositionList(BybitModel):
    category: str
    list: list[Position]
    next_page_cursor: Optional[str] = None


# ============================================================================
# Trade Models
# ============================================================================


class Order(BybitModel):
    """Order as reported by the realtime order endpoint."""

    order_id: str
    order_link_id: str
    symbol: str
    side: str
    order_type: str
    price: str
    qty: str
    order_status: str
    time_in_force: Optional[str] = None
    create_type: Optional[str] = None
    cancel_type: Optional[str] = None
    leaves_qty: Optional[str] = None
    cum_exec_qty: Optional[str] = None
    avg_price: Optional[str] = None
    created_time: Optional[str] = None
    updated_time: Optional[str] = None
    position_idx: Optional[int] = None
    trigger_price: Optional[str] = None
    take_profit: Optional[str] = None
    stop_loss: Optional[str] = None
    reduce_only: Optional[bool] = None
    close_on_trigger: Optional[bool] = None


class OrderList(BybitModel):
    category: str
    list: list[Order]
    next_page_cursor: Optional[str] = None


class CreateOrderResponse(BybitModel):
    order_id: str
    order_link_id: str


class CreateOrderRequest(BybitModel):
    """
    Body of ``POST /v5/order/create``.

    Unset optional fields are left out of the JSON body entirely.

    Example:
        ```python
        request = (
            CreateOrderRequest.builder()
            .symbol("BTCUSDT")
            .side(Side.BUY)
            .order_type(OrderType.LIMIT)
            .qty("0.001")
            .price("28000")
            .build()
        )
        ```
    """

    category: str = Category.LINEAR.value
    symbol: str
    side: str
    order_type: str
    qty: Optional[str] = None
    price: Optional[str] = None
    time_in_force: Optional[str] = None
    position_idx: Optional[int] = None
    order_link_id: Optional[str] = None
    trigger_price: Optional[str] = None
    take_profit: Optional[str] = None
    stop_loss: Optional[str] = None
    reduce_only: Optional[bool] = None
    close_on_trigger: Optional[bool] = None
    trigger_by: Optional[str] = None
    tp_trigger_by: Optional[str] = None
    sl_trigger_by: Optional[str] = None
    market_unit: Optional[str] = None
    slippage_tolerance_type: Optional[str] = None
    slippage_tolerance: Optional[str] = None
    trigger_direction: Optional[int] = None
    order_filter: Optional[str] = None

    @field_validator("category", "side", "order_type", "time_in_force", mode="before")
    @classmethod
    def _unwrap_enum(cls, value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value

    @classmethod
    def builder(cls) -> "CreateOrderRequestBuilder":
        return CreateOrderRequestBuilder()

    def to_body(self) -> dict[str, Any]:
        """Wire representation with camelCase keys and no null fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CreateOrderRequestBuilder:
    """Fluent builder for ``CreateOrderRequest``; validation happens in ``build()``."""

    _REQUIRED = ("symbol", "side", "order_type")
    _ENUMS = {
        "category": Category,
        "side": Side,
        "order_type": OrderType,
        "time_in_force": TimeInForce,
    }

    def __init__(self):
        self._fields: dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> "CreateOrderRequestBuilder":
        self._fields[name] = value
        return self

    def category(self, category: Category | str) -> "CreateOrderRequestBuilder":
        return self._set("category", category)

    def symbol(self, symbol: str) -> "CreateOrderRequestBuilder":
        return self._set("symbol", symbol)

    def side(self, side: Side | str) -> "CreateOrderRequestBuilder":
        return self._set("side", side)

    def order_type(self, order_type: OrderType | str) -> "CreateOrderRequestBuilder":
        return self._set("order_type", order_type)

    def qty(self, qty: str) -> "CreateOrderRequestBuilder":
        return self._set("qty", qty)

    def price(self, price: str) -> "CreateOrderRequestBuilder":
        return self._set("price", price)

    def time_in_force(self, time_in_force: TimeInForce | str) -> "CreateOrderRequestBuilder":
        return self._set("time_in_force", time_in_force)

    def position_idx(self, position_idx: int) -> "CreateOrderRequestBuilder":
        return self._set("position_idx", position_idx)

    def order_link_id(self, order_link_id: str) -> "CreateOrderRequestBuilder":
        return self._set("order_link_id", order_link_id)

    def trigger_price(self, trigger_price: str) -> "CreateOrderRequestBuilder":
        return self._set("trigger_price", trigger_price)

    def take_profit(self, take_profit: str) -> "CreateOrderRequestBuilder":
        return self._set("take_profit", take_profit)

    def stop_loss(self, stop_loss: str) -> "CreateOrderRequestBuilder":
        return self._set("stop_loss", stop_loss)

    def reduce_only(self, reduce_only: bool) -> "CreateOrderRequestBuilder":
        return self._set("reduce_only", reduce_only)

    def close_on_trigger(self, close_on_trigger: bool) -> "CreateOrderRequestBuilder":
        return self._set("close_on_trigger", close_on_trigger)

    def trigger_by(self, trigger_by: str) -> "CreateOrderRequestBuilder":
        return self._set("trigger_by", trigger_by)

    def tp_trigger_by(self, tp_trigger_by: str) -> "CreateOrderRequestBuilder":
        return self._set("tp_trigger_by", tp_trigger_by)

    def sl_trigger_by(self, sl_trigger_by: str) -> "CreateOrderRequestBuilder":
        return self._set("sl_trigger_by", sl_trigger_by)

    def market_unit(self, market_unit: str) -> "CreateOrderRequestBuilder":
        return self._set("market_unit", market_unit)

    def slippage_tolerance_type(self, slippage_tolerance_type: str) -> "CreateOrderRequestBuilder":
        return self._set("slippage_tolerance_type", slippage_tolerance_type)

    def slippage_tolerance(self, slippage_tolerance: str) -> "CreateOrderRequestBuilder":
        return self._set("slippage_tolerance", slippage_tolerance)

    def trigger_direction(self, trigger_direction: int) -> "CreateOrderRequestBuilder":
        return self._set("trigger_direction", trigger_direction)

    def order_filter(self, order_filter: str) -> "CreateOrderRequestBuilder":
        return self._set("order_filter", order_filter)

    def build(self) -> CreateOrderRequest:
        """
        Validate and produce the request.

        Raises:
            MissingRequiredFieldError: If symbol, side or order_type was never set
            InvalidEnumValueError: If an enum-backed field holds an unknown string
        """
        for name in self._REQUIRED:
            if self._fields.get(name) is None:
                raise MissingRequiredFieldError(name)

        fields = dict(self._fields)
        for name, enum_cls in self._ENUMS.items():
            if fields.get(name) is not None:
                fields[name] = enum_value(enum_cls, fields[name])
        return CreateOrderRequest(**fields)
