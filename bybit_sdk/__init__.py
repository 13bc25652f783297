"""Bybit v5 API SDK for Python."""

# Main client
from .sdk import BybitClient

# Request pipeline
from .client import RestClient, decode_response, TESTNET_URL, MAINNET_URL
from .auth import Credentials, generate_signature, get_current_timestamp_ms, RECV_WINDOW

# Configuration and logging
from .config import BybitSettings
from .logger import Logger, ConsoleLogger, NoopLogger, LogLevel, redact

# Types
from .types import (
    ApiResponse,
    Category,
    Side,
    OrderType,
    TimeInForce,
    OrderStatus,
    ServerTime,
    Ticker,
    TickerList,
    InstrumentInfo,
    InstrumentList,
    OrderBook,
    KlineList,
    CoinBalance,
    AccountBalance,
    WalletBalance,
    Position,
    PositionList,
    Order,
    OrderList,
    CreateOrderRequest,
    CreateOrderRequestBuilder,
    CreateOrderResponse,
)

# Exceptions
from .exceptions import (
    BybitError,
    RequestError,
    ConnectionError,
    TimeoutError,
    SerializationError,
    APIError,
    InvalidParameterError,
    AuthenticationError,
    MissingRequiredFieldError,
    InvalidEnumValueError,
)

__all__ = [
    # Main client
    "BybitClient",
    # Request pipeline
    "RestClient",
    "decode_response",
    "TESTNET_URL",
    "MAINNET_URL",
    "Credentials",
    "generate_signature",
    "get_current_timestamp_ms",
    "RECV_WINDOW",
    # Configuration and logging
    "BybitSettings",
    "Logger",
    "ConsoleLogger",
    "NoopLogger",
    "LogLevel",
    "redact",
    # Types
    "ApiResponse",
    "Category",
    "Side",
    "OrderType",
    "TimeInForce",
    "OrderStatus",
    "ServerTime",
    "Ticker",
    "TickerList",
    "InstrumentInfo",
    "InstrumentList",
    "OrderBook",
    "KlineList",
    "CoinBalance",
    "AccountBalance",
    "WalletBalance",
    "Position",
    "PositionList",
    "Order",
    "OrderList",
    "CreateOrderRequest",
    "CreateOrderRequestBuilder",
    "CreateOrderResponse",
    # Exceptions
    "BybitError",
    "RequestError",
    "ConnectionError",
    "TimeoutError",
    "SerializationError",
    "APIError",
    "InvalidParameterError",
    "AuthenticationError",
    "MissingRequiredFieldError",
    "InvalidEnumValueError",
]

__version__ = "0.1.0"
