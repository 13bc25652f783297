"""Exception types for the Bybit SDK."""

from typing import Any, Optional


class BybitError(Exception):
    """Base exception for all SDK errors."""

    pass


class RequestError(BybitError):
    """HTTP transport failed before a response body could be read."""

    def __init__(self, message: str):
        super().__init__(f"HTTP request failed: {message}")


class ConnectionError(RequestError):
    """Could not connect to the API host."""

    pass


class TimeoutError(RequestError):
    """Transport timed out."""

    pass


class SerializationError(BybitError):
    """Response body is not a valid envelope or result shape."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(f"Serialization error: {message}")
        self.status_code = status_code
        self.body = body


class APIError(BybitError):
    """
    Envelope decoded with a non-zero ``retCode``.

    ``ret_code`` and ``ret_msg`` are kept exactly as the exchange sent them so
    callers can branch on known codes (10006 rate limit, 110004 insufficient
    balance, ...).
    """

    def __init__(
        self,
        ret_code: int,
        ret_msg: str,
        ret_ext_info: Any = None,
        time: Optional[int] = None,
    ):
        super().__init__(f"API error (code {ret_code}): {ret_msg}")
        self.ret_code = ret_code
        self.ret_msg = ret_msg
        self.ret_ext_info = ret_ext_info
        self.time = time


class InvalidParameterError(BybitError):
    """A value cannot be encoded into the outbound request."""

    def __init__(self, message: str):
        super().__init__(f"Invalid parameter: {message}")


class AuthenticationError(InvalidParameterError):
    """Credential material cannot be used to sign or send a request."""

    def __init__(self, message: str):
        BybitError.__init__(self, f"Authentication failed: {message}")


class MissingRequiredFieldError(BybitError):
    """A request builder was finalized without a required field."""

    def __init__(self, field_name: str):
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class InvalidEnumValueError(BybitError):
    """A string does not name a member of the expected enum."""

    def __init__(self, enum_name: str, value: str):
        super().__init__(f"Invalid enum value for {enum_name}: {value}")
        self.enum_name = enum_name
        self.value = value
