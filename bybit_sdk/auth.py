"""HMAC-SHA256 request signing for the Bybit v5 API.

Bybit authenticates a request by a signature over
``timestamp + api_key + recv_window + payload`` where ``payload`` is the query
string for GET requests and the raw JSON body for POST requests.

Example:
    ```python
    signature = generate_signature(
        1658384314791,
        "api_key",
        5000,
        "category=option&symbol=BTC-29JUL22-25000-C",
        "api_secret",
    )
    ```
"""

import hashlib
import hmac
import time

from pydantic import BaseModel, ConfigDict, Field

# Maximum accepted skew (ms) between our timestamp and server time
RECV_WINDOW = 5000


class Credentials(BaseModel):
    """API key/secret pair."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    api_secret: str = Field(repr=False)

    def is_usable(self) -> bool:
        """True when both the key and the secret are non-empty."""
        return bool(self.api_key) and bool(self.api_secret)


def generate_signature(
    timestamp: int,
    api_key: str,
    recv_window: int,
    payload: str,
    secret: str,
) -> str:
    """
    Sign a request.

    Args:
        timestamp: Request timestamp in milliseconds
        api_key: Public API key
        recv_window: Receive window in milliseconds
        payload: Query string (GET) or exact JSON body (POST)
        secret: API secret used as the HMAC key

    Returns:
        64-character lowercase hex digest
    """
    message = f"{timestamp}{api_key}{recv_window}{payload}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def get_current_timestamp_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)
