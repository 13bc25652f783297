"""Environment-driven client settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .client import MAINNET_URL, TESTNET_URL
from .logger import LogLevel


class BybitSettings(BaseSettings):
    """Settings loaded from ``BYBIT_*`` environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(env_prefix="BYBIT_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_key: Optional[str] = None
    api_secret: Optional[str] = Field(default=None, repr=False)
    testnet: bool = True
    base_url: Optional[str] = None
    timeout: float = Field(30.0, gt=0)
    log_level: LogLevel = LogLevel.INFO

    def resolved_base_url(self) -> str:
        """Explicit ``base_url`` if set, otherwise the testnet or mainnet preset."""
        if self.base_url:
            return self.base_url
        return TESTNET_URL if self.testnet else MAINNET_URL

    def has_credentials(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)
