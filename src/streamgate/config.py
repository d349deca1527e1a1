from pydantic import Field
from pydantic_settings import BaseSettings

USDC_ARBITRUM = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = "mongodb://localhost:27017/streamgate"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3001
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies trusted for X-Forwarded-Proto/For
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]
    uploads_path: str = "uploads"  # Directory holding audio and cover files
    # Front-end hosts (host[:port]) allowed to appear in Referer/Origin of stream requests
    allowed_origins: list[str] = ["x402music.live", "localhost:3000", "127.0.0.1:3000"]
    stream_ttl_seconds: int = Field(default=600, gt=0)
    access_token_bytes: int = Field(default=32, ge=16)  # 16 bytes = 128 bits minimum
    # x402 facilitator that verifies and settles payment claims
    facilitator_url: str = "https://x402.org/facilitator"
    facilitator_api_key: str | None = None
    payment_network: str = "arbitrum"
    payment_asset: str = USDC_ARBITRUM  # Token contract address the price is paid in
    payment_asset_name: str = "USD Coin"  # EIP-712 domain name of the token
    payment_asset_version: str = "2"  # EIP-712 domain version of the token
    payment_asset_decimals: int = 6
    settlement_timeout_seconds: int = Field(default=600, gt=0)

    model_config = {
        "env_file": [".env"],
        "env_prefix": "STREAMGATE_",
        "extra": "ignore",
    }
