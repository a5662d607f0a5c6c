"""
Configuration module for the Polynuts gateway.
Loads credentials and process settings from environment variables with validation.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load .env file if present
load_dotenv()

REQUIRED_CREDENTIAL_VARS = (
    "POLYMARKET_API_KEY",
    "POLYMARKET_SECRET",
    "POLYMARKET_PASSPHRASE",
)


class Network(Enum):
    """Exchange network."""
    MAINNET = "mainnet"
    TESTNET = "testnet"


@dataclass(frozen=True)
class Credentials:
    """Polymarket CLOB API credentials."""
    api_key: str
    secret: str = field(repr=False)
    passphrase: str = field(repr=False)
    wallet_address: Optional[str] = None
    network: Network = Network.MAINNET
    base_url: Optional[str] = None


@dataclass
class LogConfig:
    """Logging configuration."""
    log_level: str
    json_logging: bool


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str
    port: int
    development: bool = False


@dataclass
class Settings:
    """Main configuration container.

    ``credentials`` is None when the environment is incomplete; the matching
    error is kept in ``credentials_error`` and raised on first use.
    """
    logging: LogConfig
    server: ServerConfig
    credentials: Optional[Credentials] = None
    credentials_error: Optional[ConfigurationError] = None

    def require_credentials(self) -> Credentials:
        """Return the credentials or raise the deferred configuration error."""
        if self.credentials is None:
            raise self.credentials_error or ConfigurationError(
                "Polymarket credentials are not configured"
            )
        return self.credentials


def get_env(key: str, default: Optional[str] = None, required: bool = True) -> str:
    """Get environment variable with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {key} is not set")
    return value or ""


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes")


def get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    value = os.getenv(key, str(default))
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"Environment variable {key} must be an integer, got {value!r}") from e


def load_credentials() -> Credentials:
    """Load and validate exchange credentials from environment."""
    missing = [key for key in REQUIRED_CREDENTIAL_VARS if not os.getenv(key)]
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(missing)
        )

    network_raw = get_env("POLYMARKET_NETWORK", Network.MAINNET.value, required=False).lower()
    try:
        network = Network(network_raw)
    except ValueError as e:
        raise ConfigurationError(
            f"POLYMARKET_NETWORK must be 'mainnet' or 'testnet', got {network_raw!r}"
        ) from e

    return Credentials(
        api_key=get_env("POLYMARKET_API_KEY"),
        secret=get_env("POLYMARKET_SECRET"),
        passphrase=get_env("POLYMARKET_PASSPHRASE"),
        wallet_address=get_env("POLYMARKET_POLY_ADDRESS", required=False) or None,
        network=network,
        base_url=get_env("POLYMARKET_BASE_URL", required=False) or None,
    )


def load_settings() -> Settings:
    """Load process settings; credential problems are deferred, not raised."""
    credentials: Optional[Credentials] = None
    credentials_error: Optional[ConfigurationError] = None
    try:
        credentials = load_credentials()
    except ConfigurationError as e:
        credentials_error = e

    return Settings(
        logging=LogConfig(
            log_level=get_env("LOG_LEVEL", "INFO", required=False),
            json_logging=get_env_bool("JSON_LOGGING", True),
        ),
        server=ServerConfig(
            host=get_env("POLYNUTS_HOST", "0.0.0.0", required=False),
            port=get_env_int("POLYNUTS_PORT", 8000),
            development=get_env("POLYNUTS_ENV", "production", required=False).lower() == "development",
        ),
        credentials=credentials,
        credentials_error=credentials_error,
    )
