"""Process configuration for the gateway.

Settings are read from the environment exactly once at startup and passed
by reference into each component. Nothing reads ``os.environ`` after that.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from stellar_sdk import Network

DEFAULT_RPC_URL = "https://soroban-testnet.stellar.org"
DEFAULT_PORT = 8080

# Fixed transaction parameters for simulated invocations.
BASE_FEE = 100
TX_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""

    service_secret: Optional[str] = None
    rpc_url: str = DEFAULT_RPC_URL
    network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    environment: str = "development"
    relay_timeout: float = 30.0
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        ``SERVICE_ACCOUNT_SECRET_KEY`` may be absent; the gateway still starts
        and reports a configuration error on the first contract call.
        """

        env = os.environ if env is None else env

        def _parse_int(raw: str | None, default: int) -> int:
            try:
                return int(raw) if raw else default
            except ValueError:
                return default

        def _parse_float(raw: str | None, default: float) -> float:
            try:
                parsed = float(raw) if raw else default
            except ValueError:
                return default
            return parsed if parsed > 0 else default

        secret = (env.get("SERVICE_ACCOUNT_SECRET_KEY") or "").strip() or None

        return cls(
            service_secret=secret,
            rpc_url=env.get("SOROBAN_RPC_URL") or DEFAULT_RPC_URL,
            network_passphrase=env.get("NETWORK_PASSPHRASE") or Network.TESTNET_NETWORK_PASSPHRASE,
            host=env.get("HOST") or "0.0.0.0",
            port=_parse_int(env.get("PORT"), DEFAULT_PORT),
            environment=(env.get("APP_ENV") or "development").lower(),
            relay_timeout=_parse_float(env.get("RELAY_TIMEOUT"), 30.0),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            cors_origins=tuple(origin.strip() for origin in (env.get("CORS_ORIGINS") or "*").split(",") if origin.strip()),
        )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
