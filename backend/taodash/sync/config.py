"""Engine configuration, built directly or from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .models import Timeframe

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
SNAPSHOT_ENDPOINTS = ("coin", "simple")
PRICE_SOURCES = ("coingecko", "simulator")


@dataclass(frozen=True)
class EngineConfig:
    """Settings for one engine instance.

    poll_interval is in seconds; POLL_INTERVAL_MS in the environment is in
    milliseconds.
    """

    asset_id: str = "bittensor"
    poll_interval: float = 30.0
    default_timeframe: Timeframe = Timeframe.D7
    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    snapshot_endpoint: str = "coin"
    price_source: str = "coingecko"
    http_timeout: float = 10.0

    def __post_init__(self) -> None:
        if not self.asset_id.strip():
            raise ValueError("asset_id must not be empty")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")
        if self.http_timeout <= 0:
            raise ValueError(f"http_timeout must be > 0, got {self.http_timeout}")
        if self.snapshot_endpoint not in SNAPSHOT_ENDPOINTS:
            raise ValueError(
                f"snapshot_endpoint must be one of {SNAPSHOT_ENDPOINTS}, "
                f"got {self.snapshot_endpoint!r}"
            )
        if self.price_source not in PRICE_SOURCES:
            raise ValueError(
                f"price_source must be one of {PRICE_SOURCES}, got {self.price_source!r}"
            )
        object.__setattr__(self, "default_timeframe", Timeframe.parse(self.default_timeframe))

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Read settings from environment variables, falling back to defaults."""
        env = os.environ

        try:
            poll_ms = float(env.get("POLL_INTERVAL_MS", "30000"))
        except ValueError:
            raise ValueError(f"POLL_INTERVAL_MS is not a number: {env['POLL_INTERVAL_MS']!r}") from None
        try:
            http_timeout = float(env.get("HTTP_TIMEOUT", "10.0"))
        except ValueError:
            raise ValueError(f"HTTP_TIMEOUT is not a number: {env['HTTP_TIMEOUT']!r}") from None

        return cls(
            asset_id=env.get("ASSET_ID", "bittensor").strip(),
            poll_interval=poll_ms / 1000.0,
            default_timeframe=Timeframe.parse(env.get("DEFAULT_TIMEFRAME", "7d")),
            base_url=env.get("COINGECKO_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/"),
            api_key=env.get("COINGECKO_API_KEY", "").strip() or None,
            snapshot_endpoint=env.get("SNAPSHOT_ENDPOINT", "coin").strip().lower(),
            price_source=env.get("PRICE_SOURCE", "coingecko").strip().lower(),
            http_timeout=http_timeout,
        )
