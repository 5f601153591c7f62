"""Data models for the market data sync engine."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Iterable, Iterator


class Timeframe(IntEnum):
    """Lookback window for the price series, valued in days."""

    D1 = 1
    D7 = 7
    D14 = 14
    D30 = 30
    D180 = 180
    D365 = 365

    @property
    def days(self) -> int:
        return int(self.value)

    @property
    def label(self) -> str:
        return _TIMEFRAME_LABELS[self]

    @classmethod
    def parse(cls, value: str | int | Timeframe) -> Timeframe:
        """Accept a Timeframe, a day count ("30", 30) or a label ("30d", "6mo")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            for tf, label in _TIMEFRAME_LABELS.items():
                if text in (label, f"{tf.days}d"):
                    return tf
            if not text.isdigit():
                raise ValueError(f"Unknown timeframe: {value!r}")
            value = int(text)
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown timeframe: {value!r}") from None


_TIMEFRAME_LABELS: dict[Timeframe, str] = {
    Timeframe.D1: "1d",
    Timeframe.D7: "7d",
    Timeframe.D14: "14d",
    Timeframe.D30: "30d",
    Timeframe.D180: "6mo",
    Timeframe.D365: "1yr",
}


class FetchState(str, Enum):
    """Lifecycle of one logical fetch stream (snapshot or series)."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PriceSnapshot:
    """Immutable point-in-time reading of price and 24h statistics."""

    price: float
    high_24h: float | None = None
    low_24h: float | None = None
    change_24h_pct: float | None = None
    all_time_high: float | None = None
    all_time_high_date: datetime | None = None
    observed_at: float = field(default_factory=time.time)  # Unix seconds

    def __post_init__(self) -> None:
        for name in ("price", "high_24h", "low_24h", "all_time_high"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "price": self.price,
            "high_24h": self.high_24h,
            "low_24h": self.low_24h,
            "change_24h_pct": self.change_24h_pct,
            "all_time_high": self.all_time_high,
            "all_time_high_date": (
                self.all_time_high_date.isoformat() if self.all_time_high_date else None
            ),
            "observed_at": self.observed_at,
        }


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    timestamp: int  # Unix milliseconds
    price: float


@dataclass(frozen=True, slots=True)
class PriceSeries:
    """Historical samples, ascending by timestamp."""

    points: tuple[SeriesPoint, ...] = ()

    def __post_init__(self) -> None:
        for earlier, later in zip(self.points, self.points[1:]):
            if later.timestamp <= earlier.timestamp:
                raise ValueError("series points must be strictly ascending by timestamp")

    @classmethod
    def from_pairs(cls, pairs: Iterable[Iterable[float]]) -> PriceSeries:
        """Build from raw [timestamp_ms, price] pairs in any order.

        Later duplicates of a timestamp replace earlier ones.
        """
        by_ts: dict[int, float] = {}
        for ts, price in pairs:
            by_ts[int(ts)] = float(price)
        return cls(tuple(SeriesPoint(ts, by_ts[ts]) for ts in sorted(by_ts)))

    def to_pairs(self) -> list[list[float]]:
        return [[p.timestamp, p.price] for p in self.points]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[SeriesPoint]:
        return iter(self.points)


@dataclass(frozen=True, slots=True)
class ViewModel:
    """UI-facing state. Produced only by the reconciler; never mutated in place."""

    selected_timeframe: Timeframe
    snapshot: PriceSnapshot | None = None
    previous_snapshot: PriceSnapshot | None = None
    series: PriceSeries = field(default_factory=PriceSeries)
    series_timeframe: Timeframe | None = None  # Timeframe the current series was fetched for
    snapshot_loading: bool = True
    series_loading: bool = True
    error_message: str | None = None
    snapshot_state: FetchState = FetchState.IDLE
    series_state: FetchState = FetchState.IDLE

    @property
    def has_data(self) -> bool:
        """True once any snapshot has been received."""
        return self.snapshot is not None

    @property
    def is_stale(self) -> bool:
        """Fetches are failing but last-known-good data is still displayed."""
        return self.error_message is not None and self.has_data

    @property
    def price_changed(self) -> bool:
        """Whether the latest snapshot should be highlighted as a change."""
        if self.snapshot is None or self.previous_snapshot is None:
            return False
        return self.snapshot.price != self.previous_snapshot.price

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat' relative to the previous snapshot."""
        if not self.price_changed:
            return "flat"
        if self.snapshot.price > self.previous_snapshot.price:
            return "up"
        return "down"

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "previous_snapshot": (
                self.previous_snapshot.to_dict() if self.previous_snapshot else None
            ),
            "series": self.series.to_pairs(),
            "series_timeframe": self.series_timeframe.label if self.series_timeframe else None,
            "selected_timeframe": self.selected_timeframe.label,
            "snapshot_loading": self.snapshot_loading,
            "series_loading": self.series_loading,
            "error_message": self.error_message,
            "snapshot_state": self.snapshot_state.value,
            "series_state": self.series_state.value,
            "price_changed": self.price_changed,
            "direction": self.direction,
            "is_stale": self.is_stale,
        }
