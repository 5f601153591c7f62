"""Market data sync engine.

Public API:
    SyncEngine          - Engine instance with start/stop/dispose lifecycle
    EngineConfig        - Asset id, poll interval, default timeframe, source settings
    ViewModel           - Read-only UI state produced by the reconciler
    PriceSnapshot       - Immutable current price + 24h stats
    PriceSeries         - Ascending [timestamp, price] history
    Timeframe           - Selectable lookback windows (1d ... 1yr)
    PriceSource         - Abstract interface for remote price providers
    create_price_source - Factory that selects CoinGecko or the simulator
    create_dashboard_router - FastAPI router for the presentation layer
"""

from .config import EngineConfig
from .engine import SyncEngine
from .errors import AbortedError, FetchError, NetworkError, ParseError
from .factory import create_price_source
from .interface import PriceSource
from .models import FetchState, PriceSeries, PriceSnapshot, SeriesPoint, Timeframe, ViewModel
from .stream import create_dashboard_router

__all__ = [
    "SyncEngine",
    "EngineConfig",
    "ViewModel",
    "PriceSnapshot",
    "PriceSeries",
    "SeriesPoint",
    "Timeframe",
    "FetchState",
    "PriceSource",
    "FetchError",
    "NetworkError",
    "ParseError",
    "AbortedError",
    "create_price_source",
    "create_dashboard_router",
]
