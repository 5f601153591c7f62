"""Factory for creating price sources."""

from __future__ import annotations

import logging

from .config import EngineConfig
from .interface import PriceSource

logger = logging.getLogger(__name__)


def create_price_source(config: EngineConfig) -> PriceSource:
    """Create the price source selected by config.price_source.

    - "coingecko" -> CoinGeckoPriceSource (real market data)
    - "simulator" -> SimulatedPriceSource (GBM, no network)
    """
    if config.price_source == "simulator":
        from .simulator import SimulatedPriceSource

        logger.info("Price source: GBM simulator")
        return SimulatedPriceSource()

    from .coingecko_client import CoinGeckoPriceSource

    logger.info(
        "Price source: CoinGecko (%s, %s endpoint)", config.asset_id, config.snapshot_endpoint
    )
    return CoinGeckoPriceSource(
        asset_id=config.asset_id,
        base_url=config.base_url,
        api_key=config.api_key,
        simple=config.snapshot_endpoint == "simple",
        timeout=config.http_timeout,
    )
