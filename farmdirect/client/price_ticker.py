"""Cosmetic market price ticker.

Nudges the displayed prices so the board looks live. Nothing is written
back to the server.
"""
import asyncio
import logging
import math
import random
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 30
MIN_MARKET_PRICE = 10
MIN_FARMER_PRICE = 8
FARMER_PRICE_RATIO = 0.85


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def perturb_price(price: Dict[str, Any], rng: random.Random) -> Dict[str, Any]:
    """Return a copy of one price row after a single tick."""
    delta = (rng.random() * 2 - 1) * 0.5
    market_price = max(MIN_MARKET_PRICE, _round_half_up(price["marketPrice"] + delta))
    return {
        **price,
        "change": _round_half_up((price.get("change", 0) + delta) * 10) / 10,
        "marketPrice": market_price,
        "farmerPrice": max(MIN_FARMER_PRICE, _round_half_up(market_price * FARMER_PRICE_RATIO)),
    }


def perturb_prices(prices: List[Dict[str, Any]], rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    rng = rng or random.Random()
    return [perturb_price(price, rng) for price in prices]


async def run_ticker(
    get_prices: Callable[[], List[Dict[str, Any]]],
    set_prices: Callable[[List[Dict[str, Any]]], None],
    interval: float = TICK_INTERVAL_SECONDS,
    rng: Optional[random.Random] = None,
    max_ticks: Optional[int] = None
) -> int:
    """
    Perturb prices every ``interval`` seconds until cancelled.

    Returns:
        Number of ticks applied (only reached when ``max_ticks`` is set)
    """
    rng = rng or random.Random()
    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        await asyncio.sleep(interval)
        set_prices(perturb_prices(get_prices(), rng))
        ticks += 1
        logger.debug("Price ticker tick", extra={"tick": ticks})
    return ticks
