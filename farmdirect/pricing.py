"""Derived catalog fields: stock availability tiers and price savings."""
import math

OUT_OF_STOCK = "out-of-stock"
LIMITED = "limited"
AVAILABLE = "available"

LIMITED_STOCK_THRESHOLD = 10


def compute_availability(stock: int) -> str:
    """Map a stock level to its availability label."""
    if stock <= 0:
        return OUT_OF_STOCK
    if stock < LIMITED_STOCK_THRESHOLD:
        return LIMITED
    return AVAILABLE


def compute_savings(market_price: float, farmer_price: float) -> float:
    return market_price - farmer_price


def compute_savings_percent(market_price: float, farmer_price: float) -> int:
    """Savings as a whole percentage of the market price, rounded half up."""
    if not market_price:
        return 0
    ratio = compute_savings(market_price, farmer_price) / market_price * 100
    return int(math.floor(ratio + 0.5))
