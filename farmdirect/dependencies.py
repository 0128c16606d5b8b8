"""Dependency injection for services."""
from farmdirect.config import ORDER_STATUS_MODE
from farmdirect.services.market_price_service import MarketPriceService
from farmdirect.services.order_service import OrderService
from farmdirect.services.product_service import ProductService
from farmdirect.services.user_service import UserService


def get_user_service() -> UserService:
    return UserService()


def get_product_service() -> ProductService:
    return ProductService()


def get_order_service() -> OrderService:
    """Get order service instance honouring ORDER_STATUS_MODE."""
    return OrderService(strict_transitions=ORDER_STATUS_MODE == "strict")


def get_market_price_service() -> MarketPriceService:
    return MarketPriceService()
