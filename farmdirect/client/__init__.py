"""Headless client for the marketplace API."""
from farmdirect.client.api import ApiError, MarketplaceClient, create_http_client
from farmdirect.client.controller import MarketplaceApp

__all__ = ["ApiError", "MarketplaceApp", "MarketplaceClient", "create_http_client"]
