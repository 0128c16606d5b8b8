"""Market prices API router."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.orm import Session

from farmdirect.auth import verify_admin_token
from farmdirect.database import get_db
from farmdirect.dependencies import get_market_price_service
from farmdirect.services.market_price_service import MarketPriceService, serialize_market_price

router = APIRouter(prefix="/api/market-prices", tags=["market-prices"])


@router.get("")
async def list_market_prices(
    category: Optional[str] = Query(None, description="vegetables, fruits, grains or all"),
    db: Session = Depends(get_db),
    price_service: MarketPriceService = Depends(get_market_price_service)
):
    prices = price_service.list_prices(db, category=category)
    return {
        "success": True,
        "count": len(prices),
        "prices": [serialize_market_price(p) for p in prices]
    }


@router.put("/{price_id}")
async def update_market_price(
    price_id: int = Path(..., description="Market price ID"),
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin_token: Optional[str] = Depends(verify_admin_token),
    price_service: MarketPriceService = Depends(get_market_price_service)
):
    """Update a price snapshot. Requires an admin token only when ADMIN_TOKENS is configured."""
    price = price_service.update_price(db, price_id, payload)
    return {"success": True, "price": serialize_market_price(price)}
