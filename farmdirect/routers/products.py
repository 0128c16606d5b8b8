"""Products API router."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.orm import Session
from opentelemetry import trace

from farmdirect.auth import get_current_user, require_farmer
from farmdirect.database import get_db
from farmdirect.dependencies import get_product_service
from farmdirect.models import User
from farmdirect.services.product_service import ProductService, serialize_product

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    category: Optional[str] = Query(None, description="vegetables, fruits, grains or all"),
    search: Optional[str] = Query(None, description="Matches name, farmer name or location"),
    farmer_id: Optional[int] = Query(None, alias="farmerId"),
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """
    List the catalog, newest listings first.

    Examples:
    - GET /api/products?category=fruits
    - GET /api/products?search=nashik
    - GET /api/products?farmerId=3
    """
    products = product_service.list_products(db, category=category, search=search, farmer_id=farmer_id)

    span = trace.get_current_span()
    span.set_attribute("product.count", len(products))
    span.set_attribute("endpoint.type", "product_catalog")

    return {
        "success": True,
        "count": len(products),
        "products": [serialize_product(p) for p in products]
    }


@router.get("/{product_id}")
async def get_product(
    product_id: int = Path(..., description="Product ID"),
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    product = product_service.get_product(db, product_id)

    span = trace.get_current_span()
    span.set_attribute("product.id", product_id)
    span.set_attribute("product.category", product.category)

    return {"success": True, "product": serialize_product(product)}


@router.post("", status_code=201)
async def create_product(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_farmer),
    product_service: ProductService = Depends(get_product_service)
):
    """Create a listing for the authenticated farmer."""
    product = product_service.create_product(db, payload, user)
    return {"success": True, "product": serialize_product(product)}


@router.put("/{product_id}")
async def update_product(
    product_id: int = Path(..., description="Product ID"),
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service)
):
    """Partially update the farmer's own product."""
    product = product_service.update_product(db, product_id, payload, user)
    return {"success": True, "product": serialize_product(product)}


@router.patch("/{product_id}/stock")
async def update_stock(
    product_id: int = Path(..., description="Product ID"),
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service)
):
    """Set the stock level of the farmer's own product."""
    product = product_service.update_stock(db, product_id, payload, user)
    return {"success": True, "product": serialize_product(product)}


@router.delete("/{product_id}")
async def delete_product(
    product_id: int = Path(..., description="Product ID"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    product_service: ProductService = Depends(get_product_service)
):
    product_service.delete_product(db, product_id, user)
    return {"success": True, "message": "Product deleted successfully"}
