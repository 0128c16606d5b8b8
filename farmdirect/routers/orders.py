"""Orders API router."""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from opentelemetry import trace

from farmdirect.auth import get_current_user, require_buyer
from farmdirect.database import get_db
from farmdirect.dependencies import get_order_service
from farmdirect.models import User
from farmdirect.schemas import OrderCreate, OrderStatusUpdate
from farmdirect.services.order_service import OrderService, serialize_order

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def list_orders(
    status: Optional[str] = Query(None, description="Order status or all"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    """List the caller's orders: placed ones for buyers, ones containing their produce for farmers."""
    orders = order_service.list_orders(db, user, status=status)
    return {
        "success": True,
        "count": len(orders),
        "orders": [serialize_order(o) for o in orders]
    }


@router.get("/{order_id}")
async def get_order(
    order_id: str = Path(..., description="Numeric id or ORD-#### number"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    order = order_service.get_order(db, order_id, user)
    return {"success": True, "order": serialize_order(order)}


@router.post("", status_code=201)
async def create_order(
    request: OrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_buyer),
    order_service: OrderService = Depends(get_order_service)
):
    """Place an order; stock for every line is reserved atomically."""
    order = order_service.create_order(db, request.items, user)

    span = trace.get_current_span()
    span.set_attribute("order.id", order.order_id)
    span.set_attribute("order.total", order.total)

    return {"success": True, "order": serialize_order(order)}


@router.patch("/{order_id}/status")
async def update_order_status(
    request: OrderStatusUpdate,
    order_id: str = Path(..., description="Numeric id or ORD-#### number"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    order = order_service.update_status(db, order_id, request.status, user)
    return {"success": True, "order": serialize_order(order)}


@router.delete("/{order_id}")
async def cancel_order(
    order_id: str = Path(..., description="Numeric id or ORD-#### number"),
    db: Session = Depends(get_db),
    user: User = Depends(require_buyer),
    order_service: OrderService = Depends(get_order_service)
):
    """Cancel a pending or confirmed order and return its stock."""
    order = order_service.cancel_order(db, order_id, user)
    return {
        "success": True,
        "message": "Order cancelled successfully",
        "order": serialize_order(order)
    }
