"""Order management service."""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session
from opentelemetry import trace

from farmdirect import lifecycle
from farmdirect.exceptions import (
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from farmdirect.models import Order, OrderItem, Product, User, to_iso, utcnow
from farmdirect.monitoring import (
    order_amount_histogram,
    order_failures_counter,
    order_status_changes_counter,
    orders_cancelled_counter,
    orders_created_counter,
)
from farmdirect.pricing import compute_availability
from farmdirect.schemas import OrderItemRequest

logger = logging.getLogger(__name__)

ORDER_NUMBER_OFFSET = 1000


def format_order_number(pk: int) -> str:
    """Human-readable order id derived from the primary key: 1 -> ORD-1001."""
    return f"ORD-{pk + ORDER_NUMBER_OFFSET:04d}"


def serialize_order(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "orderId": order.order_id,
        "buyerId": order.buyer_id,
        "buyerName": order.buyer_name,
        "items": [
            {
                "productId": item.product_id,
                "productName": item.product_name,
                "quantity": item.quantity,
                "price": item.price,
                "farmerId": item.farmer_id,
                "farmerName": item.farmer_name,
            }
            for item in order.items
        ],
        "total": order.total,
        "status": order.status,
        "orderDate": to_iso(order.order_date),
        "deliveryDate": to_iso(order.delivery_date),
        "createdAt": to_iso(order.created_at),
        "updatedAt": to_iso(order.updated_at),
    }


class OrderService:
    """Service for managing orders and the stock they consume."""

    def __init__(self, strict_transitions: bool = False):
        """
        Initialize order service.

        Args:
            strict_transitions: Enforce the order lifecycle on status updates
        """
        self.strict_transitions = strict_transitions
        self.tracer = trace.get_tracer(__name__)

    def list_orders(self, db: Session, user: User, status: Optional[str] = None) -> List[Order]:
        """
        List orders visible to the user, newest first.

        Buyers see the orders they placed; farmers see orders with at least
        one line item for their produce.
        """
        with self.tracer.start_as_current_span("db.query.list_orders") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("user.id", user.id)
            db_span.set_attribute("user.type", user.type)

            query = db.query(Order)
            if user.type == "farmer":
                query = query.filter(Order.items.any(OrderItem.farmer_id == user.id))
            else:
                query = query.filter(Order.buyer_id == user.id)

            if status and status != "all":
                query = query.filter(Order.status == status)

            orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
            db_span.set_attribute("db.rows_returned", len(orders))

            return orders

    def _find_order(self, db: Session, reference: str, for_update: bool = False) -> Order:
        """
        Look an order up by numeric id or by its ORD-#### number.

        With ``for_update`` the row is locked and reloaded, so the caller
        sees the committed status rather than a copy cached in the session.
        """
        query = db.query(Order)
        if reference.isdecimal():
            query = query.filter(Order.id == int(reference))
        else:
            query = query.filter(Order.order_id == reference.upper())
        if for_update:
            query = query.with_for_update().populate_existing()
        order = query.first()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def is_participant(order: Order, user: User) -> bool:
        return order.buyer_id == user.id or any(item.farmer_id == user.id for item in order.items)

    def get_order(self, db: Session, reference: str, user: User) -> Order:
        order = self._find_order(db, reference)
        if not self.is_participant(order, user):
            raise ForbiddenError("Not authorized to view this order")
        return order

    def create_order(self, db: Session, items: Sequence[OrderItemRequest], user: User) -> Order:
        """
        Place an order from the current catalog state.

        All referenced products are locked up front. Lines are then processed
        in request order: checked against the requested quantity, snapshotted
        and decremented.
        Everything commits in one transaction, so a failing line leaves the
        stock of every earlier line untouched.

        Args:
            db: Database session
            items: Requested lines
            user: Acting buyer

        Returns:
            The persisted order

        Raises:
            ForbiddenError: If the user is not a buyer
            ValidationError: If no items are given
            NotFoundError: If a product does not exist
            InsufficientStockError: If a line asks for more than is in stock
        """
        if user.type != "buyer":
            raise ForbiddenError("Only buyers can place orders")
        if not items:
            raise ValidationError("Order must contain at least one item")

        span = trace.get_current_span()
        span.set_attribute("order.item_count", len(items))

        order = Order(buyer_id=user.id, buyer_name=user.name, status=lifecycle.PENDING)
        total = 0.0

        try:
            with self.tracer.start_as_current_span("db.transaction.create_order") as tx_span:
                tx_span.set_attribute("db.operation", "INSERT")
                tx_span.set_attribute("db.table", "orders")
                tx_span.set_attribute("user.id", user.id)

                locked = self._lock_products(db, [line.product_id for line in items])

                for position, line in enumerate(items):
                    product = locked.get(line.product_id)
                    if product is None:
                        order_failures_counter.add(1, {"reason": "not_found"})
                        raise NotFoundError(f"Product {line.product_id} not found")

                    if line.quantity > product.stock:
                        order_failures_counter.add(1, {"reason": "insufficient_stock"})
                        raise InsufficientStockError(product.name, line.quantity, product.stock)

                    order.items.append(OrderItem(
                        position=position,
                        product_id=product.id,
                        product_name=product.name,
                        quantity=line.quantity,
                        price=product.farmer_price,
                        farmer_id=product.farmer_id,
                        farmer_name=product.farmer_name,
                    ))
                    total += product.farmer_price * line.quantity

                    product.stock -= line.quantity
                    product.availability = compute_availability(product.stock)

                order.total = round(total, 2)
                db.add(order)
                db.flush()
                order.order_id = format_order_number(order.id)
                db.commit()

                tx_span.set_attribute("order.id", order.order_id)
                tx_span.set_attribute("order.total", order.total)
        except MarketplaceError as e:
            db.rollback()
            logger.warning("Order rejected", extra={
                "user_id": user.id,
                "error": e.message
            })
            raise
        except Exception as e:
            db.rollback()
            logger.error("Failed to create order", extra={
                "user_id": user.id,
                "amount": total,
                "error": str(e)
            })
            raise

        db.refresh(order)

        orders_created_counter.add(1, {"item_count": str(len(order.items))})
        order_amount_histogram.record(order.total)

        logger.info("Order placed", extra={
            "order_id": order.order_id,
            "buyer_id": user.id,
            "amount": order.total,
            "item_count": len(order.items)
        })
        return order

    def _lock_products(self, db: Session, product_ids: Iterable[Optional[int]]) -> Dict[int, Product]:
        """
        Lock and reload the given products, keyed by id.

        Rows are locked in ascending id order whatever order the caller lists
        them in, so two transactions over the same products cannot deadlock.
        Missing ids are simply absent from the result.
        """
        ids = sorted({pid for pid in product_ids if pid is not None})
        if not ids:
            return {}
        with self.tracer.start_as_current_span("db.query.lock_products") as db_span:
            db_span.set_attribute("db.operation", "SELECT FOR UPDATE")
            db_span.set_attribute("db.table", "products")
            db_span.set_attribute("product.count", len(ids))

            products = (
                db.query(Product)
                .filter(Product.id.in_(ids))
                .order_by(Product.id)
                .with_for_update()
                .populate_existing()
                .all()
            )
            db_span.set_attribute("db.rows_returned", len(products))
            return {product.id: product for product in products}

    def update_status(self, db: Session, reference: str, new_status: str, user: User) -> Order:
        """
        Change an order's status on behalf of its buyer or one of its farmers.

        In strict mode the change must follow the lifecycle; otherwise any
        known status is accepted. Reaching ``delivered`` stamps the delivery date.
        """
        lifecycle.validate_status(new_status)
        order = self._find_order(db, reference)
        if not self.is_participant(order, user):
            raise ForbiddenError("Not authorized to update this order")

        if self.strict_transitions:
            lifecycle.validate_transition(order.status, new_status)
            if new_status == lifecycle.CANCELLED:
                raise InvalidStateError("Cancel orders with DELETE /api/orders/{id} so their stock is restored")

        old_status = order.status
        order.status = new_status
        if new_status == lifecycle.DELIVERED:
            order.delivery_date = utcnow()
        db.commit()
        db.refresh(order)

        order_status_changes_counter.add(1, {"from": old_status, "to": new_status, "user_type": user.type})
        logger.info("Order status changed", extra={
            "order_id": order.order_id,
            "from_status": old_status,
            "to_status": new_status,
            "user_id": user.id
        })
        return order

    def cancel_order(self, db: Session, reference: str, user: User) -> Order:
        """
        Cancel a buyer's pending or confirmed order and return its stock.

        Products deleted since the order was placed are skipped.

        Raises:
            ForbiddenError: If the user did not place the order
            InvalidStateError: If the order is past confirmation or already cancelled
        """
        if user.type != "buyer":
            raise ForbiddenError("Only buyers can cancel orders")

        order = self._find_order(db, reference, for_update=True)
        if order.buyer_id != user.id:
            db.rollback()
            raise ForbiddenError("Not authorized to cancel this order")
        if order.status not in lifecycle.CANCELLABLE_STATUSES:
            db.rollback()
            raise InvalidStateError("Cannot cancel order in current status")

        try:
            with self.tracer.start_as_current_span("db.transaction.cancel_order") as tx_span:
                tx_span.set_attribute("db.operation", "UPDATE")
                tx_span.set_attribute("order.id", order.order_id)

                locked = self._lock_products(db, [item.product_id for item in order.items])
                restored = 0
                for item in order.items:
                    product = locked.get(item.product_id)
                    if product is None:
                        logger.info("Skipping stock restore for deleted product", extra={
                            "order_id": order.order_id,
                            "product_id": item.product_id
                        })
                        continue
                    product.stock += item.quantity
                    product.availability = compute_availability(product.stock)
                    restored += 1

                order.status = lifecycle.CANCELLED
                db.commit()
                tx_span.set_attribute("products.restored", restored)
        except Exception as e:
            db.rollback()
            logger.error("Failed to cancel order", extra={
                "order_id": order.order_id,
                "error": str(e)
            })
            raise

        db.refresh(order)
        orders_cancelled_counter.add(1, {"restored_lines": str(restored)})
        logger.info("Order cancelled", extra={"order_id": order.order_id, "buyer_id": user.id})
        return order
