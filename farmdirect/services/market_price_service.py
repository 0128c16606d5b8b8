"""Market price board service."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from opentelemetry import trace

from farmdirect.exceptions import NotFoundError, ValidationError
from farmdirect.models import MarketPrice, to_iso
from farmdirect.monitoring import market_price_updates_counter
from farmdirect.pricing import compute_savings, compute_savings_percent
from farmdirect.schemas import MarketPriceUpdate, parse_payload

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("commodity", "market_price", "farmer_price", "change", "category")


def serialize_market_price(price: MarketPrice) -> Dict[str, Any]:
    return {
        "id": price.id,
        "commodity": price.commodity,
        "marketPrice": price.market_price,
        "farmerPrice": price.farmer_price,
        "change": price.change,
        "category": price.category,
        "savings": compute_savings(price.market_price, price.farmer_price),
        "savingsPercent": compute_savings_percent(price.market_price, price.farmer_price),
        "updatedAt": to_iso(price.updated_at),
    }


class MarketPriceService:
    """Service for reference commodity prices."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def list_prices(self, db: Session, category: Optional[str] = None) -> List[MarketPrice]:
        """List price snapshots alphabetically, optionally for one category."""
        with self.tracer.start_as_current_span("db.query.list_market_prices") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "market_prices")

            query = db.query(MarketPrice)
            if category and category != "all":
                query = query.filter(MarketPrice.category == category)
            prices = query.order_by(MarketPrice.commodity.asc()).all()

            db_span.set_attribute("db.rows_returned", len(prices))
            return prices

    def update_price(self, db: Session, price_id: int, payload: Any) -> MarketPrice:
        """
        Merge a partial update into a price snapshot.

        Args:
            db: Database session
            price_id: Market price id
            payload: Raw request body

        Returns:
            Updated snapshot

        Raises:
            NotFoundError: If the snapshot does not exist
            ValidationError: On malformed fields or a duplicate commodity name
        """
        price = db.get(MarketPrice, price_id)
        if price is None:
            raise NotFoundError("Market price not found")

        changes = parse_payload(MarketPriceUpdate, payload).model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in REQUIRED_FIELDS:
                raise ValidationError(f"{field} cannot be empty")
            setattr(price, field, value)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Market price update rejected: duplicate commodity", extra={
                "market_price_id": price_id,
                "commodity": changes.get("commodity")
            })
            raise ValidationError("Commodity already exists")
        db.refresh(price)

        market_price_updates_counter.add(1, {"category": price.category})
        logger.info("Market price updated", extra={
            "market_price_id": price.id,
            "commodity": price.commodity,
            "fields": sorted(changes)
        })
        return price
