"""Product catalog service."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from opentelemetry import trace

from farmdirect.exceptions import ForbiddenError, NotFoundError, ValidationError
from farmdirect.models import DEFAULT_PRODUCT_IMAGE, Product, User, to_iso
from farmdirect.monitoring import catalog_views_counter, product_writes_counter
from farmdirect.pricing import compute_availability, compute_savings, compute_savings_percent
from farmdirect.schemas import ProductCreate, ProductUpdate, StockUpdate, parse_payload

logger = logging.getLogger(__name__)

# Columns that reject NULL once a product exists
REQUIRED_FIELDS = ("name", "category", "farmer_price", "market_price", "stock", "location")


def serialize_product(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "farmerPrice": product.farmer_price,
        "marketPrice": product.market_price,
        "savings": compute_savings(product.market_price, product.farmer_price),
        "savingsPercent": compute_savings_percent(product.market_price, product.farmer_price),
        "farmerId": product.farmer_id,
        "farmerName": product.farmer_name,
        "location": product.location,
        "stock": product.stock,
        "availability": product.availability,
        "image": product.image,
        "description": product.description,
        "createdAt": to_iso(product.created_at),
        "updatedAt": to_iso(product.updated_at),
    }


class ProductService:
    """Service for the farmer product catalog."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def list_products(
        self,
        db: Session,
        category: Optional[str] = None,
        search: Optional[str] = None,
        farmer_id: Optional[int] = None
    ) -> List[Product]:
        """
        List products newest-first.

        Args:
            db: Database session
            category: Category filter; "all" or empty means every category
            search: Case-insensitive substring matched against name, farmer name and location
            farmer_id: Restrict to one farmer's listings

        Returns:
            Matching products
        """
        with self.tracer.start_as_current_span("db.query.list_products") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "products")

            query = db.query(Product)
            if category and category != "all":
                query = query.filter(Product.category == category)
            if farmer_id is not None:
                query = query.filter(Product.farmer_id == farmer_id)
            if search:
                term = search.strip().lower()
                query = query.filter(or_(
                    func.lower(Product.name).contains(term, autoescape=True),
                    func.lower(Product.farmer_name).contains(term, autoescape=True),
                    func.lower(Product.location).contains(term, autoescape=True),
                ))

            products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
            db_span.set_attribute("db.rows_returned", len(products))

        catalog_views_counter.add(1, {"category": category or "all", "search": bool(search)})
        return products

    def get_product(self, db: Session, product_id: int) -> Product:
        product = db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def get_owned_product(self, db: Session, product_id: int, user: User) -> Product:
        """Fetch a product the acting farmer owns."""
        product = self.get_product(db, product_id)
        if user.type != "farmer" or product.farmer_id != user.id:
            logger.warning("Product ownership check failed", extra={
                "product_id": product_id,
                "owner_id": product.farmer_id,
                "user_id": user.id
            })
            raise ForbiddenError("Not authorized to modify this product")
        return product

    def create_product(self, db: Session, payload: Any, user: User) -> Product:
        """
        Create a listing owned by the acting farmer.

        Owner name and location are taken from the farmer's account; any
        client-supplied values for them are ignored.

        Raises:
            ForbiddenError: If the user is not a farmer
            ValidationError: If required fields are missing or malformed
        """
        if user.type != "farmer":
            raise ForbiddenError("Only farmers can create products")

        data = parse_payload(ProductCreate, payload)
        if not user.farm_location:
            raise ValidationError("Please provide location")

        product = Product(
            name=data.name,
            category=data.category,
            farmer_price=data.farmer_price,
            market_price=data.market_price,
            stock=data.stock,
            availability=compute_availability(data.stock),
            farmer_id=user.id,
            farmer_name=user.name,
            location=user.farm_location,
            image=data.image or DEFAULT_PRODUCT_IMAGE,
            description=data.description or "",
        )
        db.add(product)
        db.commit()
        db.refresh(product)

        product_writes_counter.add(1, {"operation": "create", "category": product.category})
        logger.info("Product created", extra={
            "product_id": product.id,
            "farmer_id": user.id,
            "stock": product.stock
        })
        return product

    def update_product(self, db: Session, product_id: int, payload: Any, user: User) -> Product:
        """
        Merge a partial update into the farmer's own product.

        Ownership is checked before the payload is validated.
        """
        product = self.get_owned_product(db, product_id, user)
        changes = parse_payload(ProductUpdate, payload).model_dump(exclude_unset=True)

        for field, value in changes.items():
            if value is None and field in REQUIRED_FIELDS:
                raise ValidationError(f"{field} cannot be empty")
            setattr(product, field, value)

        if product.image is None:
            product.image = DEFAULT_PRODUCT_IMAGE
        if product.description is None:
            product.description = ""
        product.availability = compute_availability(product.stock)

        db.commit()
        db.refresh(product)

        product_writes_counter.add(1, {"operation": "update", "category": product.category})
        logger.info("Product updated", extra={
            "product_id": product.id,
            "fields": sorted(changes)
        })
        return product

    def update_stock(self, db: Session, product_id: int, payload: Any, user: User) -> Product:
        """Set (not adjust) the stock level of the farmer's own product."""
        product = self.get_owned_product(db, product_id, user)
        data = parse_payload(StockUpdate, payload)

        old_stock = product.stock
        product.stock = data.stock
        product.availability = compute_availability(product.stock)
        db.commit()
        db.refresh(product)

        product_writes_counter.add(1, {"operation": "stock", "category": product.category})
        logger.info("Product stock set", extra={
            "product_id": product.id,
            "stock_before": old_stock,
            "stock_after": product.stock
        })
        return product

    def delete_product(self, db: Session, product_id: int, user: User) -> None:
        """Remove the farmer's own product; order snapshots keep their copies."""
        product = self.get_owned_product(db, product_id, user)
        category = product.category
        db.delete(product)
        db.commit()

        product_writes_counter.add(1, {"operation": "delete", "category": category})
        logger.info("Product deleted", extra={"product_id": product_id, "farmer_id": user.id})
