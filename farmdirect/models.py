"""Database models for the marketplace."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

DEFAULT_PRODUCT_IMAGE = "https://images.unsplash.com/photo-1542838132-92c53300491e?w=500"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class User(Base):
    """Registered buyer or farmer."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String)
    password_hash = Column(String, nullable=False)
    type = Column(String, nullable=False)
    farm_location = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Product(Base):
    """Produce listed by a farmer."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    category = Column(String, index=True, nullable=False)
    farmer_price = Column(Float, nullable=False)
    market_price = Column(Float, nullable=False)
    farmer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    farmer_name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    availability = Column(String, nullable=False)
    image = Column(String, default=DEFAULT_PRODUCT_IMAGE)
    description = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Order(Base):
    """Buyer order with frozen line item snapshots."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, unique=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    buyer_name = Column(String, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="pending")
    order_date = Column(DateTime(timezone=True), default=utcnow)
    delivery_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
    )


class OrderItem(Base):
    """Line item snapshot; product_id is a plain reference so products can be deleted."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_pk = Column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, index=True)
    product_name = Column(String)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    farmer_id = Column(Integer, index=True)
    farmer_name = Column(String)

    order = relationship("Order", back_populates="items")


class MarketPrice(Base):
    """Reference commodity pricing, independent of inventory."""
    __tablename__ = "market_prices"

    id = Column(Integer, primary_key=True, index=True)
    commodity = Column(String, unique=True, index=True, nullable=False)
    market_price = Column(Float, nullable=False)
    farmer_price = Column(Float, nullable=False)
    change = Column(Float, nullable=False, default=0)
    category = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
