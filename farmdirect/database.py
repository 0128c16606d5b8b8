"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Any, Dict, Generator
import logging

from farmdirect.config import DATABASE_URL, SEED_MARKET_PRICES
from farmdirect.models import Base, MarketPrice

logger = logging.getLogger(__name__)

# Reference commodity prices shown on the price comparison board
SEED_PRICES = [
    {"commodity": "Tomatoes", "market_price": 45, "farmer_price": 38, "change": 2.5, "category": "vegetables"},
    {"commodity": "Potatoes", "market_price": 25, "farmer_price": 20, "change": -1.0, "category": "vegetables"},
    {"commodity": "Onions", "market_price": 30, "farmer_price": 25, "change": 3.0, "category": "vegetables"},
    {"commodity": "Carrots", "market_price": 40, "farmer_price": 32, "change": 0, "category": "vegetables"},
    {"commodity": "Spinach", "market_price": 20, "farmer_price": 15, "change": 1.5, "category": "vegetables"},
    {"commodity": "Apples", "market_price": 120, "farmer_price": 95, "change": -5.0, "category": "fruits"},
    {"commodity": "Bananas", "market_price": 40, "farmer_price": 32, "change": 2.0, "category": "fruits"},
    {"commodity": "Oranges", "market_price": 60, "farmer_price": 48, "change": 0, "category": "fruits"},
    {"commodity": "Rice", "market_price": 45, "farmer_price": 38, "change": 1.0, "category": "grains"},
    {"commodity": "Wheat", "market_price": 28, "farmer_price": 22, "change": 0.5, "category": "grains"},
]


def engine_options(url: str) -> Dict[str, Any]:
    """Connection pool settings for the given database URL."""
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 3600,
        "pool_timeout": 30,
    }


engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session.

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def seed_market_prices(db: Session) -> int:
    """Insert the reference commodities into an empty market price table."""
    if db.query(MarketPrice).count() > 0:
        return 0
    db.add_all([MarketPrice(**row) for row in SEED_PRICES])
    db.commit()
    logger.info("Seeded market prices", extra={"count": len(SEED_PRICES)})
    return len(SEED_PRICES)


def init_db() -> None:
    """Initialize database tables and seed data."""
    Base.metadata.create_all(bind=engine)

    if not SEED_MARKET_PRICES:
        return

    db = SessionLocal()
    try:
        seed_market_prices(db)
    finally:
        db.close()
