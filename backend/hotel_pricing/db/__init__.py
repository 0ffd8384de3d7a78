from hotel_pricing.db.base import Base
from hotel_pricing.db.session import get_db, engine, SessionLocal
from hotel_pricing.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
