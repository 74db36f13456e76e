"""
Database layer for session keys and referrals.

SQLite by default via Database(url); any SQLAlchemy URL works (PostgreSQL in production).
"""

from backend_alpacalotto.database.connection import Base, Database

__all__ = ["Base", "Database"]
