"""
SQLAlchemy 2.0 async DeclarativeBase for OPTCG Price Lookup.

All models inherit from this Base.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all catalog mirror models."""
    pass
