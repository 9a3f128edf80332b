"""
Models package — export all SQLAlchemy models.
"""

from optcg_prices.models.base import Base
from optcg_prices.models.group import Group
from optcg_prices.models.price import Price
from optcg_prices.models.product import Product

__all__ = ["Base", "Group", "Price", "Product"]
