"""
OPTCG Price Lookup — Price Model

Append-only log of price snapshots per product per sub-type.
Never updated — each sync appends a new row for every upstream price.
Search keeps only the newest row per (product_id, sub_type_name).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, INTEGER, TIMESTAMP, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from optcg_prices.models.base import Base


class Price(Base):
    """
    Append-only price snapshot for one pricing variant of a product.

    Index: (product_id, recorded_at) supports the latest-first scan used by
    price attachment.
    """

    __tablename__ = "prices"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        INTEGER, ForeignKey("products.product_id"), nullable=False
    )
    sub_type_name: Mapped[str] = mapped_column(
        String, nullable=False, comment="Pricing variant: 'Normal', 'Foil', ..."
    )
    low_price: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    mid_price: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    high_price: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    market_price: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="UTC timestamp of the sync that recorded this price",
    )

    __table_args__ = (
        Index("ix_prices_product_recorded", "product_id", "recorded_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Price product_id={self.product_id!r} sub_type={self.sub_type_name!r} "
            f"market={self.market_price} at={self.recorded_at}>"
        )
