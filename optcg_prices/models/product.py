"""
OPTCG Price Lookup — Product (Card) Model

Card catalog rows mirrored from tcgcsv. Upserted by Catalog Sync keyed on
product_id; Search only reads them.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, INTEGER, JSON, TIMESTAMP, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from optcg_prices.models.base import Base


class Product(Base):
    """
    A single card listing with attributes parsed out of tcgcsv extendedData.

    List-valued attributes (colors, subtypes, tags) are stored as JSON arrays.
    """

    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(
        INTEGER, primary_key=True, autoincrement=False, comment="tcgcsv productId"
    )
    group_id: Mapped[int] = mapped_column(
        INTEGER, ForeignKey("groups.group_id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    clean_name: Mapped[str | None] = mapped_column(String, nullable=True)
    card_number: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True, comment="Collector number (e.g., 'EB03-001')"
    )
    card_type: Mapped[str | None] = mapped_column(String, nullable=True)
    colors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    rarity: Mapped[str | None] = mapped_column(String, nullable=True)
    cost: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    power: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    life: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    attribute: Mapped[str | None] = mapped_column(String, nullable=True)
    subtypes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    counter_plus: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="Gameplay keywords from description"
    )
    is_alt_art: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    is_manga: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    is_sp: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    url: Mapped[str | None] = mapped_column(String, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<Product product_id={self.product_id!r} name={self.name!r} "
            f"card_number={self.card_number!r}>"
        )
