"""
OPTCG Price Lookup — Group (Set) Model

One row per tcgcsv group. Written only by Catalog Sync; synced_at is the
freshness gate that decides whether a sync does any upstream work.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import INTEGER, TIMESTAMP, String
from sqlalchemy.orm import Mapped, mapped_column

from optcg_prices.models.base import Base


class Group(Base):
    """
    A released card set, as listed by tcgcsv.

    group_id is assigned upstream. abbreviation (e.g. "EB03") is the
    case-insensitive key users search by.
    """

    __tablename__ = "groups"

    group_id: Mapped[int] = mapped_column(
        INTEGER,
        primary_key=True,
        autoincrement=False,
        comment="tcgcsv groupId",
    )
    name: Mapped[str] = mapped_column(
        String, nullable=False, comment="Set name (e.g., 'Extra Booster: Memorial Collection')"
    )
    abbreviation: Mapped[str] = mapped_column(
        String, nullable=False, index=True, comment="Set code (e.g., 'EB03')"
    )
    synced_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        comment="Last successful catalog sync; NULL if never synced",
    )

    def __repr__(self) -> str:
        return (
            f"<Group group_id={self.group_id!r} abbreviation={self.abbreviation!r} "
            f"synced_at={self.synced_at}>"
        )
