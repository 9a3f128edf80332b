from optcg_prices.engine.latest_prices import select_latest_prices
from optcg_prices.engine.search import (
    search_by_card_number,
    search_by_name,
    search_by_name_global,
)

__all__ = [
    "search_by_card_number",
    "search_by_name",
    "search_by_name_global",
    "select_latest_prices",
]
