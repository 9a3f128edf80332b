"""OPTCG Price Lookup — Catalog ingestion (tcgcsv client, parsing, sync)."""
