"""OPTCG Price Lookup — local mirror of the tcgcsv One Piece catalog with card search."""

__version__ = "0.1.0"
