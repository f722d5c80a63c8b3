"""Dish Decoder - menu photo text recognition."""

__version__ = "0.1.0"
