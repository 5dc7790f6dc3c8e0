"""Venice peer-to-peer loan order book support."""
from .order_book import VeniceOrderBook

__all__ = ["VeniceOrderBook"]
