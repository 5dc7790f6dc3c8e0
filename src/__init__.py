"""Client-side hint and quote core for the CENT ledger and Venice order book."""
