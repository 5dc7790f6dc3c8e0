"""CENT (Liquity v2 fork) ledger support."""
from .ledger import CentLedger, open_branch_ledger

__all__ = ["CentLedger", "open_branch_ledger"]
