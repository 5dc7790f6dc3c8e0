"""Protocol interfaces for external collaborators."""
from .ledger import HintLedger, LedgerReader, OrderLedger
from .progress import ProgressCallback
from .signer import Signer

__all__ = ["HintLedger", "LedgerReader", "OrderLedger", "ProgressCallback", "Signer"]
