"""EVM chain support."""
from .abi import ContractCall, ContractFunction
from .client import EvmClient
from .signer import LocalSigner

__all__ = ["ContractCall", "ContractFunction", "EvmClient", "LocalSigner"]
