"""ERC-20 functions used for allowance handling."""
from .abi import ContractFunction

ALLOWANCE = ContractFunction(
    "allowance", inputs=("address", "address"), outputs=("uint256",)
)
APPROVE = ContractFunction("approve", inputs=("address", "uint256"), outputs=("bool",))
