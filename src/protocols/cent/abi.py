"""CENT (Liquity v2 fork) contract functions used by this package."""
from ...chains.evm.abi import ContractFunction

_U = "uint256"

# SortedTroves
GET_SIZE = ContractFunction("getSize", outputs=(_U,))
FIND_INSERT_POSITION = ContractFunction(
    "findInsertPosition", inputs=(_U, _U, _U), outputs=(_U, _U)
)

# HintHelpers
GET_APPROX_HINT = ContractFunction(
    "getApproxHint", inputs=(_U, _U, _U, _U), outputs=(_U, _U, _U)
)

# TroveManager
GET_LATEST_TROVE_DATA = ContractFunction(
    "getLatestTroveData", inputs=(_U,), outputs=(f"({','.join([_U] * 10)})",)
)

# BorrowerOperations
OPEN_TROVE = ContractFunction(
    "openTrove",
    inputs=(
        "address", _U, _U, _U, _U, _U, _U, _U, "address", "address", "address",
    ),
    outputs=(_U,),
)
ADD_COLL = ContractFunction("addColl", inputs=(_U, _U))
WITHDRAW_COLL = ContractFunction("withdrawColl", inputs=(_U, _U))
WITHDRAW_BOLD = ContractFunction("withdrawBold", inputs=(_U, _U, _U))
REPAY_BOLD = ContractFunction("repayBold", inputs=(_U, _U))
CLOSE_TROVE = ContractFunction("closeTrove", inputs=(_U,))
ADJUST_TROVE_INTEREST_RATE = ContractFunction(
    "adjustTroveInterestRate", inputs=(_U, _U, _U, _U, _U)
)
