"""Venice order-book core contract functions."""
from ...chains.evm.abi import ContractFunction

_U = "uint256"

LOAN_OFFERS = ContractFunction(
    "loanOffers",
    inputs=(_U,),
    outputs=(_U, "address", "address", _U, _U, _U, _U, "bool", _U),
)
LOAN_DEMANDS = ContractFunction(
    "loanDemands",
    inputs=(_U,),
    outputs=(_U, "address", "address", _U, _U, _U, "address", _U, "bool", _U),
)
NEXT_OFFER_ID = ContractFunction("nextOfferId", outputs=(_U,))
NEXT_DEMAND_ID = ContractFunction("nextDemandId", outputs=(_U,))

CREATE_LOAN_DEMAND = ContractFunction(
    "createLoanDemand",
    inputs=("address", "address", _U, _U, _U, "address", _U, "uint8", _U),
    outputs=(_U,),
)
CREATE_LOAN_OFFER = ContractFunction(
    "createLoanOffer",
    inputs=("address", "address", _U, _U, _U, _U, "uint8", _U),
    outputs=(_U,),
)
CANCEL_LOAN_OFFER = ContractFunction("cancelLoanOffer", inputs=(_U,))
CANCEL_LOAN_DEMAND = ContractFunction("cancelLoanDemand", inputs=(_U,))
