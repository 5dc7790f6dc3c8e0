"""Minimal ABI call descriptors built on eth-abi."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector


@dataclass(frozen=True)
class ContractFunction:
    """A contract function signature with its output types."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_input(self, *args: Any) -> bytes:
        if len(args) != len(self.inputs):
            raise ValueError(
                f"{self.signature} expects {len(self.inputs)} arguments, got {len(args)}"
            )
        return self.selector + encode(list(self.inputs), list(args))

    def decode_output(self, data: bytes) -> tuple[Any, ...]:
        return tuple(decode(list(self.outputs), data))


@dataclass(frozen=True)
class ContractCall:
    """A fully bound call: target, function and arguments.

    Used both for read-only ``eth_call`` and as the descriptor handed to a
    Signer for submission.
    """

    to: str
    function: ContractFunction
    args: tuple[Any, ...] = ()
    value: int = 0

    @property
    def data(self) -> bytes:
        return self.function.encode_input(*self.args)

    @property
    def label(self) -> str:
        return self.function.name
