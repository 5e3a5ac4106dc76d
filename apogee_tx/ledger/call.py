"""
Call descriptor — what to invoke, on which contract, with which arguments.

A ``CallDescriptor`` is pure data. It is created per user action
("deposit collateral", "borrow") and never mutated; the pipeline treats
the method name and arguments as an opaque payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from apogee_tx.ledger.scval import ScVal

_MAX_METHOD_LEN = 32


@dataclass(frozen=True)
class CallDescriptor:
    """A single contract invocation.

    Attributes:
        contract_address: Opaque contract identifier.
        method: Contract function name.
        args: Ordered typed arguments.
    """

    contract_address: str
    method: str
    args: tuple[ScVal, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.contract_address:
            raise ValueError("contract_address must be non-empty")
        if not self.method:
            raise ValueError("method must be non-empty")
        if len(self.method) > _MAX_METHOD_LEN:
            raise ValueError(
                f"method name longer than {_MAX_METHOD_LEN} chars: {self.method!r}"
            )
        # Accept any iterable at construction; store a tuple.
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        for i, arg in enumerate(self.args):
            if not isinstance(arg, ScVal):
                raise ValueError(
                    f"args[{i}] must be an ScVal, got {type(arg).__name__}"
                )

    def to_operation(self) -> dict[str, Any]:
        """The ``invoke_contract`` operation dict carried in an envelope."""
        return {
            "type": "invoke_contract",
            "contract": self.contract_address,
            "method": self.method,
            "args": [arg.to_wire() for arg in self.args],
        }
