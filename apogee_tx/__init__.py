"""
apogee-tx: client-side transaction pipeline for the Apogee lending pool.

Every write is:
- simulated before it is signed
- signed by an external signer that alone holds keys
- submitted once and polled to a terminal status

Failures come back classified, in terms a user can act on.
"""

__version__ = "0.1.0"

from apogee_tx.amounts import SCALE, from_scaled, to_scaled
from apogee_tx.config import ContractAddresses, NetworkConfig
from apogee_tx.ledger import (
    CallDescriptor,
    ClassifiedError,
    ErrorCategory,
    JsonRpcClient,
    PipelineError,
    Signer,
    TransactionRecord,
    TxStatus,
    invoke,
)

__all__ = [
    "SCALE",
    "CallDescriptor",
    "ClassifiedError",
    "ContractAddresses",
    "ErrorCategory",
    "JsonRpcClient",
    "NetworkConfig",
    "PipelineError",
    "Signer",
    "TransactionRecord",
    "TxStatus",
    "from_scaled",
    "invoke",
    "to_scaled",
]
