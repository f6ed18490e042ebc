"""Custody flow exceptions.

Every failure is fatal to the whole entry point call. The enclosing
:py:meth:`eth_custody.interfaces.ExecutionEnvironment.atomic` scope discards
the state changes done before the failure.
"""

from eth_typing import HexAddress


class CustodyError(Exception):
    """Base class for all custody flow failures."""


class InvalidArgument(CustodyError):
    """Zero amount, null address or a handle of the wrong kind."""


class InsufficientAllowance(CustodyError):
    """The caller has not approved the custodian to spend enough tokens.

    Carries the observed allowance so the caller can see how much is missing.
    """

    def __init__(
        self,
        message: str,
        asset: HexAddress | str,
        owner: HexAddress | str,
        observed: int,
        required: int,
    ):
        super().__init__(message)
        self.asset = asset
        self.owner = owner
        self.observed = observed
        self.required = required


class TransferFailed(CustodyError):
    """transferFrom() reverted or returned false."""


class ApprovalFailed(CustodyError):
    """approve() reverted or returned false."""


class VaultCallFailed(CustodyError):
    """buySharesOnBehalf() or redeemSharesInKind() reverted."""


class ReentrantCall(CustodyError):
    """An entry point was called again while a flow was still in progress."""


class NotAuthorised(CustodyError):
    """Caller is not the owner of the custodian."""
