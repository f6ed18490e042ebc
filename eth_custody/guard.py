"""Reentrancy protection and ownership for the custodian."""

import logging
from contextlib import contextmanager
from typing import Iterator

from eth_typing import HexAddress

from eth_custody.address import to_address, ZERO_ADDRESS
from eth_custody.errors import InvalidArgument, NotAuthorised, ReentrantCall

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    """Call-scoped mutual exclusion.

    - One guard is shared by all entry points of a custodian,
      so a nested call into any of them is rejected

    - The flag is cleared on every exit path

    - Not thread-safe: checking and setting the flag is not atomic,
      flows are expected to run single-threaded

    Example:

    .. code-block:: python

        with self.guard.enter("invest"):
            ...
    """

    def __init__(self):
        self._entered: str | None = None

    @property
    def entered(self) -> bool:
        return self._entered is not None

    @contextmanager
    def enter(self, name: str) -> Iterator[None]:
        if self._entered is not None:
            raise ReentrantCall(f"Cannot enter {name}: {self._entered} is still in progress")
        self._entered = name
        try:
            yield
        finally:
            self._entered = None


class Ownable:
    """Single owner with administrative rights.

    The custodian has no administrative entry points besides ownership transfer.
    """

    def __init__(self, owner: HexAddress | str):
        self.owner = to_address(owner)

    def only_owner(self, caller: HexAddress | str):
        """Check that the caller is the owner.

        :raise NotAuthorised:
            If someone else is calling
        """
        if to_address(caller) != self.owner:
            raise NotAuthorised(f"Caller {caller} is not the owner {self.owner}")

    def transfer_ownership(self, new_owner: HexAddress | str, caller: HexAddress | str):
        self.only_owner(caller)
        new_owner = to_address(new_owner)
        if new_owner == ZERO_ADDRESS:
            raise InvalidArgument("New owner cannot be the zero address")
        logger.info("Ownership transferred from %s to %s", self.owner, new_owner)
        self.owner = new_owner
