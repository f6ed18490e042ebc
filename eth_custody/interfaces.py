"""Collaborators the custody flows consume.

- :py:class:`FungibleAsset` is an ERC-20 token

- :py:class:`EnzymeVaultLike` is an Enzyme comptroller

- :py:class:`ExecutionEnvironment` resolves handles to the above and
  gives the all-or-nothing call scope

Implementations live in :py:mod:`eth_custody.simulated` (in-process)
and :py:mod:`eth_custody.web3_backend` (JSON-RPC node).
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Sequence

from eth_typing import HexAddress

from eth_custody.address import AssetHandle, VaultHandle


class FungibleAsset(ABC):
    """ERC-20 token interface.

    Write methods take ``sender``, the account performing the call,
    i.e. Solidity ``msg.sender``.

    Write methods may either raise or return ``False`` on failure.
    """

    @property
    @abstractmethod
    def address(self) -> HexAddress:
        """Token contract address."""

    @abstractmethod
    def allowance(self, owner: HexAddress, spender: HexAddress) -> int:
        pass

    @abstractmethod
    def balance_of(self, owner: HexAddress) -> int:
        pass

    @abstractmethod
    def transfer_from(self, sender: HexAddress, owner: HexAddress, to: HexAddress, amount: int) -> bool:
        pass

    @abstractmethod
    def approve(self, sender: HexAddress, spender: HexAddress, amount: int) -> bool:
        pass


class EnzymeVaultLike(ABC):
    """Enzyme comptroller interface.

    See `ComptrollerLib.sol` in Enzyme Protocol.
    """

    @property
    @abstractmethod
    def address(self) -> HexAddress:
        """Comptroller contract address."""

    @abstractmethod
    def buy_shares_on_behalf(
        self,
        sender: HexAddress,
        buyer: HexAddress,
        investment_amount: int,
        min_shares_quantity: int,
    ) -> int:
        """Pull `investment_amount` of the denomination asset from `sender` and issue shares to `buyer`.

        :return:
            Raw amount of shares issued
        """

    @abstractmethod
    def redeem_shares_in_kind(
        self,
        sender: HexAddress,
        recipient: HexAddress,
        shares_quantity: int,
        additional_assets: Sequence[HexAddress],
        assets_to_skip: Sequence[HexAddress],
    ) -> tuple[list[HexAddress], list[int]]:
        """Burn `shares_quantity` shares of `sender` and release the pro-rata underlying assets to `recipient`.

        :return:
            Tuple (released assets, released raw amounts)
        """


class ExecutionEnvironment(ABC):
    """Where the custody flows run.

    Resolves opaque handles to live collaborators and provides
    the atomic call boundary.
    """

    @abstractmethod
    def resolve_asset(self, handle: AssetHandle) -> FungibleAsset:
        pass

    @abstractmethod
    def resolve_vault(self, handle: VaultHandle) -> EnzymeVaultLike:
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """All-or-nothing scope for one entry point call.

        If the block raises, every state change done inside the block is discarded
        and the exception propagates.
        """
