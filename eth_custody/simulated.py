"""In-process chain simulation for the custody flows.

- :py:class:`SimulatedChain` keeps ERC-20 balances and allowances in memory
  and supports Anvil-like `snapshot()` and `revert()`

- :py:class:`SimulatedERC20` is a plain ERC-20 that can be told to misbehave

- :py:class:`SimulatedEnzymeVault` is a minimal Enzyme comptroller with
  `buySharesOnBehalf()` and `redeemSharesInKind()`

Used in unit tests and to dry-run flows without a node.

Example:

.. code-block:: python

    chain = SimulatedChain()
    usdc = chain.deploy_token("USD Coin", "USDC", decimals=6)
    vault = chain.deploy_vault(usdc, "Example Fund", "EXF")
    usdc.mint(investor, 1000 * 10**6)
"""

import copy
import enum
import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, Iterator, Sequence

from eth_typing import HexAddress
from eth_utils import keccak, to_checksum_address

from eth_custody.address import AssetHandle, VaultHandle, ZERO_ADDRESS
from eth_custody.errors import InvalidArgument
from eth_custody.interfaces import EnzymeVaultLike, ExecutionEnvironment, FungibleAsset

logger = logging.getLogger(__name__)

#: Enzyme shares always have 18 decimals
SHARES_DECIMALS = 18

#: Infinite approval, not decreased on spend
MAX_UINT256 = 2**256 - 1


class SimulatedRevert(Exception):
    """Simulated contract call reverted.

    The message is the Solidity revert reason.
    """


class TokenFailureMode(enum.Enum):
    """How a :py:class:`SimulatedERC20` misbehaves."""

    #: transferFrom() reverts
    revert_transfer_from = "revert_transfer_from"

    #: transferFrom() returns false without moving tokens, like old USDT-style tokens
    false_transfer_from = "false_transfer_from"

    #: approve() reverts
    revert_approve = "revert_approve"

    #: approve() returns false
    false_approve = "false_approve"


#: Called as hook(sender, owner, to, amount) inside transferFrom() before balances change
TransferHook = Callable[[HexAddress, HexAddress, HexAddress, int], None]


def make_address(*seed: str | int) -> HexAddress:
    """Deterministic address from a seed."""
    data = ":".join(str(s) for s in seed)
    return HexAddress(to_checksum_address(keccak(text=data)[-20:]))


class SimulatedChain(ExecutionEnvironment):
    """In-memory token state with snapshots.

    - All token balances and allowances live in this object,
      so a snapshot covers every token and vault deployed on it

    - :py:meth:`atomic` reverts to a snapshot on any exception,
      the same way a reverted transaction leaves no trace
    """

    def __init__(self):
        #: token -> holder -> raw balance
        self.balances: dict[HexAddress, dict[HexAddress, int]] = defaultdict(lambda: defaultdict(int))

        #: token -> (owner, spender) -> raw allowance
        self.allowances: dict[HexAddress, dict[tuple[HexAddress, HexAddress], int]] = defaultdict(lambda: defaultdict(int))

        #: token -> raw total supply
        self.total_supply: dict[HexAddress, int] = defaultdict(int)

        self.tokens: dict[HexAddress, SimulatedERC20] = {}
        self.vaults: dict[HexAddress, SimulatedEnzymeVault] = {}

        self._snapshots: list[tuple] = []
        self._deploy_nonce = 0

    def deploy_token(self, name: str, symbol: str, decimals: int = 18) -> "SimulatedERC20":
        address = self._next_address("token", symbol)
        token = SimulatedERC20(self, address, name, symbol, decimals)
        self.tokens[address] = token
        return token

    def deploy_vault(self, denomination_token: "SimulatedERC20", name: str, symbol: str) -> "SimulatedEnzymeVault":
        """Deploy a comptroller and its share token."""
        shares_token = self.deploy_token(name, symbol, SHARES_DECIMALS)
        address = self._next_address("comptroller", symbol)
        vault = SimulatedEnzymeVault(self, address, denomination_token, shares_token)
        self.vaults[address] = vault
        return vault

    def resolve_asset(self, handle: AssetHandle) -> "SimulatedERC20":
        token = self.tokens.get(handle.address)
        if token is None:
            raise InvalidArgument(f"No token deployed at {handle.address}")
        return token

    def resolve_vault(self, handle: VaultHandle) -> "SimulatedEnzymeVault":
        vault = self.vaults.get(handle.address)
        if vault is None:
            raise InvalidArgument(f"No vault deployed at {handle.address}")
        return vault

    def snapshot(self) -> int:
        """Take a snapshot of all token state.

        :return:
            Snapshot id
        """
        state = (
            copy.deepcopy(self.balances),
            copy.deepcopy(self.allowances),
            copy.deepcopy(self.total_supply),
        )
        self._snapshots.append(state)
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> bool:
        """Roll back to a snapshot.

        The snapshot and all snapshots taken after it are discarded.

        :return:
            True if a snapshot was reverted
        """
        if snapshot_id >= len(self._snapshots):
            return False
        self.balances, self.allowances, self.total_supply = self._snapshots[snapshot_id]
        del self._snapshots[snapshot_id:]
        return True

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot_id = self.snapshot()
        try:
            yield
        except Exception as e:
            logger.warning("Rolling back to snapshot %d: %s", snapshot_id, e)
            self.revert(snapshot_id)
            raise
        else:
            del self._snapshots[snapshot_id:]

    def _next_address(self, kind: str, symbol: str) -> HexAddress:
        self._deploy_nonce += 1
        return make_address(kind, symbol, self._deploy_nonce)


class SimulatedERC20(FungibleAsset):
    """ERC-20 token backed by :py:class:`SimulatedChain` state."""

    def __init__(self, chain: SimulatedChain, address: HexAddress, name: str, symbol: str, decimals: int):
        self.chain = chain
        self._address = address
        self.name = name
        self.symbol = symbol
        self.decimals = decimals

        #: Set to make the token misbehave
        self.failure_mode: TokenFailureMode | None = None

        #: Set to run code inside transferFrom(), e.g. to attempt reentrancy
        self.transfer_hook: TransferHook | None = None

    def __repr__(self) -> str:
        return f"<SimulatedERC20 {self.symbol} at {self.address}>"

    @property
    def address(self) -> HexAddress:
        return self._address

    def total_supply(self) -> int:
        return self.chain.total_supply[self.address]

    def balance_of(self, owner: HexAddress) -> int:
        return self.chain.balances[self.address][owner]

    def allowance(self, owner: HexAddress, spender: HexAddress) -> int:
        return self.chain.allowances[self.address][(owner, spender)]

    def mint(self, to: HexAddress, amount: int):
        assert type(amount) == int, f"Got {type(amount)}"
        self.chain.balances[self.address][to] += amount
        self.chain.total_supply[self.address] += amount

    def burn(self, owner: HexAddress, amount: int):
        if self.balance_of(owner) < amount:
            raise SimulatedRevert("ERC20: burn amount exceeds balance")
        self.chain.balances[self.address][owner] -= amount
        self.chain.total_supply[self.address] -= amount

    def transfer(self, sender: HexAddress, to: HexAddress, amount: int) -> bool:
        self._move(sender, to, amount)
        return True

    def transfer_from(self, sender: HexAddress, owner: HexAddress, to: HexAddress, amount: int) -> bool:
        if self.failure_mode == TokenFailureMode.revert_transfer_from:
            raise SimulatedRevert("ERC20: transfer reverted")
        if self.failure_mode == TokenFailureMode.false_transfer_from:
            return False

        if self.transfer_hook:
            self.transfer_hook(sender, owner, to, amount)

        allowances = self.chain.allowances[self.address]
        allowed = allowances[(owner, sender)]
        if allowed < amount:
            raise SimulatedRevert("ERC20: insufficient allowance")
        if allowed != MAX_UINT256:
            allowances[(owner, sender)] = allowed - amount
        self._move(owner, to, amount)
        return True

    def approve(self, sender: HexAddress, spender: HexAddress, amount: int) -> bool:
        if self.failure_mode == TokenFailureMode.revert_approve:
            raise SimulatedRevert("ERC20: approve reverted")
        if self.failure_mode == TokenFailureMode.false_approve:
            return False
        if spender == ZERO_ADDRESS:
            raise SimulatedRevert("ERC20: approve to the zero address")
        self.chain.allowances[self.address][(sender, spender)] = amount
        return True

    def _move(self, from_: HexAddress, to: HexAddress, amount: int):
        balances = self.chain.balances[self.address]
        if balances[from_] < amount:
            raise SimulatedRevert("ERC20: transfer amount exceeds balance")
        balances[from_] -= amount
        balances[to] += amount


class SimulatedEnzymeVault(EnzymeVaultLike):
    """Minimal Enzyme comptroller.

    - The comptroller address is the spender investors approve

    - Assets are held at the share token address, like Enzyme `VaultProxy`

    - Share price is the denomination asset balance divided by the share supply,
      other held assets are not valued
    """

    def __init__(
        self,
        chain: SimulatedChain,
        address: HexAddress,
        denomination_token: SimulatedERC20,
        shares_token: SimulatedERC20,
    ):
        self.chain = chain
        self._address = address
        self.denomination_token = denomination_token
        self.shares_token = shares_token

        #: Assets paid out on in-kind redemption
        self.tracked_assets: list[HexAddress] = [denomination_token.address]

        #: Every call made to this comptroller, for assertions in tests
        self.calls: list[tuple] = []

    def __repr__(self) -> str:
        return f"<SimulatedEnzymeVault {self.shares_token.symbol} comptroller={self.address}>"

    @property
    def address(self) -> HexAddress:
        return self._address

    @property
    def vault_address(self) -> HexAddress:
        """VaultProxy address holding the assets."""
        return self.shares_token.address

    def get_gross_asset_value(self) -> int:
        return self.denomination_token.balance_of(self.vault_address)

    def add_tracked_asset(self, token: SimulatedERC20):
        if token.address not in self.tracked_assets:
            self.tracked_assets.append(token.address)

    def buy_shares_on_behalf(
        self,
        sender: HexAddress,
        buyer: HexAddress,
        investment_amount: int,
        min_shares_quantity: int,
    ) -> int:
        self.calls.append(("buySharesOnBehalf", sender, buyer, investment_amount, min_shares_quantity))

        supply = self.shares_token.total_supply()
        gav = self.get_gross_asset_value()
        if supply == 0 or gav == 0:
            shares = investment_amount * 10 ** (SHARES_DECIMALS - self.denomination_token.decimals)
        else:
            shares = investment_amount * supply // gav

        if shares < min_shares_quantity:
            raise SimulatedRevert("__buyShares: Shares received < _minSharesQuantity")

        if not self.denomination_token.transfer_from(self.address, sender, self.vault_address, investment_amount):
            raise SimulatedRevert("__buyShares: transferFrom failed")

        self.shares_token.mint(buyer, shares)
        return shares

    def redeem_shares_in_kind(
        self,
        sender: HexAddress,
        recipient: HexAddress,
        shares_quantity: int,
        additional_assets: Sequence[HexAddress],
        assets_to_skip: Sequence[HexAddress],
    ) -> tuple[list[HexAddress], list[int]]:
        self.calls.append(("redeemSharesInKind", sender, recipient, shares_quantity, list(additional_assets), list(assets_to_skip)))

        if shares_quantity == 0:
            raise SimulatedRevert("__redeemSharesSetup: No shares to redeem")
        if self.shares_token.balance_of(sender) < shares_quantity:
            raise SimulatedRevert("__redeemSharesSetup: Insufficient shares")

        supply = self.shares_token.total_supply()
        payout_assets = [a for a in self.tracked_assets + list(additional_assets) if a not in assets_to_skip]
        payout_amounts = [self.chain.tokens[a].balance_of(self.vault_address) * shares_quantity // supply for a in payout_assets]

        self.shares_token.burn(sender, shares_quantity)
        for asset, amount in zip(payout_assets, payout_amounts):
            self.chain.tokens[asset].transfer(self.vault_address, recipient, amount)

        return payout_assets, payout_amounts
