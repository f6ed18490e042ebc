"""Pass-through custodian for Enzyme vault deposits and in-kind redemptions.

- The investor approves the custodian to spend their tokens

- The custodian pulls the tokens, approves the vault comptroller for the exact
  same amount and calls the comptroller on behalf of the investor

- Shares and redeemed assets land directly with the investor,
  the custodian never keeps anything after the call

Each entry point runs inside a reentrancy guard and the all-or-nothing scope of its
:py:class:`eth_custody.interfaces.ExecutionEnvironment`, so any failure
leaves balances as they were before the call.

Example:

.. code-block:: python

    chain = SimulatedChain()
    custodian = EnzymeCustodian(custodian_address, chain, owner=deployer)

    usdc.approve(investor, custodian.address, 500 * 10**6)
    result = custodian.invest_in_enzyme_vault(
        VaultHandle(vault.address),
        AssetHandle(usdc.address),
        500 * 10**6,
        caller=investor,
    )
    print(f"Received {result.shares_issued} shares")
"""

import enum
import logging
from dataclasses import dataclass, field

from eth_typing import HexAddress

from eth_custody.address import AssetHandle, VaultHandle, to_address
from eth_custody.config import DEFAULT_MIN_SHARES_QUANTITY
from eth_custody.errors import (
    ApprovalFailed,
    InsufficientAllowance,
    InvalidArgument,
    ReentrantCall,
    TransferFailed,
    VaultCallFailed,
)
from eth_custody.guard import Ownable, ReentrancyGuard
from eth_custody.interfaces import EnzymeVaultLike, ExecutionEnvironment, FungibleAsset

logger = logging.getLogger(__name__)


class VaultOperation(enum.Enum):
    """What we ask the vault comptroller to do."""

    invest = "invest"
    redeem = "redeem"


@dataclass(slots=True, frozen=True)
class TransferIntent:
    """Tokens pulled from the owner into custody."""

    asset: HexAddress
    owner: HexAddress
    custodian: HexAddress
    amount: int

    def __post_init__(self):
        assert type(self.amount) == int, f"Got {type(self.amount)}: {self.amount}"
        # Redemption does not reject zero
        assert self.amount >= 0, f"Got {self.amount}"


@dataclass(slots=True, frozen=True)
class AllowanceGrant:
    """Spending rights the custodian gives to the vault comptroller.

    Always the exact forwarded amount.
    """

    asset: HexAddress
    grantor: HexAddress
    grantee: HexAddress
    amount: int


@dataclass(slots=True, frozen=True)
class VaultInstruction:
    """One call to the vault comptroller, issued exactly once per flow."""

    operation: VaultOperation

    #: The original caller who receives the shares or the redeemed assets
    beneficiary: HexAddress

    #: Investment amount or shares quantity
    quantity: int

    #: `minSharesQuantity` for invest, `additionalAssets` and `assetsToSkip` for redeem
    params: dict = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class InvestResult:
    """Outcome of :py:meth:`EnzymeCustodian.invest_in_enzyme_vault`."""

    intent: TransferIntent
    grant: AllowanceGrant
    instruction: VaultInstruction

    #: Raw amount of shares the vault issued to the caller
    shares_issued: int


@dataclass(slots=True, frozen=True)
class RedemptionResult:
    """Outcome of :py:meth:`EnzymeCustodian.redeem_from_enzyme_fund_in_kind`.

    The assets and amounts the vault released to the caller.
    """

    intent: TransferIntent
    grant: AllowanceGrant
    instruction: VaultInstruction
    assets: list[HexAddress]
    amounts: list[int]

    def get_released(self) -> dict[HexAddress, int]:
        """Released raw amounts keyed by token address."""
        return dict(zip(self.assets, self.amounts))


class EnzymeCustodian(Ownable):
    """Delegated custody for Enzyme vault investors.

    - Stateless between calls: no balances or pending operations are kept

    - Both entry points share one :py:class:`~eth_custody.guard.ReentrancyGuard`
    """

    def __init__(
        self,
        address: HexAddress | str,
        environment: ExecutionEnvironment,
        owner: HexAddress | str,
    ):
        """
        :param address:
            The account holding the tokens during the flow

        :param environment:
            Resolves handles and gives the atomic call scope

        :param owner:
            Administrative owner
        """
        super().__init__(owner)
        self.address = to_address(address)
        self.environment = environment
        self.guard = ReentrancyGuard()

    def __repr__(self) -> str:
        return f"<EnzymeCustodian {self.address} owner={self.owner}>"

    def invest_in_enzyme_vault(
        self,
        vault: VaultHandle,
        asset: AssetHandle,
        amount: int,
        caller: HexAddress | str,
        min_shares_quantity: int = DEFAULT_MIN_SHARES_QUANTITY,
    ) -> InvestResult:
        """Buy vault shares for the caller using the caller's tokens.

        The caller must have approved this custodian for at least `amount` of `asset`.

        :param vault:
            Vault comptroller

        :param asset:
            Denomination asset of the vault

        :param amount:
            Raw token amount to invest

        :param caller:
            Investor whose tokens are spent and who receives the shares

        :param min_shares_quantity:
            Slippage floor passed to the vault.
            The default of 1 accepts any non-zero share issuance.

        :raise InvalidArgument:
            Zero amount or a missing vault/asset handle

        :raise InsufficientAllowance:
            Caller has not approved enough tokens
        """
        with self.guard.enter("invest_in_enzyme_vault"), self.environment.atomic():
            if type(amount) != int or amount <= 0:
                raise InvalidArgument(f"Investment amount must be a positive integer, got {amount!r}")
            if not isinstance(vault, VaultHandle):
                raise InvalidArgument(f"Expected VaultHandle, got {vault!r}")
            if not isinstance(asset, AssetHandle):
                raise InvalidArgument(f"Expected AssetHandle, got {asset!r}")
            if type(min_shares_quantity) != int or min_shares_quantity < 1:
                raise InvalidArgument(f"min_shares_quantity must be at least 1, got {min_shares_quantity!r}")

            caller = to_address(caller)
            token = self.environment.resolve_asset(asset)
            comptroller = self.environment.resolve_vault(vault)

            intent, custody_before = self._pull(token, caller, amount)
            grant = self._approve(token, comptroller, amount)

            instruction = VaultInstruction(
                operation=VaultOperation.invest,
                beneficiary=caller,
                quantity=amount,
                params={"min_shares_quantity": min_shares_quantity},
            )
            logger.debug("Issuing %s", instruction)
            try:
                shares_issued = comptroller.buy_shares_on_behalf(
                    self.address,
                    caller,
                    amount,
                    min_shares_quantity,
                )
            except ReentrantCall:
                raise
            except Exception as e:
                raise VaultCallFailed(f"buySharesOnBehalf() failed on {comptroller.address}: {e}") from e

            self._check_custody_released(token, intent, custody_before)
            residual = token.allowance(self.address, comptroller.address)
            if residual:
                logger.warning("Vault %s left %d of %s allowance unused", comptroller.address, residual, token.address)

        logger.info(
            "Invested %d of %s into %s for %s, got %s shares",
            amount,
            asset.address,
            vault.address,
            caller,
            shares_issued,
        )
        return InvestResult(
            intent=intent,
            grant=grant,
            instruction=instruction,
            shares_issued=shares_issued,
        )

    def redeem_from_enzyme_fund_in_kind(
        self,
        vault: VaultHandle,
        share_asset: AssetHandle,
        share_quantity: int,
        caller: HexAddress | str,
    ) -> RedemptionResult:
        """Redeem the caller's shares for the underlying assets of the vault.

        - The caller must have approved this custodian for at least `share_quantity` shares

        - The vault is always called with empty `additionalAssets` and `assetsToSkip`,
          the caller cannot pick assets

        - Zero `share_quantity` is not rejected here, the vault decides

        :param vault:
            Vault comptroller

        :param share_asset:
            Share token of the vault

        :param share_quantity:
            Raw amount of shares to redeem

        :param caller:
            Share holder who receives the redeemed assets

        :return:
            Released assets and amounts as reported by the vault

        :raise InvalidArgument:
            Negative or non-integer quantity, or a missing vault/asset handle
        """
        with self.guard.enter("redeem_from_enzyme_fund_in_kind"), self.environment.atomic():
            # Zero is left for the vault to reject
            if type(share_quantity) != int or share_quantity < 0:
                raise InvalidArgument(f"Shares quantity must be a non-negative integer, got {share_quantity!r}")
            if not isinstance(vault, VaultHandle):
                raise InvalidArgument(f"Expected VaultHandle, got {vault!r}")
            if not isinstance(share_asset, AssetHandle):
                raise InvalidArgument(f"Expected AssetHandle, got {share_asset!r}")

            caller = to_address(caller)
            shares = self.environment.resolve_asset(share_asset)
            comptroller = self.environment.resolve_vault(vault)

            intent, custody_before = self._pull(shares, caller, share_quantity)
            grant = self._approve(shares, comptroller, share_quantity)

            instruction = VaultInstruction(
                operation=VaultOperation.redeem,
                beneficiary=caller,
                quantity=share_quantity,
                params={"additional_assets": [], "assets_to_skip": []},
            )
            logger.debug("Issuing %s", instruction)
            try:
                assets, amounts = comptroller.redeem_shares_in_kind(
                    self.address,
                    caller,
                    share_quantity,
                    [],
                    [],
                )
            except ReentrantCall:
                raise
            except Exception as e:
                raise VaultCallFailed(f"redeemSharesInKind() failed on {comptroller.address}: {e}") from e

            self._check_custody_released(shares, intent, custody_before)

        result = RedemptionResult(
            intent=intent,
            grant=grant,
            instruction=instruction,
            assets=list(assets),
            amounts=list(amounts),
        )
        logger.info(
            "Redeemed %d shares of %s in kind for %s, released %s",
            share_quantity,
            vault.address,
            caller,
            result.get_released(),
        )
        return result

    def _pull(self, token: FungibleAsset, owner: HexAddress, amount: int) -> tuple[TransferIntent, int]:
        """Check the allowance and move tokens from the owner into custody.

        :return:
            The intent and the custodian balance before the pull
        """
        allowance = token.allowance(owner, self.address)
        if allowance < amount:
            raise InsufficientAllowance(
                f"{owner} has approved {allowance} of {token.address} for {self.address}, needs {amount}",
                asset=token.address,
                owner=owner,
                observed=allowance,
                required=amount,
            )

        intent = TransferIntent(
            asset=token.address,
            owner=owner,
            custodian=self.address,
            amount=amount,
        )
        balance_before = token.balance_of(self.address)

        logger.debug("Pulling %s", intent)
        try:
            success = token.transfer_from(self.address, owner, self.address, amount)
        except ReentrantCall:
            raise
        except Exception as e:
            raise TransferFailed(f"transferFrom() reverted on {token.address}: {e}") from e

        if not success:
            raise TransferFailed(f"transferFrom() returned false on {token.address}")

        received = token.balance_of(self.address) - balance_before
        if received < amount:
            raise TransferFailed(f"Custodian received {received} of {token.address}, expected {amount}")

        return intent, balance_before

    def _approve(self, token: FungibleAsset, comptroller: EnzymeVaultLike, amount: int) -> AllowanceGrant:
        """Let the vault comptroller spend exactly the custodied amount."""
        grant = AllowanceGrant(
            asset=token.address,
            grantor=self.address,
            grantee=comptroller.address,
            amount=amount,
        )
        logger.debug("Granting %s", grant)
        try:
            success = token.approve(self.address, comptroller.address, amount)
        except ReentrantCall:
            raise
        except Exception as e:
            raise ApprovalFailed(f"approve() reverted on {token.address}: {e}") from e

        if not success:
            raise ApprovalFailed(f"approve() returned false on {token.address}")

        return grant

    def _check_custody_released(self, token: FungibleAsset, intent: TransferIntent, balance_before: int):
        """The vault must have taken everything we pulled."""
        balance = token.balance_of(self.address)
        if balance != balance_before:
            raise VaultCallFailed(f"Custodian left with {balance - balance_before} of {intent.asset} after the vault call")
