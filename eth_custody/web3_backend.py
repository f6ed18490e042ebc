"""Run the custody flows against contracts on a JSON-RPC node.

- :py:class:`Web3FungibleAsset` wraps an ERC-20 contract

- :py:class:`Web3EnzymeVault` wraps an Enzyme `ComptrollerLib` contract

- :py:class:`AnvilEnvironment` gives the all-or-nothing scope with
  `evm_snapshot` and `evm_revert`, so it only works on Anvil (e.g. a mainnet fork)

The custodian account must be able to send transactions through the node,
e.g. an Anvil test account or an impersonated account.

Example:

.. code-block:: python

    web3 = Web3(HTTPProvider(anvil.json_rpc_url))
    environment = AnvilEnvironment(web3)
    custodian = EnzymeCustodian(web3.eth.accounts[0], environment, owner=web3.eth.accounts[0])
    custodian.invest_in_enzyme_vault(VaultHandle(comptroller), AssetHandle(usdc), 500 * 10**6, caller=investor)
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction
from web3.exceptions import BadFunctionCallOutput

from eth_custody.abi import ENZYME_COMPTROLLER_ABI, ERC20_ABI
from eth_custody.address import AssetHandle, VaultHandle
from eth_custody.config import ANVIL_REVERT_METHOD, ANVIL_SNAPSHOT_METHOD, DEFAULT_GAS_LIMIT
from eth_custody.errors import InvalidArgument
from eth_custody.interfaces import EnzymeVaultLike, ExecutionEnvironment, FungibleAsset

logger = logging.getLogger(__name__)


class RPCRequestError(Exception):
    """Anvil custom RPC method failed."""


class TransactionReverted(Exception):
    """A broadcasted transaction was mined with status 0."""


def make_anvil_custom_rpc_request(web3: Web3, method: str, args: list | None = None) -> Any:
    """Make a request to a special named EVM JSON-RPC endpoint.

    :raise RPCRequestError:
        In the case RPC method errors
    """
    response = web3.provider.make_request(method, tuple(args or ()))
    if "result" in response:
        return response["result"]
    raise RPCRequestError(response["error"]["message"])


def transact_with_preflight(func: ContractFunction, sender: HexAddress, gas: int = DEFAULT_GAS_LIMIT) -> Any:
    """Simulate a contract call to read its return value, then broadcast it.

    - Reverts surface from the simulation as :py:class:`web3.exceptions.ContractLogicError`

    - A mined transaction with failed status raises :py:class:`TransactionReverted`

    :return:
        The return value of the simulated call
    """
    result = func.call({"from": sender})
    tx_hash = func.transact({"from": sender, "gas": gas})
    receipt = func.w3.eth.wait_for_transaction_receipt(tx_hash)
    if receipt["status"] == 0:
        raise TransactionReverted(f"Transaction {tx_hash.hex()} calling {func.fn_name}() reverted")
    return result


class Web3FungibleAsset(FungibleAsset):
    """ERC-20 token on chain."""

    def __init__(self, contract: Contract, gas: int = DEFAULT_GAS_LIMIT):
        self.contract = contract
        self.gas = gas

    def __repr__(self) -> str:
        return f"<Web3FungibleAsset {self.address}>"

    @property
    def address(self) -> HexAddress:
        return self.contract.address

    def allowance(self, owner: HexAddress, spender: HexAddress) -> int:
        return self.contract.functions.allowance(owner, spender).call()

    def balance_of(self, owner: HexAddress) -> int:
        return self.contract.functions.balanceOf(owner).call()

    def transfer_from(self, sender: HexAddress, owner: HexAddress, to: HexAddress, amount: int) -> bool:
        return self._transact_bool(self.contract.functions.transferFrom(owner, to, amount), sender)

    def approve(self, sender: HexAddress, spender: HexAddress, amount: int) -> bool:
        return self._transact_bool(self.contract.functions.approve(spender, amount), sender)

    def _transact_bool(self, func: ContractFunction, sender: HexAddress) -> bool:
        try:
            return bool(transact_with_preflight(func, sender, self.gas))
        except BadFunctionCallOutput:
            # USDT and other legacy tokens return nothing on success
            logger.debug("%s() on %s returned no data, treating as success", func.fn_name, self.address)
            tx_hash = func.transact({"from": sender, "gas": self.gas})
            receipt = func.w3.eth.wait_for_transaction_receipt(tx_hash)
            return receipt["status"] == 1


class Web3EnzymeVault(EnzymeVaultLike):
    """Enzyme comptroller on chain.

    See `ComptrollerLib.sol` in Enzyme Protocol.
    """

    def __init__(self, comptroller: Contract, gas: int = DEFAULT_GAS_LIMIT):
        self.comptroller = comptroller
        self.gas = gas

    def __repr__(self) -> str:
        return f"<Web3EnzymeVault comptroller={self.address}>"

    @property
    def address(self) -> HexAddress:
        return self.comptroller.address

    def buy_shares_on_behalf(
        self,
        sender: HexAddress,
        buyer: HexAddress,
        investment_amount: int,
        min_shares_quantity: int,
    ) -> int:
        func = self.comptroller.functions.buySharesOnBehalf(buyer, investment_amount, min_shares_quantity)
        return transact_with_preflight(func, sender, self.gas)

    def redeem_shares_in_kind(
        self,
        sender: HexAddress,
        recipient: HexAddress,
        shares_quantity: int,
        additional_assets: Sequence[HexAddress],
        assets_to_skip: Sequence[HexAddress],
    ) -> tuple[list[HexAddress], list[int]]:
        func = self.comptroller.functions.redeemSharesInKind(
            recipient,
            shares_quantity,
            list(additional_assets),
            list(assets_to_skip),
        )
        assets, amounts = transact_with_preflight(func, sender, self.gas)
        return list(assets), list(amounts)


class AnvilEnvironment(ExecutionEnvironment):
    """Run flows on an Anvil node, rolling back on failure.

    Each :py:meth:`atomic` block takes an `evm_snapshot` and calls
    `evm_revert` if the block raises. If Anvil refuses the revert,
    :py:class:`RPCRequestError` is raised instead of the original error.
    """

    def __init__(self, web3: Web3, gas: int = DEFAULT_GAS_LIMIT):
        self.web3 = web3
        self.gas = gas

    def resolve_asset(self, handle: AssetHandle) -> Web3FungibleAsset:
        self._check_deployed(handle.address)
        contract = self.web3.eth.contract(address=handle.address, abi=ERC20_ABI)
        return Web3FungibleAsset(contract, self.gas)

    def resolve_vault(self, handle: VaultHandle) -> Web3EnzymeVault:
        self._check_deployed(handle.address)
        contract = self.web3.eth.contract(address=handle.address, abi=ENZYME_COMPTROLLER_ABI)
        return Web3EnzymeVault(contract, self.gas)

    def snapshot(self) -> int:
        return int(make_anvil_custom_rpc_request(self.web3, ANVIL_SNAPSHOT_METHOD), 16)

    def revert(self, snapshot_id: int) -> bool:
        return make_anvil_custom_rpc_request(self.web3, ANVIL_REVERT_METHOD, [snapshot_id])

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot_id = self.snapshot()
        try:
            yield
        except Exception as e:
            logger.warning("Reverting Anvil to snapshot %d: %s", snapshot_id, e)
            if not self.revert(snapshot_id):
                raise RPCRequestError(f"evm_revert to snapshot {snapshot_id} failed, node state is not rolled back") from e
            raise

    def _check_deployed(self, address: HexAddress):
        if not self.web3.eth.get_code(address):
            raise InvalidArgument(f"No contract deployed at {address}")
