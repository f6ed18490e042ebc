"""Custody flow configuration data"""

#: Minimum shares quantity passed to `buySharesOnBehalf()` when the caller does not give one.
#:
#: Any non-zero share issuance satisfies this floor, so it offers no real slippage protection.
#: Pass ``min_shares_quantity`` explicitly to get one.
DEFAULT_MIN_SHARES_QUANTITY = 1

#: Gas limit used for each transaction broadcast by :py:mod:`eth_custody.web3_backend`
DEFAULT_GAS_LIMIT = 1_000_000

#: Anvil JSON-RPC method to take a state snapshot
ANVIL_SNAPSHOT_METHOD = "evm_snapshot"

#: Anvil JSON-RPC method to roll back to a state snapshot
ANVIL_REVERT_METHOD = "evm_revert"
