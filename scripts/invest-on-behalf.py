"""An example script how to invest into an Enzyme vault through the custodian on Anvil.

Run against an Anvil mainnet fork where the investor has approved the custodian:

.. code-block:: shell

    export JSON_RPC_URL=http://localhost:8545
    export CUSTODIAN=0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266
    export INVESTOR=0x70997970C51812dc3A010C7d01b50e0d17dc79C8
    export VAULT=0x...  # Comptroller
    export ASSET=0x...  # Denomination asset
    export AMOUNT=1000000
    python scripts/invest-on-behalf.py
"""
import logging
import os

from web3 import HTTPProvider, Web3

from eth_custody.address import AssetHandle, VaultHandle
from eth_custody.custodian import EnzymeCustodian
from eth_custody.web3_backend import AnvilEnvironment

logging.basicConfig(level=logging.INFO)

json_rpc_url = os.environ["JSON_RPC_URL"]
custodian_address = os.environ["CUSTODIAN"]
investor = os.environ["INVESTOR"]
vault = VaultHandle(os.environ["VAULT"])
asset = AssetHandle(os.environ["ASSET"])
amount = int(os.environ["AMOUNT"])

web3 = Web3(HTTPProvider(json_rpc_url))
print(f"Connected to chain {web3.eth.chain_id}, block {web3.eth.block_number:,}")

custodian = EnzymeCustodian(custodian_address, AnvilEnvironment(web3), owner=custodian_address)
result = custodian.invest_in_enzyme_vault(vault, asset, amount, caller=investor)

print(f"Investor {investor} received {result.shares_issued} raw shares")
