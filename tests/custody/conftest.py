"""Custody flow fixtures.

- Everything runs on :py:class:`eth_custody.simulated.SimulatedChain`,
  no node needed

- The vault is denominated in a 6 decimals USDC
"""

import pytest
from eth_account import Account
from eth_typing import HexAddress

from eth_custody.address import AssetHandle, VaultHandle
from eth_custody.custodian import EnzymeCustodian
from eth_custody.simulated import SimulatedChain, SimulatedEnzymeVault, SimulatedERC20


@pytest.fixture()
def chain() -> SimulatedChain:
    return SimulatedChain()


@pytest.fixture()
def deployer() -> HexAddress:
    """Owner of the custodian."""
    return Account.create().address


@pytest.fixture()
def investor() -> HexAddress:
    return Account.create().address


@pytest.fixture()
def custodian_address() -> HexAddress:
    return Account.create().address


@pytest.fixture()
def usdc(chain: SimulatedChain, investor: HexAddress) -> SimulatedERC20:
    """USDC with 1000 USD for the investor."""
    token = chain.deploy_token("USD Coin", "USDC", decimals=6)
    token.mint(investor, 1000 * 10**6)
    return token


@pytest.fixture()
def weth(chain: SimulatedChain) -> SimulatedERC20:
    return chain.deploy_token("Wrapped Ether", "WETH", decimals=18)


@pytest.fixture()
def vault(chain: SimulatedChain, usdc: SimulatedERC20) -> SimulatedEnzymeVault:
    return chain.deploy_vault(usdc, "Example Fund", "EXF")


@pytest.fixture()
def custodian(chain: SimulatedChain, custodian_address: HexAddress, deployer: HexAddress) -> EnzymeCustodian:
    return EnzymeCustodian(custodian_address, chain, owner=deployer)


@pytest.fixture()
def vault_handle(vault: SimulatedEnzymeVault) -> VaultHandle:
    return VaultHandle(vault.address)


@pytest.fixture()
def usdc_handle(usdc: SimulatedERC20) -> AssetHandle:
    return AssetHandle(usdc.address)


@pytest.fixture()
def shares_handle(vault: SimulatedEnzymeVault) -> AssetHandle:
    return AssetHandle(vault.shares_token.address)
