"""In-memory chain used by the custody tests."""

import pytest
from eth_typing import HexAddress

from eth_custody.simulated import MAX_UINT256, SimulatedChain, SimulatedEnzymeVault, SimulatedERC20, SimulatedRevert


def test_snapshot_revert(chain: SimulatedChain, usdc: SimulatedERC20, investor: HexAddress, custodian_address: HexAddress):
    snapshot_id = chain.snapshot()
    usdc.transfer(investor, custodian_address, 100 * 10**6)
    usdc.approve(investor, custodian_address, 5)
    assert usdc.balance_of(custodian_address) == 100 * 10**6

    assert chain.revert(snapshot_id)
    assert usdc.balance_of(custodian_address) == 0
    assert usdc.balance_of(investor) == 1000 * 10**6
    assert usdc.allowance(investor, custodian_address) == 0

    # Snapshot is consumed
    assert not chain.revert(snapshot_id)


def test_atomic_commits_on_success(chain: SimulatedChain, usdc: SimulatedERC20, investor: HexAddress, custodian_address: HexAddress):
    with chain.atomic():
        usdc.transfer(investor, custodian_address, 1)
    assert usdc.balance_of(custodian_address) == 1


def test_atomic_rolls_back_on_error(chain: SimulatedChain, usdc: SimulatedERC20, investor: HexAddress, custodian_address: HexAddress):
    with pytest.raises(SimulatedRevert):
        with chain.atomic():
            usdc.transfer(investor, custodian_address, 1)
            usdc.transfer(investor, custodian_address, 2000 * 10**6)

    assert usdc.balance_of(custodian_address) == 0
    assert usdc.balance_of(investor) == 1000 * 10**6


def test_transfer_from_allowance(usdc: SimulatedERC20, investor: HexAddress, custodian_address: HexAddress):
    with pytest.raises(SimulatedRevert, match="insufficient allowance"):
        usdc.transfer_from(custodian_address, investor, custodian_address, 1)

    usdc.approve(investor, custodian_address, MAX_UINT256)
    assert usdc.transfer_from(custodian_address, investor, custodian_address, 10)
    assert usdc.allowance(investor, custodian_address) == MAX_UINT256


def test_vault_share_price(vault: SimulatedEnzymeVault, usdc: SimulatedERC20, investor: HexAddress):
    """Later investors buy at the current share price."""
    usdc.approve(investor, vault.address, 1000 * 10**6)
    assert vault.buy_shares_on_behalf(investor, investor, 100 * 10**6, 1) == 100 * 10**18

    # Vault doubles its money
    usdc.mint(vault.vault_address, 100 * 10**6)
    assert vault.buy_shares_on_behalf(investor, investor, 100 * 10**6, 1) == 50 * 10**18


def test_vault_redeem_skips_assets(
    vault: SimulatedEnzymeVault,
    usdc: SimulatedERC20,
    weth: SimulatedERC20,
    investor: HexAddress,
):
    usdc.approve(investor, vault.address, 100 * 10**6)
    shares = vault.buy_shares_on_behalf(investor, investor, 100 * 10**6, 1)
    weth.mint(vault.vault_address, 10**18)

    assets, amounts = vault.redeem_shares_in_kind(investor, investor, shares // 2, [weth.address], [usdc.address])
    assert assets == [weth.address]
    assert amounts == [10**18 // 2]
