"""Address handles and custodian ownership."""

import pytest
from eth_account import Account
from eth_typing import HexAddress

from eth_custody.address import ZERO_ADDRESS, AssetHandle, VaultHandle, to_address
from eth_custody.custodian import EnzymeCustodian
from eth_custody.errors import InvalidArgument, NotAuthorised

USDC_MAINNET = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def test_handle_checksums_address():
    handle = AssetHandle(USDC_MAINNET.lower())
    assert handle.address == USDC_MAINNET
    assert str(handle) == USDC_MAINNET


def test_handle_types_are_distinct():
    """Same address, different kind of reference."""
    assert AssetHandle(USDC_MAINNET) == AssetHandle(USDC_MAINNET)
    assert AssetHandle(USDC_MAINNET) != VaultHandle(USDC_MAINNET)
    assert len({AssetHandle(USDC_MAINNET), AssetHandle(USDC_MAINNET.lower())}) == 1


@pytest.mark.parametrize(
    "value",
    [
        ZERO_ADDRESS,
        "0x1234",
        "not an address",
        None,
        # Broken checksum
        "0xa0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    ],
)
def test_handle_invalid(value):
    with pytest.raises(InvalidArgument):
        VaultHandle(value)


def test_to_address():
    assert to_address(USDC_MAINNET.lower()) == USDC_MAINNET
    assert to_address(USDC_MAINNET.upper().replace("0X", "0x")) == USDC_MAINNET
    with pytest.raises(InvalidArgument):
        to_address(12345)


def test_to_address_bad_checksum():
    """A typo in a checksummed address is not silently re-checksummed."""
    typo = USDC_MAINNET.replace("eB48", "eb48")
    with pytest.raises(InvalidArgument, match="checksum"):
        to_address(typo)
    with pytest.raises(InvalidArgument, match="checksum"):
        AssetHandle(typo)


def test_transfer_ownership(custodian: EnzymeCustodian, deployer: HexAddress, investor: HexAddress):
    new_owner = Account.create().address

    with pytest.raises(NotAuthorised):
        custodian.transfer_ownership(new_owner, caller=investor)

    with pytest.raises(InvalidArgument):
        custodian.transfer_ownership(ZERO_ADDRESS, caller=deployer)

    custodian.transfer_ownership(new_owner, caller=deployer)
    assert custodian.owner == new_owner

    with pytest.raises(NotAuthorised):
        custodian.only_owner(deployer)
