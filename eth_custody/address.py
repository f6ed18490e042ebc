"""Type-distinct address handles.

Raw addresses are plain strings, so an asset address and a vault address are
easy to transpose. :py:class:`AssetHandle` and :py:class:`VaultHandle`
are separate types and the custodian refuses the wrong one.

Example:

.. code-block:: python

    usdc = AssetHandle("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
    vault = VaultHandle("0x...")
    custodian.invest_in_enzyme_vault(vault, usdc, 500 * 10**6, caller=investor)
"""

from dataclasses import dataclass

from eth_typing import HexAddress
from eth_utils import is_address, is_checksum_address, is_checksum_formatted_address, to_checksum_address

from eth_custody.errors import InvalidArgument

#: Ethereum 0x0000000000000000000000000000000000000000 address
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def to_address(value: HexAddress | str) -> HexAddress:
    """Normalise an address to EIP-55 checksummed form.

    :raise InvalidArgument:
        If the value is not a 20 bytes hex address or has a bad EIP-55 checksum
    """
    if not isinstance(value, str):
        raise InvalidArgument(f"Not an address: {value!r}")
    # Newer eth-utils no longer rejects a bad mixed-case checksum in is_address()
    if is_checksum_formatted_address(value) and not is_checksum_address(value):
        raise InvalidArgument(f"Bad EIP-55 checksum: {value}")
    if not is_address(value):
        raise InvalidArgument(f"Not an address: {value!r}")
    return HexAddress(to_checksum_address(value))


@dataclass(frozen=True)
class _Handle:
    address: HexAddress

    def __init__(self, address: HexAddress | str):
        checksummed = to_address(address)
        if checksummed == ZERO_ADDRESS:
            raise InvalidArgument(f"{self.__class__.__name__} cannot point to the zero address")
        object.__setattr__(self, "address", checksummed)

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True, init=False)
class AssetHandle(_Handle):
    """Reference to an ERC-20 token: a denomination asset or a vault share token."""


@dataclass(frozen=True, init=False)
class VaultHandle(_Handle):
    """Reference to an Enzyme vault comptroller."""
