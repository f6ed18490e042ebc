"""eth_custody package root.

Pass-through custody for investing into and redeeming from Enzyme vaults
on behalf of an investor.

- Deposit flow: :py:meth:`eth_custody.custodian.EnzymeCustodian.invest_in_enzyme_vault`

- Redemption flow: :py:meth:`eth_custody.custodian.EnzymeCustodian.redeem_from_enzyme_fund_in_kind`

"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"web3-ethereum-custody needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
