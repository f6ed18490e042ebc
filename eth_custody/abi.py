"""Minimal contract ABIs for the custody flows.

Only the functions the flows call are included.
"""

ERC20_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "address", "name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "from", "type": "address"},
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "transferFrom",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

#: Enzyme `ComptrollerLib` investor functions
ENZYME_COMPTROLLER_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "_buyer", "type": "address"},
            {"internalType": "uint256", "name": "_investmentAmount", "type": "uint256"},
            {"internalType": "uint256", "name": "_minSharesQuantity", "type": "uint256"},
        ],
        "name": "buySharesOnBehalf",
        "outputs": [{"internalType": "uint256", "name": "sharesReceived_", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "_recipient", "type": "address"},
            {"internalType": "uint256", "name": "_sharesQuantity", "type": "uint256"},
            {"internalType": "address[]", "name": "_additionalAssets", "type": "address[]"},
            {"internalType": "address[]", "name": "_assetsToSkip", "type": "address[]"},
        ],
        "name": "redeemSharesInKind",
        "outputs": [
            {"internalType": "address[]", "name": "payoutAssets_", "type": "address[]"},
            {"internalType": "uint256[]", "name": "payoutAmounts_", "type": "uint256[]"},
        ],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]
