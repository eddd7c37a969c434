# Minimal ABIs for the Algebra (concentrated-liquidity) protocol contracts and the
# events emitted by the launch contracts. Token and liquidity-manager ABIs come
# from the forge build artifacts.

# Periphery contracts not carried in launch-config.json (local fork only).
ALGEBRA_QUOTER = "0x02f22D58d161d1C291ABfe88764d84120f20F723"
ALGEBRA_AGGREGATOR = "0x37CA43556BB981ca6827b4A92369a28Eb61995E3"

WETH_ABI = [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [],
        "outputs": [],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"type": "bool"}],
    },
]

ALGEBRA_POOL_ABI = [
    {
        "name": "liquidity",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"type": "uint128"}],
    },
]

_MINT_PARAMS = {
    "name": "params",
    "type": "tuple",
    "components": [
        {"name": "token0", "type": "address"},
        {"name": "token1", "type": "address"},
        {"name": "deployer", "type": "address"},
        {"name": "tickLower", "type": "int24"},
        {"name": "tickUpper", "type": "int24"},
        {"name": "amount0Desired", "type": "uint256"},
        {"name": "amount1Desired", "type": "uint256"},
        {"name": "amount0Min", "type": "uint256"},
        {"name": "amount1Min", "type": "uint256"},
        {"name": "recipient", "type": "address"},
        {"name": "deadline", "type": "uint256"},
    ],
}

ERC721_TRANSFER_EVENT = {
    "name": "Transfer",
    "type": "event",
    "anonymous": False,
    "inputs": [
        {"name": "from", "type": "address", "indexed": True},
        {"name": "to", "type": "address", "indexed": True},
        {"name": "tokenId", "type": "uint256", "indexed": True},
    ],
}

POSITION_MANAGER_ABI = [
    {
        "name": "mint",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [_MINT_PARAMS],
        "outputs": [
            {"name": "tokenId", "type": "uint256"},
            {"name": "liquidity", "type": "uint128"},
            {"name": "amount0", "type": "uint256"},
            {"name": "amount1", "type": "uint256"},
        ],
    },
    ERC721_TRANSFER_EVENT,
]

_EXACT_INPUT_SINGLE_PARAMS = {
    "name": "params",
    "type": "tuple",
    "components": [
        {"name": "tokenIn", "type": "address"},
        {"name": "tokenOut", "type": "address"},
        {"name": "deployer", "type": "address"},
        {"name": "recipient", "type": "address"},
        {"name": "deadline", "type": "uint256"},
        {"name": "amountIn", "type": "uint256"},
        {"name": "amountOutMinimum", "type": "uint256"},
        {"name": "limitSqrtPrice", "type": "uint160"},
    ],
}

SWAP_ROUTER_ABI = [
    {
        "name": "exactInputSingle",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [_EXACT_INPUT_SINGLE_PARAMS],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
    {
        "name": "exactInputSingleSupportingFeeOnTransferTokens",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [_EXACT_INPUT_SINGLE_PARAMS],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
    {
        "name": "multicall",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [{"name": "data", "type": "bytes[]"}],
        "outputs": [{"name": "results", "type": "bytes[]"}],
    },
    {
        "name": "refundNativeToken",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [],
        "outputs": [],
    },
]

LAUNCH_EVENT_ABI = [
    {
        "name": "LaunchedWithLiquidity",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "pool", "type": "address", "indexed": True},
            {"name": "positionTokenId", "type": "uint256", "indexed": True},
            {"name": "launchTimestamp", "type": "uint256", "indexed": False},
        ],
    }
]
