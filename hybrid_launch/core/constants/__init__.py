ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = "0x" + "00" * 32

# Algebra / Uniswap v3 TickMath bounds
MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# Algebra default tick spacing (pre-init pools report 0)
TICK_SPACING = 60

BPS_TOTAL = 10_000
MAX_UINT256 = 2**256 - 1

STAGES = ("pre-launch", "mints", "trading", "full")
