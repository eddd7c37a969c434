from hybrid_launch.core.utils.units import to_erc20_raw, to_wei_eth

# ─────────────────────────────────────────────────────────────────────────────
# MINTS
# ─────────────────────────────────────────────────────────────────────────────

# Reference trade size for the post-launch sniper-tax check
SNIPER_TAX_QUOTE_AMOUNT = to_wei_eth(1)

# ─────────────────────────────────────────────────────────────────────────────
# TRADING
# ─────────────────────────────────────────────────────────────────────────────

TRADER_COUNT = 3
TRADE_ETH = to_wei_eth(1)
# Extra seconds past the sniper-tax window before trading starts
SNIPER_TAX_WARP_PADDING = 60

# ─────────────────────────────────────────────────────────────────────────────
# FULL
# ─────────────────────────────────────────────────────────────────────────────

NARROW_RANGES: tuple[tuple[int, int], ...] = (
    (-60000, 60000),
    (-6000, 6000),
)
NARROW_TOKEN_AMOUNT = to_erc20_raw(5000, 18)
NARROW_WETH_AMOUNT = to_wei_eth(5)
# Gas money for the impersonated token contract
IMPERSONATED_GAS_BALANCE = to_wei_eth(1)

STAKER_COUNT = 2
FEE_COOLDOWN_SECONDS = 3601
