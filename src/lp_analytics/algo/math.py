import math


def safe_divide(numerator: float, denominator: float) -> float:
    """Float division with IEEE semantics: x/0 is +-inf and 0/0 is nan."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def safe_sqrt(value: float) -> float:
    if math.isnan(value) or value < 0:
        return math.nan
    return math.sqrt(value)


def compute_ownership(liquidity_token_balance: float, total_supply: float) -> float:
    return safe_divide(liquidity_token_balance, total_supply)


def compute_token_amounts(
    ownership: float, reserve0: float, reserve1: float
) -> tuple[float, float]:
    return ownership * reserve0, ownership * reserve1


def compute_no_fee_amounts(
    amount0: float, amount1: float, token1_price_usd: float
) -> tuple[float, float]:
    """
    Token amounts the position would hold at the new price if the pool had
    charged no fees, keeping the constant product of the starting amounts.
    """
    sqrt_k = safe_sqrt(amount0 * amount1)
    sqrt_price = safe_sqrt(token1_price_usd)
    return sqrt_k * sqrt_price, safe_divide(sqrt_k, sqrt_price)


def value_usd(
    amount0: float, amount1: float, token0_price_usd: float, token1_price_usd: float
) -> float:
    return amount0 * token0_price_usd + amount1 * token1_price_usd


def percent_change(delta: float, base: float) -> float:
    return safe_divide(delta, base) * 100
