"""
Integer AMM math for PLANQ.

Constant-product formulas and Q64.96 sqrt-price helpers for
concentrated-liquidity pools. Everything rounds the way the on-chain
contracts do: outputs round down, required inputs round up.
"""

from core.constants import (
    FEE_DENOMINATOR,
    Q96,
    V2_FEE_DENOMINATOR,
    V2_FEE_NUMERATOR,
)


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)"""
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)"""
    if denominator == 0:
        raise ZeroDivisionError("mul_div_rounding_up by zero")
    return -((-a * b) // denominator)


def div_rounding_up(a: int, b: int) -> int:
    return -(-a // b)


# =============================================================================
# CONSTANT PRODUCT
# =============================================================================

def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """
    Uniswap V2 getAmountOut.

    amount_out = amount_in * 997 * reserve_out / (reserve_in * 1000 + amount_in * 997)
    """
    if amount_in <= 0:
        raise ValueError(f"amount_in must be positive: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(f"Reserves must be positive: ({reserve_in}, {reserve_out})")

    amount_in_with_fee = amount_in * V2_FEE_NUMERATOR
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * V2_FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """
    Uniswap V2 getAmountIn.

    amount_in = reserve_in * amount_out * 1000 / ((reserve_out - amount_out) * 997) + 1
    """
    if amount_out <= 0:
        raise ValueError(f"amount_out must be positive: {amount_out}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(f"Reserves must be positive: ({reserve_in}, {reserve_out})")
    if amount_out >= reserve_out:
        raise ValueError(
            f"Cannot drain full reserve: amount_out ({amount_out}) >= reserve_out ({reserve_out})"
        )

    numerator = reserve_in * amount_out * V2_FEE_DENOMINATOR
    denominator = (reserve_out - amount_out) * V2_FEE_NUMERATOR
    return numerator // denominator + 1


# =============================================================================
# CONCENTRATED LIQUIDITY (Q64.96)
# =============================================================================

def get_amount0_delta(
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """Amount of token0 between two sqrt prices for the given liquidity."""
    if sqrt_price_a_x96 > sqrt_price_b_x96:
        sqrt_price_a_x96, sqrt_price_b_x96 = sqrt_price_b_x96, sqrt_price_a_x96
    if sqrt_price_a_x96 <= 0:
        raise ValueError("sqrt price must be positive")

    numerator1 = liquidity << 96
    numerator2 = sqrt_price_b_x96 - sqrt_price_a_x96

    if round_up:
        return div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_price_b_x96),
            sqrt_price_a_x96,
        )
    return mul_div(numerator1, numerator2, sqrt_price_b_x96) // sqrt_price_a_x96


def get_amount1_delta(
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """Amount of token1 between two sqrt prices for the given liquidity."""
    if sqrt_price_a_x96 > sqrt_price_b_x96:
        sqrt_price_a_x96, sqrt_price_b_x96 = sqrt_price_b_x96, sqrt_price_a_x96

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_price_b_x96 - sqrt_price_a_x96, Q96)
    return mul_div(liquidity, sqrt_price_b_x96 - sqrt_price_a_x96, Q96)


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool,
) -> int:
    if amount == 0:
        return sqrt_price_x96
    if liquidity <= 0:
        raise ValueError("Liquidity must be positive")

    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96

    if add:
        # L * sqrtP / (L + amount * sqrtP)
        return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 + product)

    # L * sqrtP / (L - amount * sqrtP)
    if numerator1 <= product:
        raise ValueError("Amount exceeds available token0")
    return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 - product)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool,
) -> int:
    if liquidity <= 0:
        raise ValueError("Liquidity must be positive")

    if add:
        # sqrtP + amount / L
        return sqrt_price_x96 + mul_div(amount, Q96, liquidity)

    # sqrtP - amount / L
    quotient = mul_div_rounding_up(amount, Q96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise ValueError("Amount exceeds available token1")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool,
) -> int:
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int,
    liquidity: int,
    amount_out: int,
    zero_for_one: bool,
) -> int:
    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_out, False)
    return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_out, False)


def fee_on_amount(amount: int, fee_pips: int) -> int:
    """Fee charged on top of a net input: ceil(amount * fee / (1e6 - fee))."""
    return mul_div_rounding_up(amount, fee_pips, FEE_DENOMINATOR - fee_pips)


def amount_less_fee(amount: int, fee_pips: int) -> int:
    """Net input after fee: floor(amount * (1e6 - fee) / 1e6)."""
    return mul_div(amount, FEE_DENOMINATOR - fee_pips, FEE_DENOMINATOR)
