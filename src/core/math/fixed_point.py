"""
Fixed Point — целочисленная арифметика с явным округлением

Модуль обеспечивает детерминированную целочисленную арифметику для всех
расчётов shares / liquidity units / asset units:
- mul_div с округлением вниз или вверх
- применение ставки в bps с округлением вверх (в пользу получателя fee)
- насыщающее вычитание

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Float никогда не участвует в расчётах
2. Каждое деление явно указывает направление округления
3. Деление на ноль запрещено (ValueError), fallback не применяется
"""

from src.core.domain.units import BPS_DENOMINATOR


# =============================================================================
# MUL-DIV
# =============================================================================


def mul_div_down(x: int, y: int, denominator: int) -> int:
    """
    floor(x * y / denominator)

    Raises:
        ValueError: Если denominator == 0 или аргументы отрицательные

    Examples:
        >>> mul_div_down(10, 3, 4)
        7
    """
    _validate_operands(x, y, denominator)
    return (x * y) // denominator


def mul_div_up(x: int, y: int, denominator: int) -> int:
    """
    ceil(x * y / denominator)

    Examples:
        >>> mul_div_up(10, 3, 4)
        8
        >>> mul_div_up(0, 3, 4)
        0
    """
    _validate_operands(x, y, denominator)
    return -(-(x * y) // denominator)


def _validate_operands(x: int, y: int, denominator: int) -> None:
    if denominator == 0:
        raise ValueError("Division by zero in mul_div")
    if x < 0 or y < 0 or denominator < 0:
        raise ValueError(f"mul_div operands must be non-negative: {x}, {y}, {denominator}")


# =============================================================================
# BPS
# =============================================================================


def apply_bps_up(amount: int, bps: int) -> int:
    """
    amount * bps / 10000, округление вверх.

    Examples:
        >>> apply_bps_up(1000, 100)
        10
        >>> apply_bps_up(1001, 100)
        11
    """
    return mul_div_up(amount, bps, BPS_DENOMINATOR)


# =============================================================================
# UTILITIES
# =============================================================================


def saturating_sub(a: int, b: int) -> int:
    """max(a - b, 0)"""
    return a - b if a > b else 0
