"""
Core math modules для расчётов

Целочисленные примитивы с явным округлением и чистые функции расчёта fees.
"""

# Fixed point
from src.core.math.fixed_point import (
    apply_bps_up,
    mul_div_down,
    mul_div_up,
    saturating_sub,
)

# Fees
from src.core.math.fees import (
    EntranceFeeSplit,
    WithdrawalFees,
    calculate_entrance_fees,
    calculate_management_fee_shares,
    calculate_performance,
    calculate_withdrawal_fees,
    split_fees_to_assets,
)

__all__ = [
    # Fixed point
    "apply_bps_up",
    "mul_div_down",
    "mul_div_up",
    "saturating_sub",
    # Fees: types
    "EntranceFeeSplit",
    "WithdrawalFees",
    # Fees: functions
    "calculate_entrance_fees",
    "calculate_management_fee_shares",
    "calculate_performance",
    "calculate_withdrawal_fees",
    "split_fees_to_assets",
]
