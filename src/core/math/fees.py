"""
Fee Calculator — management / entrance / exit / performance fees

Чистые функции без состояния:
- calculate_entrance_fees: split minted shares на user / broker / protocol
- calculate_withdrawal_fees: exit + performance fees в liquidity units
- calculate_management_fee_shares: годовая ставка → dilution shares
- split_fees_to_assets: перевод fee из liquidity units в asset units

Округление всегда в пользу получателя fee (вверх), кроме оценки realized
price (вниз), чтобы performance fee не начислялась на эффекты округления.
"""

from dataclasses import dataclass
from typing import Tuple

from src.core.domain.broker_account import BrokerAccount, FeeSchedule
from src.core.domain.units import BPS_DENOMINATOR, SECONDS_PER_YEAR, WAD
from src.core.math.fixed_point import apply_bps_up, mul_div_down, mul_div_up, saturating_sub


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class EntranceFeeSplit:
    """Split minted shares при депозите."""

    user_shares: int
    broker_fee_shares: int
    protocol_fee_shares: int

    @property
    def total(self) -> int:
        return self.user_shares + self.broker_fee_shares + self.protocol_fee_shares


@dataclass(frozen=True)
class WithdrawalFees:
    """Fees при выводе (liquidity units), с разбивкой на exit и performance."""

    broker_fee: int
    protocol_fee: int

    broker_exit_fee: int
    protocol_exit_fee: int
    broker_performance_fee: int
    protocol_performance_fee: int

    performance: int  # liquidity units сверх средней цены входа


# =============================================================================
# ENTRANCE
# =============================================================================


def calculate_entrance_fees(shares_out: int, fees: FeeSchedule) -> EntranceFeeSplit:
    """
    Entrance fee split.

    fee = shares_out * fee_bps / 10000 (вверх) для broker и protocol,
    получателю остаётся shares_out - broker - protocol.

    Args:
        shares_out: Shares, выпущенные Deposit Module
        fees: Fee schedule счёта

    Returns:
        EntranceFeeSplit; сумма частей всегда равна shares_out

    Examples:
        1000 shares, 100 + 50 bps → 985 / 10 / 5
    """
    if shares_out < 0:
        raise ValueError(f"shares_out must be non-negative, got {shares_out}")

    broker_fee = apply_bps_up(shares_out, fees.broker_entrance_fee_bps)
    protocol_fee = apply_bps_up(shares_out, fees.protocol_entrance_fee_bps)

    # При малых shares округление вверх может превысить shares_out
    protocol_fee = min(protocol_fee, shares_out)
    broker_fee = min(broker_fee, shares_out - protocol_fee)

    return EntranceFeeSplit(
        user_shares=shares_out - broker_fee - protocol_fee,
        broker_fee_shares=broker_fee,
        protocol_fee_shares=protocol_fee,
    )


# =============================================================================
# WITHDRAWAL
# =============================================================================


def calculate_performance(
    account: BrokerAccount, shares_burnt: int, liquidity_redeemed: int
) -> int:
    """
    Performance в liquidity units относительно средней цены входа.

    avg = ceil(cumulative_units * WAD / cumulative_shares)
    realized = floor(liquidity_redeemed * WAD / shares_burnt)
    performance = floor(max(0, realized - avg) * shares_burnt / WAD)

    Returns:
        0 если нет истории mint в текущем цикле или цена не выросла
    """
    if shares_burnt == 0 or account.cumulative_shares_minted == 0:
        return 0

    average_entry_price = account.average_entry_price_wad()
    realized_price = mul_div_down(liquidity_redeemed, WAD, shares_burnt)

    return mul_div_down(saturating_sub(realized_price, average_entry_price), shares_burnt, WAD)


def calculate_withdrawal_fees(
    account: BrokerAccount, shares_burnt: int, liquidity_redeemed: int
) -> WithdrawalFees:
    """
    Exit + performance fees при выводе.

    1. Если обе performance ставки нулевые, performance не считается
    2-4. performance (см. calculate_performance), fee = performance * bps / 10000 (вверх)
    5. Exit fee = liquidity_redeemed * bps / 10000 (вверх), независимо от performance

    Args:
        account: Запись счёта ДО применения burn (счётчики текущего цикла)
        shares_burnt: Сжигаемые shares
        liquidity_redeemed: Liquidity units, полученные от Deposit Module

    Returns:
        WithdrawalFees в liquidity units
    """
    if shares_burnt < 0 or liquidity_redeemed < 0:
        raise ValueError("shares_burnt and liquidity_redeemed must be non-negative")

    fees = account.fees

    broker_perf = 0
    protocol_perf = 0
    performance = 0
    if fees.charges_performance:
        performance = calculate_performance(account, shares_burnt, liquidity_redeemed)
        if performance > 0:
            broker_perf = apply_bps_up(performance, fees.broker_performance_fee_bps)
            protocol_perf = apply_bps_up(performance, fees.protocol_performance_fee_bps)

    broker_exit = apply_bps_up(liquidity_redeemed, fees.broker_exit_fee_bps)
    protocol_exit = apply_bps_up(liquidity_redeemed, fees.protocol_exit_fee_bps)

    return WithdrawalFees(
        broker_fee=broker_exit + broker_perf,
        protocol_fee=protocol_exit + protocol_perf,
        broker_exit_fee=broker_exit,
        protocol_exit_fee=protocol_exit,
        broker_performance_fee=broker_perf,
        protocol_performance_fee=protocol_perf,
        performance=performance,
    )


def split_fees_to_assets(
    fees: WithdrawalFees, assets_out: int, liquidity_redeemed: int
) -> Tuple[int, int]:
    """
    Перевод fees из liquidity units в asset units (pro-rata, вверх).

    Protocol fee берётся первым; сумма fee никогда не превышает assets_out.

    Returns:
        (broker_fee_assets, protocol_fee_assets)
    """
    if liquidity_redeemed == 0:
        return 0, 0

    protocol_assets = min(
        mul_div_up(fees.protocol_fee, assets_out, liquidity_redeemed), assets_out
    )
    broker_assets = min(
        mul_div_up(fees.broker_fee, assets_out, liquidity_redeemed),
        assets_out - protocol_assets,
    )
    return broker_assets, protocol_assets


# =============================================================================
# MANAGEMENT
# =============================================================================


def calculate_management_fee_shares(
    total_supply: int, rate_bps: int, elapsed_seconds: int
) -> int:
    """
    Management fee shares за прошедший период.

    fee_shares = ceil(total_supply * rate_bps * elapsed / (10000 * SECONDS_PER_YEAR))

    Args:
        total_supply: Текущий supply shares внутреннего vault
        rate_bps: Годовая ставка management fee (bps)
        elapsed_seconds: Секунд с последнего начисления

    Returns:
        Количество shares для dilution (0 если нечего начислять)

    Examples:
        >>> calculate_management_fee_shares(1_000_000, 200, 31_536_000)
        20000
    """
    if total_supply < 0 or rate_bps < 0 or elapsed_seconds < 0:
        raise ValueError("Management fee inputs must be non-negative")
    if total_supply == 0 or rate_bps == 0 or elapsed_seconds == 0:
        return 0
    return mul_div_up(
        total_supply, rate_bps * elapsed_seconds, BPS_DENOMINATOR * SECONDS_PER_YEAR
    )
