"""
Units — единицы учёта и базовые константы

Единственный допустимый источник констант для:
- basis points (bps, 10000 = 100%)
- sentinel MAX (вся сумма плательщика / безлимитный mint limit)
- fixed-point масштаб цены за share (WAD)
- адресов (нормализация, нулевой адрес)

ЗАПРЕЩЕНО смешивать shares, liquidity units и asset units без явного
конвертера из src.core.math.
"""

import re
from typing import Final


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# 10000 bps = 100%
BPS_DENOMINATOR: Final[int] = 10_000

# Sentinel "MAX" для amount/shares и безлимитного share_mint_limit
MAX_UINT: Final[int] = 2**256 - 1

# Fixed-point масштаб для цен liquidity units за share
WAD: Final[int] = 10**18

# 365 дней, база для годовой management fee
SECONDS_PER_YEAR: Final[int] = 31_536_000

ZERO_ADDRESS: Final[str] = "0x" + "00" * 20

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


# =============================================================================
# АДРЕСА
# =============================================================================


def normalize_address(address: str) -> str:
    """
    Нормализация адреса к lowercase 0x-форме.

    Raises:
        ValueError: Если строка не является 20-байтовым hex адресом
    """
    if not isinstance(address, str):
        raise ValueError(f"Address must be a string, got {type(address).__name__}")
    candidate = address.lower()
    if not _ADDRESS_RE.match(candidate):
        raise ValueError(f"Invalid address: {address!r}")
    return candidate


def is_zero_address(address: str) -> bool:
    return normalize_address(address) == ZERO_ADDRESS


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_bps(bps: int) -> None:
    """
    Проверка, что ставка в bps лежит в [0, 10000].

    Raises:
        ValueError: Если ставка отрицательная или больше 100%
    """
    if bps < 0:
        raise ValueError(f"Fee rate cannot be negative: {bps} bps")
    if bps > BPS_DENOMINATOR:
        raise ValueError(f"Fee rate {bps} bps exceeds {BPS_DENOMINATOR} bps")


def validate_fee_pair(broker_bps: int, protocol_bps: int, label: str) -> None:
    """
    Проверка пары broker/protocol: сумма строго меньше 100%.

    Args:
        broker_bps: Ставка брокера (bps)
        protocol_bps: Ставка протокола (bps)
        label: Имя пары для сообщения (entrance/exit/performance)

    Raises:
        ValueError: Если сумма пары >= 10000 bps
    """
    validate_bps(broker_bps)
    validate_bps(protocol_bps)
    if broker_bps + protocol_bps >= BPS_DENOMINATOR:
        raise ValueError(
            f"{label} fee pair {broker_bps} + {protocol_bps} bps "
            f"must be below {BPS_DENOMINATOR} bps"
        )


def validate_amount(amount: int) -> None:
    """
    Проверка целочисленной суммы в base units.

    Raises:
        ValueError: Если сумма отрицательная или вне uint256
    """
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: {amount}")
    if amount > MAX_UINT:
        raise ValueError(f"Amount {amount} exceeds uint256 range")
