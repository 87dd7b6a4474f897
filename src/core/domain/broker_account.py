"""
BrokerAccount — Модель брокерского счёта

Immutable Pydantic модель записи брокерского счёта: lifecycle, fee schedule,
лимиты и накопительные счётчики. Все изменения счёта создают новый экземпляр,
реестр фиксирует его только в конце полностью проверенного пути.

Инвариант счётчиков: когда total_shares_outstanding возвращается к нулю,
cumulative_shares_minted и cumulative_units_deposited сбрасываются в ноль,
чтобы средняя цена входа для следующего цикла считалась с чистого листа.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .units import (
    BPS_DENOMINATOR,
    MAX_UINT,
    WAD,
    normalize_address,
    validate_fee_pair,
)


# =============================================================================
# ENUMS
# =============================================================================


class AccountState(str, Enum):
    """Состояние жизненного цикла счёта"""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class AssetDirection(str, Enum):
    """Направление операции для per-account asset policy"""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


# =============================================================================
# FEE SCHEDULE
# =============================================================================


class FeeSchedule(BaseModel):
    """
    Ставки комиссий счёта (bps).

    Каждая пара broker/protocol при открытии счёта обязана давать в сумме
    меньше 10000 bps (см. validate_pairs).
    """

    broker_entrance_fee_bps: int = Field(0, ge=0, le=BPS_DENOMINATOR)
    protocol_entrance_fee_bps: int = Field(0, ge=0, le=BPS_DENOMINATOR)
    broker_exit_fee_bps: int = Field(0, ge=0, le=BPS_DENOMINATOR)
    protocol_exit_fee_bps: int = Field(0, ge=0, le=BPS_DENOMINATOR)
    broker_performance_fee_bps: int = Field(0, ge=0, le=BPS_DENOMINATOR)
    protocol_performance_fee_bps: int = Field(0, ge=0, le=BPS_DENOMINATOR)

    model_config = {"frozen": True}

    def validate_pairs(self) -> None:
        """
        Raises:
            ValueError: Если любая пара broker + protocol >= 10000 bps
        """
        validate_fee_pair(
            self.broker_entrance_fee_bps, self.protocol_entrance_fee_bps, "entrance"
        )
        validate_fee_pair(self.broker_exit_fee_bps, self.protocol_exit_fee_bps, "exit")
        validate_fee_pair(
            self.broker_performance_fee_bps,
            self.protocol_performance_fee_bps,
            "performance",
        )

    @property
    def charges_performance(self) -> bool:
        return self.broker_performance_fee_bps > 0 or self.protocol_performance_fee_bps > 0


# =============================================================================
# OPEN ACCOUNT PARAMS
# =============================================================================


class OpenAccountParams(BaseModel):
    """Параметры открытия нового брокерского счёта."""

    user: str = Field(..., description="Владелец ownership token (брокер)")
    ttl: int = Field(..., description="Время жизни счёта в секундах (> 0)")
    share_mint_limit: int = Field(
        MAX_UINT, description="Лимит outstanding shares (MAX_UINT = без лимита)"
    )
    fee_recipient: Optional[str] = Field(
        None, description="Получатель broker fee (по умолчанию владелец)"
    )
    is_public: bool = Field(False, description="Любой адрес может депонировать/выводить")
    transferable: bool = Field(False, description="Ownership token можно передать")
    fees: FeeSchedule = Field(default_factory=FeeSchedule)

    model_config = {"frozen": True}

    @field_validator("user", "fee_recipient")
    @classmethod
    def validate_address(cls, v: Optional[str]) -> Optional[str]:
        return normalize_address(v) if v is not None else v


# =============================================================================
# BROKER ACCOUNT MODEL
# =============================================================================


class BrokerAccount(BaseModel):
    """
    Запись брокерского счёта.

    Immutable модель (frozen=True). Переходы состояния и мутации счётчиков
    возвращают новый экземпляр (with_state / with_deposit / with_burn).
    """

    account_id: int = Field(..., ge=1)
    owner: str
    state: AccountState = AccountState.ACTIVE
    expiration_timestamp: int = Field(0, ge=0, description="0 = никогда не истекает")
    is_public: bool = False
    transferable: bool = False
    fee_recipient: str
    share_mint_limit: int = Field(MAX_UINT, gt=0)

    # Накопительные счётчики
    total_shares_outstanding: int = Field(0, ge=0)
    cumulative_shares_minted: int = Field(0, ge=0)
    cumulative_units_deposited: int = Field(0, ge=0)

    fees: FeeSchedule = Field(default_factory=FeeSchedule)

    model_config = {"frozen": True}

    @field_validator("owner", "fee_recipient")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return normalize_address(v)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state == AccountState.ACTIVE

    @property
    def has_mint_limit(self) -> bool:
        return self.share_mint_limit != MAX_UINT

    def is_expired(self, now: int) -> bool:
        """Истёк ли счёт на момент now (проверяется лениво)."""
        return self.expiration_timestamp != 0 and now > self.expiration_timestamp

    def with_state(self, state: AccountState) -> "BrokerAccount":
        return self.model_copy(update={"state": state})

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    def remaining_mint_capacity(self) -> int:
        if not self.has_mint_limit:
            return MAX_UINT
        return max(self.share_mint_limit - self.total_shares_outstanding, 0)

    def average_entry_price_wad(self) -> int:
        """
        Средняя цена входа (liquidity units за share, WAD), округление вверх.

        Returns:
            0 если в текущем цикле ещё не было mint
        """
        if self.cumulative_shares_minted == 0:
            return 0
        return -(-self.cumulative_units_deposited * WAD // self.cumulative_shares_minted)

    def with_deposit(self, shares_minted: int, units_deposited: int) -> "BrokerAccount":
        """Новая запись после mint shares_minted за units_deposited."""
        return self.model_copy(
            update={
                "total_shares_outstanding": self.total_shares_outstanding + shares_minted,
                "cumulative_shares_minted": self.cumulative_shares_minted + shares_minted,
                "cumulative_units_deposited": self.cumulative_units_deposited
                + units_deposited,
            }
        )

    def with_burn(self, shares_burnt: int) -> "BrokerAccount":
        """
        Новая запись после burn shares_burnt.

        Для безлимитных счетов outstanding уменьшается с насыщением в ноль
        (shares могли прийти с другого счёта). Проверку "нельзя сжечь больше
        outstanding" для лимитных счетов выполняет движок до вызова.
        """
        outstanding = max(self.total_shares_outstanding - shares_burnt, 0)
        update = {"total_shares_outstanding": outstanding}
        if outstanding == 0:
            update["cumulative_shares_minted"] = 0
            update["cumulative_units_deposited"] = 0
        return self.model_copy(update=update)
