"""
Events — авторитетные финансовые события движка

Settlement events (DepositSettled / WithdrawSettled) и события жизненного
цикла счёта. Immutable Pydantic модели, сериализуемые в JSON.

SettlementResult — эфемерный результат расчёта, не хранится нигде, кроме
события и обновлённых счётчиков.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


# =============================================================================
# SETTLEMENT RESULT
# =============================================================================


@dataclass(frozen=True)
class SettlementResult:
    """Результат одного расчёта (депозит или вывод)."""

    account_id: int

    # Депозит: shares_out > 0; вывод: assets_out > 0
    shares_out: int
    assets_out: int

    # Трёхсторонний split (shares для депозита, asset units для вывода)
    user_amount: int
    broker_fee: int
    protocol_fee: int

    relayer_tip: int = 0
    bribe: int = 0

    # Liquidity units от Deposit Module
    liquidity_units: int = 0


# =============================================================================
# SETTLEMENT EVENTS
# =============================================================================


class DepositSettled(BaseModel):
    """Событие успешного депозита."""

    account_id: int
    payer: str
    recipient: str
    asset: str
    amount: int = Field(..., description="Полная сумма, списанная с плательщика")
    shares_minted: int
    liquidity_units: int
    user_shares: int
    broker_fee_shares: int
    protocol_fee_shares: int
    relayer_tip: int = 0
    bribe: int = 0
    timestamp: int

    model_config = {"frozen": True}


class WithdrawSettled(BaseModel):
    """Событие успешного вывода."""

    account_id: int
    payer: str
    recipient: str
    asset: str
    shares_burnt: int
    liquidity_units: int
    assets_out: int
    user_assets: int
    broker_fee: int
    protocol_fee: int
    relayer_tip: int = 0
    bribe: int = 0
    timestamp: int

    model_config = {"frozen": True}


# =============================================================================
# LIFECYCLE EVENTS
# =============================================================================


class AccountEventKind(str, Enum):
    OPENED = "OPENED"
    CLOSED = "CLOSED"
    PAUSED = "PAUSED"
    UNPAUSED = "UNPAUSED"
    TRANSFERRED = "TRANSFERRED"
    FEE_RECIPIENT_SET = "FEE_RECIPIENT_SET"
    POLICY_ENABLED = "POLICY_ENABLED"
    POLICY_DISABLED = "POLICY_DISABLED"


class AccountEvent(BaseModel):
    """Событие жизненного цикла или настройки счёта."""

    kind: AccountEventKind
    account_id: int
    actor: str
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: int

    model_config = {"frozen": True}


class ManagementFeeAccrued(BaseModel):
    """Событие начисления management fee (dilution)."""

    fee_shares: int
    recipient: str
    elapsed_seconds: int
    rate_bps: int
    timestamp: int

    model_config = {"frozen": True}
