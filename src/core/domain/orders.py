"""
Orders & Intents — Модели ордеров на депозит/вывод и подписанных intent

Immutable Pydantic модели:
- DepositOrder / WithdrawOrder: прямой вызов владельцем (payer = caller)
- DepositIntentOrder / WithdrawIntentOrder: payload подписанного intent
  (payer = user, добавлены relayer tip и bribe)
- SignedIntent: конверт (order, chain_id, nonce, signature)

amount/shares == MAX_UINT означает "весь баланс плательщика".
"""

from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, Field, field_validator

from .units import MAX_UINT, normalize_address


# =============================================================================
# DIRECT ORDERS
# =============================================================================


class DepositOrder(BaseModel):
    """Ордер на депозит актива в брокерский счёт."""

    account_id: int = Field(..., ge=1, description="Идентификатор брокерского счёта")
    recipient: str = Field(..., description="Получатель shares")
    asset: str = Field(..., description="Адрес депонируемого актива")
    amount: int = Field(..., gt=0, le=MAX_UINT, description="Сумма (MAX_UINT = весь баланс)")
    min_shares_out: int = Field(0, ge=0, description="Минимум shares получателю (slippage)")
    deadline: int = Field(..., ge=0, description="Unix seconds; вызов в/после deadline отклоняется")

    model_config = {"frozen": True}

    @field_validator("recipient", "asset")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return normalize_address(v)


class WithdrawOrder(BaseModel):
    """Ордер на вывод: burn shares и получение актива."""

    account_id: int = Field(..., ge=1)
    recipient: str = Field(..., description="Получатель актива")
    asset: str = Field(..., description="Адрес выводимого актива")
    shares: int = Field(..., gt=0, le=MAX_UINT, description="Shares к burn (MAX_UINT = весь баланс)")
    min_amount_out: int = Field(0, ge=0, description="Минимум актива получателю (slippage)")
    deadline: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @field_validator("recipient", "asset")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return normalize_address(v)


# =============================================================================
# INTENT ORDERS
# =============================================================================


class DepositIntentOrder(DepositOrder):
    """Payload подписанного intent на депозит."""

    intent_type: Literal["deposit"] = "deposit"
    user: str = Field(..., description="Подписант и плательщик")
    relayer_tip: int = Field(0, ge=0, description="Вознаграждение relayer (в активе)")
    bribe: int = Field(0, ge=0, description="Платёж напрямую в Fund (в активе)")

    @field_validator("user")
    @classmethod
    def validate_user(cls, v: str) -> str:
        return normalize_address(v)


class WithdrawIntentOrder(WithdrawOrder):
    """Payload подписанного intent на вывод."""

    intent_type: Literal["withdraw"] = "withdraw"
    user: str = Field(..., description="Подписант и владелец shares")
    relayer_tip: int = Field(0, ge=0)
    bribe: int = Field(0, ge=0)

    @field_validator("user")
    @classmethod
    def validate_user(cls, v: str) -> str:
        return normalize_address(v)


# =============================================================================
# SIGNED INTENT
# =============================================================================


class SignedIntent(BaseModel):
    """
    Подписанный intent.

    Инвариант: значение nonce для пары (signer, account_id) потребляется
    ровно один раз, строго по возрастанию.
    """

    order: Union[DepositIntentOrder, WithdrawIntentOrder] = Field(
        ..., discriminator="intent_type"
    )
    chain_id: int = Field(..., ge=0)
    nonce: int = Field(..., ge=0)
    signature: bytes = Field(b"", description="Подпись над typed digest")

    model_config = {"frozen": True}

    @property
    def signer(self) -> str:
        return self.order.user

    @property
    def account_id(self) -> int:
        return self.order.account_id

    def signing_payload(self) -> Dict[str, Any]:
        """Payload для typed digest (без подписи)."""
        return {
            "type": self.order.intent_type,
            "order": self.order.model_dump(mode="json"),
            "chain_id": self.chain_id,
            "nonce": self.nonce,
        }
