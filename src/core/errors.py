"""
Settlement Errors — типизированные ошибки движка расчётов

Все ошибки движка наследуются от SettlementError и несут стабильный
машинный код (code), чтобы relayer/UI могли различать причину отказа:
повторить с новым nonce или отказаться от счёта с истёкшим сроком.

Иерархия:
SettlementError
 ├─ AuthorizationError : не владелец, счёт не публичный, чужая роль
 ├─ LifecycleError     : счёт не найден / не активен / истёк / есть shares
 ├─ PolicyError        : актив не разрешён для направления на этом счёте
 ├─ LimitError         : превышен mint limit, burn больше outstanding
 ├─ EconomicError      : сумма ниже минимума, slippage, bribe + tip
 ├─ SecurityError      : подпись, chain id, nonce, повторный вход
 └─ TemporalError      : ордер после deadline

Все проверки выполняются до мутаций (или откатываются snapshot scope движка),
автоматических повторов нет.
"""

from typing import Any, Dict, Optional


class SettlementError(Exception):
    """
    Базовая ошибка расчётов.

    Attributes:
        message: Человекочитаемое описание
        code: Стабильный машинный код (например, 'DEADLINE_EXPIRED')
        data: Структурированные детали (JSON-сериализуемые)
    """

    code: str = "SETTLEMENT_ERROR"

    def __init__(self, message: str = "", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.data = data

    def __str__(self) -> str:
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в JSON-safe dict для логов и ответов relayer."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class ConfigurationError(ValueError):
    """Некорректные параметры открытия счёта или конфигурации движка."""


# =============================================================================
# CATEGORIES
# =============================================================================


class AuthorizationError(SettlementError):
    code = "AUTHORIZATION"


class LifecycleError(SettlementError):
    code = "LIFECYCLE"


class PolicyError(SettlementError):
    code = "POLICY"


class LimitError(SettlementError):
    code = "LIMIT"


class EconomicError(SettlementError):
    code = "ECONOMIC"


class SecurityError(SettlementError):
    code = "SECURITY"


class TemporalError(SettlementError):
    code = "TEMPORAL"


# =============================================================================
# AUTHORIZATION
# =============================================================================


class NotAccountOwner(AuthorizationError):
    code = "NOT_ACCOUNT_OWNER"


class AccountNotPublic(AuthorizationError):
    code = "ACCOUNT_NOT_PUBLIC"


class Unauthorized(AuthorizationError):
    code = "UNAUTHORIZED"


class AccountNotTransferable(AuthorizationError):
    code = "ACCOUNT_NOT_TRANSFERABLE"


# =============================================================================
# LIFECYCLE
# =============================================================================


class AccountNotFound(LifecycleError):
    code = "ACCOUNT_NOT_FOUND"


class AccountNotActive(LifecycleError):
    code = "ACCOUNT_NOT_ACTIVE"


class AccountExpired(LifecycleError):
    code = "ACCOUNT_EXPIRED"


class AccountHasOutstandingShares(LifecycleError):
    code = "ACCOUNT_HAS_OUTSTANDING_SHARES"


class AccountAlreadyPaused(LifecycleError):
    code = "ACCOUNT_ALREADY_PAUSED"


class AccountNotPaused(LifecycleError):
    code = "ACCOUNT_NOT_PAUSED"


# =============================================================================
# POLICY / LIMIT
# =============================================================================


class AssetNotPermitted(PolicyError):
    code = "ASSET_NOT_PERMITTED"


class MintLimitExceeded(LimitError):
    code = "MINT_LIMIT_EXCEEDED"


class BurnExceedsOutstanding(LimitError):
    code = "BURN_EXCEEDS_OUTSTANDING"


# =============================================================================
# ECONOMIC
# =============================================================================


class AmountBelowMinimum(EconomicError):
    code = "AMOUNT_BELOW_MINIMUM"


class SlippageExceeded(EconomicError):
    code = "SLIPPAGE_EXCEEDED"


class InsufficientAmountForBribeAndTip(EconomicError):
    code = "INSUFFICIENT_AMOUNT_FOR_BRIBE_AND_TIP"


# =============================================================================
# SECURITY / TEMPORAL
# =============================================================================


class InvalidSignature(SecurityError):
    code = "INVALID_SIGNATURE"


class WrongChainId(SecurityError):
    code = "WRONG_CHAIN_ID"


class NonceMismatch(SecurityError):
    code = "NONCE_MISMATCH"


class ReentrantCall(SecurityError):
    code = "REENTRANT_CALL"


class DeadlineExpired(TemporalError):
    code = "DEADLINE_EXPIRED"
