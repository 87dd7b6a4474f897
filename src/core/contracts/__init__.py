"""
Contract Validation Module

Модуль для валидации JSON payload подписанных intent.
"""

from .validators import (
    ContractValidator,
    DepositIntentValidator,
    SchemaLoader,
    WithdrawIntentValidator,
    validate_deposit_intent,
    validate_intent_payload,
    validate_withdraw_intent,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "DepositIntentValidator",
    "WithdrawIntentValidator",
    # Functions
    "validate_deposit_intent",
    "validate_withdraw_intent",
    "validate_intent_payload",
]
