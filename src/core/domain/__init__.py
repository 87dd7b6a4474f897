"""
Domain models and value objects.

Contains fundamental domain entities like BrokerAccount, FeeSchedule,
orders, signed intents and settlement events.
"""

from src.core.domain.broker_account import (
    AccountState,
    AssetDirection,
    BrokerAccount,
    FeeSchedule,
    OpenAccountParams,
)
from src.core.domain.events import (
    AccountEvent,
    AccountEventKind,
    DepositSettled,
    ManagementFeeAccrued,
    SettlementResult,
    WithdrawSettled,
)
from src.core.domain.orders import (
    DepositIntentOrder,
    DepositOrder,
    SignedIntent,
    WithdrawIntentOrder,
    WithdrawOrder,
)
from src.core.domain.units import (
    BPS_DENOMINATOR,
    MAX_UINT,
    SECONDS_PER_YEAR,
    WAD,
    ZERO_ADDRESS,
    is_zero_address,
    normalize_address,
    validate_amount,
    validate_bps,
    validate_fee_pair,
)

__all__ = [
    # Units module
    "BPS_DENOMINATOR",
    "MAX_UINT",
    "SECONDS_PER_YEAR",
    "WAD",
    "ZERO_ADDRESS",
    "is_zero_address",
    "normalize_address",
    "validate_amount",
    "validate_bps",
    "validate_fee_pair",
    # Broker account
    "AccountState",
    "AssetDirection",
    "BrokerAccount",
    "FeeSchedule",
    "OpenAccountParams",
    # Orders
    "DepositOrder",
    "WithdrawOrder",
    "DepositIntentOrder",
    "WithdrawIntentOrder",
    "SignedIntent",
    # Events
    "SettlementResult",
    "DepositSettled",
    "WithdrawSettled",
    "AccountEvent",
    "AccountEventKind",
    "ManagementFeeAccrued",
]
