"""Settlement — движок расчётов брокерских счетов.

- SettlementEngine: deposit / withdraw (прямые и по intent), жизненный цикл,
  asset policy, management fee
- EngineConfig: конфигурация движка
- Interfaces: протоколы Deposit Module, TransferAuthorization, TokenGateway
"""

from .config import DEFAULT_MAX_MANAGEMENT_FEE_BPS, EngineConfig
from .engine import SettlementEngine
from .interfaces import (
    DepositModule,
    SupportsSnapshot,
    TokenGateway,
    TransferAuthorization,
    VaultState,
)

__all__ = [
    "DEFAULT_MAX_MANAGEMENT_FEE_BPS",
    "EngineConfig",
    "SettlementEngine",
    "DepositModule",
    "SupportsSnapshot",
    "TokenGateway",
    "TransferAuthorization",
    "VaultState",
]
