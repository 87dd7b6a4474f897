"""Sim — детерминированные in-memory коллабораторы движка.

Бумажная замена on-chain окружения для тестов и офлайн-прогонов:
- InMemoryTokenLedger: балансы и supply токенов (TokenGateway)
- SimulatedTransferAuthority: переводы по выданным разрешениям
- SimulatedDepositModule: vault с фиксированными ценами в WAD

Все три поддерживают snapshot()/restore() и откатываются движком вместе
с его собственным состоянием.
"""

from .deposit_module import DepositModuleError, SimulatedDepositModule
from .token_ledger import InMemoryTokenLedger, InsufficientBalance
from .transfer_authority import SimulatedTransferAuthority, TransferNotAuthorized

__all__ = [
    "InMemoryTokenLedger",
    "InsufficientBalance",
    "SimulatedTransferAuthority",
    "TransferNotAuthorized",
    "SimulatedDepositModule",
    "DepositModuleError",
]
