"""Interfaces — протоколы внешних коллабораторов движка.

Движок не реализует pricing, custody и перевод токенов сам; он потребляет:
- DepositModule: asset ↔ shares, internal vault, dilution
- TransferAuthorization: перевод токенов без предварительного approve
  (сбой атомарный, если владелец не авторизовал перевод отдельно)
- TokenGateway: баланс и перевод токенов, которыми владеет движок

SupportsSnapshot: коллабораторы, состояние которых движок может откатить
при ошибке расчёта.
"""

from dataclasses import dataclass
from typing import Any, Protocol, Tuple, runtime_checkable


@dataclass(frozen=True)
class VaultState:
    """Состояние внутреннего vault Deposit Module."""

    total_supply: int
    total_assets: int


@runtime_checkable
class DepositModule(Protocol):
    def deposit(
        self, asset: str, amount: int, min_shares_out: int, recipient: str
    ) -> Tuple[int, int]:
        """Returns: (shares_out, liquidity_units)"""
        ...

    def withdraw(
        self, asset: str, shares: int, min_amount_out: int, recipient: str
    ) -> Tuple[int, int]:
        """Returns: (asset_out, liquidity_units)"""
        ...

    def fund(self) -> str:
        ...

    def get_vault(self) -> str:
        ...

    def internal_vault(self) -> VaultState:
        ...

    def dilute(self, share_amount: int, recipient: str) -> None:
        ...


@runtime_checkable
class TransferAuthorization(Protocol):
    def transfer_from(self, owner: str, to: str, amount: int, token: str) -> None:
        ...


@runtime_checkable
class TokenGateway(Protocol):
    def balance_of(self, token: str, owner: str) -> int:
        ...

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        ...


@runtime_checkable
class SupportsSnapshot(Protocol):
    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...
