"""Broker Account Registry — записи брокерских счетов и ownership map.

Ownership token представлен явным отображением account_id → owner с
отдельной функцией проверки capability (is_owner). Закрытие счёта "сжигает"
ownership token (запись в ownership map удаляется), а сама запись счёта
остаётся в состоянии CLOSED для истории.

Реестр не выполняет role-gating: авторизацию делает движок расчётов,
который единолично владеет переходами жизненного цикла и счётчиками.
"""

import logging
from typing import Dict, Iterator, Optional, Tuple

from src.core.domain.broker_account import (
    AccountState,
    BrokerAccount,
    OpenAccountParams,
)
from src.core.domain.units import is_zero_address, normalize_address
from src.core.errors import AccountNotFound, ConfigurationError, NotAccountOwner
from src.registry.state_machine import AccountLifecycleMachine, LifecycleAction

log = logging.getLogger(__name__)


class BrokerAccountRegistry:
    """Реестр брокерских счетов."""

    def __init__(self, lifecycle: Optional[AccountLifecycleMachine] = None):
        self.lifecycle = lifecycle or AccountLifecycleMachine()

        self._accounts: Dict[int, BrokerAccount] = {}
        self._owners: Dict[int, str] = {}
        self._next_id = 1

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def get(self, account_id: int) -> BrokerAccount:
        """
        Raises:
            AccountNotFound: Если счёт никогда не открывался
        """
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFound(
                f"account {account_id} does not exist", data={"account_id": account_id}
            )
        return account

    def exists(self, account_id: int) -> bool:
        return account_id in self._accounts

    def owner_of(self, account_id: int) -> Optional[str]:
        """Владелец ownership token (None для закрытого или несуществующего счёта)."""
        return self._owners.get(account_id)

    def is_owner(self, account_id: int, address: str) -> bool:
        owner = self._owners.get(account_id)
        return owner is not None and owner == normalize_address(address)

    def require_owner(self, account_id: int, address: str) -> None:
        if not self.is_owner(account_id, address):
            raise NotAccountOwner(
                f"{address} is not the owner of account {account_id}",
                data={"account_id": account_id, "caller": address},
            )

    def accounts_of(self, owner: str) -> list[int]:
        owner = normalize_address(owner)
        return sorted(acc for acc, o in self._owners.items() if o == owner)

    def __iter__(self) -> Iterator[BrokerAccount]:
        return iter(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def open_account(self, params: OpenAccountParams, now: int) -> int:
        """
        Открытие счёта: новый id, ownership token для params.user.

        Raises:
            ConfigurationError: нулевой владелец, пара fee >= 10000 bps,
                ttl <= 0 или share_mint_limit <= 0
        """
        if is_zero_address(params.user):
            raise ConfigurationError("account owner cannot be the zero address")
        try:
            params.fees.validate_pairs()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if params.ttl <= 0:
            raise ConfigurationError(f"ttl must be positive, got {params.ttl}")
        if params.share_mint_limit <= 0:
            raise ConfigurationError(
                f"share_mint_limit must be positive, got {params.share_mint_limit}"
            )

        account_id = self._next_id
        account = BrokerAccount(
            account_id=account_id,
            owner=params.user,
            state=AccountState.ACTIVE,
            expiration_timestamp=now + params.ttl,
            is_public=params.is_public,
            transferable=params.transferable,
            fee_recipient=params.fee_recipient or params.user,
            share_mint_limit=params.share_mint_limit,
            fees=params.fees,
        )

        self._next_id += 1
        self._accounts[account_id] = account
        self._owners[account_id] = params.user
        log.info("Broker account %d opened for %s", account_id, params.user)
        return account_id

    def apply_lifecycle(self, account_id: int, action: LifecycleAction) -> BrokerAccount:
        """
        Применение перехода жизненного цикла.

        Raises:
            LifecycleError: Если переход запрещён state machine
        """
        account = self.get(account_id)
        result = self.lifecycle.evaluate_transition(account, action)
        result.raise_if_rejected(account_id)

        updated = account.with_state(result.new_state)
        self._accounts[account_id] = updated
        if result.new_state == AccountState.CLOSED:
            # burn ownership token
            self._owners.pop(account_id, None)
        log.info("Broker account %d: %s", account_id, result.details)
        return updated

    def transfer_ownership(self, account_id: int, new_owner: str) -> BrokerAccount:
        """Передача ownership token (проверки transferable делает движок)."""
        account = self.get(account_id)
        new_owner = normalize_address(new_owner)
        if is_zero_address(new_owner):
            raise ConfigurationError("cannot transfer account to the zero address")
        updated = account.model_copy(update={"owner": new_owner})
        self._accounts[account_id] = updated
        self._owners[account_id] = new_owner
        return updated

    def commit(self, account: BrokerAccount) -> None:
        """Фиксация новой версии записи счёта (counters, fee recipient)."""
        if account.account_id not in self._accounts:
            raise AccountNotFound(
                f"account {account.account_id} does not exist",
                data={"account_id": account.account_id},
            )
        self._accounts[account.account_id] = account

    # Snapshot scope движка

    def snapshot(self) -> Tuple[Dict[int, BrokerAccount], Dict[int, str], int]:
        return dict(self._accounts), dict(self._owners), self._next_id

    def restore(self, snapshot: Tuple[Dict[int, BrokerAccount], Dict[int, str], int]) -> None:
        accounts, owners, next_id = snapshot
        self._accounts = dict(accounts)
        self._owners = dict(owners)
        self._next_id = next_id
