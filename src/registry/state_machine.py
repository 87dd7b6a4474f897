"""Account Lifecycle State Machine — переходы состояния брокерского счёта.

Переходы:
- ACTIVE →(pause)→ PAUSED →(unpause)→ ACTIVE
- ACTIVE (0 outstanding shares) →(close)→ CLOSED (терминальное)
- ACTIVE →(expire, по времени, лениво)→ неактивен только для депозитов

Expiration не является отдельным состоянием: счёт остаётся ACTIVE, а
истечение проверяется при каждом депозите (is_expired). Истёкший счёт
обязан оставаться доступным для вывода.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type

from src.core.domain.broker_account import AccountState, BrokerAccount
from src.core.errors import (
    AccountAlreadyPaused,
    AccountHasOutstandingShares,
    AccountNotActive,
    AccountNotPaused,
    LifecycleError,
)


class LifecycleAction(str, Enum):
    """Действие над жизненным циклом счёта."""

    PAUSE = "PAUSE"
    UNPAUSE = "UNPAUSE"
    CLOSE = "CLOSE"


@dataclass(frozen=True)
class LifecycleTransitionResult:
    """Результат оценки перехода."""

    new_state: AccountState
    previous_state: AccountState

    transition_occurred: bool
    transition_reason: str

    # Ошибка для отклонённого перехода (None если переход допустим)
    error: Optional[Type[LifecycleError]]

    details: str

    def raise_if_rejected(self, account_id: int) -> None:
        if self.error is not None:
            raise self.error(self.details, data={"account_id": account_id})


class AccountLifecycleMachine:
    """State machine жизненного цикла брокерского счёта.

    Stateless: решение зависит только от текущей записи счёта и действия.
    """

    def evaluate_transition(
        self, account: BrokerAccount, action: LifecycleAction
    ) -> LifecycleTransitionResult:
        """Оценка перехода.

        Args:
            account: текущая запись счёта
            action: запрошенное действие

        Returns:
            LifecycleTransitionResult; error != None если переход запрещён
        """
        state = account.state

        if state == AccountState.CLOSED:
            return self._reject(
                state, action, AccountNotActive, "account is closed (terminal state)"
            )

        if action == LifecycleAction.PAUSE:
            if state == AccountState.PAUSED:
                return self._reject(
                    state, action, AccountAlreadyPaused, "account is already paused"
                )
            return self._accept(state, AccountState.PAUSED, action)

        if action == LifecycleAction.UNPAUSE:
            if state != AccountState.PAUSED:
                return self._reject(state, action, AccountNotPaused, "account is not paused")
            return self._accept(state, AccountState.ACTIVE, action)

        # CLOSE
        if state != AccountState.ACTIVE:
            return self._reject(
                state, action, AccountNotActive, f"cannot close account in state {state.value}"
            )
        if account.total_shares_outstanding != 0:
            return self._reject(
                state,
                action,
                AccountHasOutstandingShares,
                f"{account.total_shares_outstanding} shares still outstanding",
            )
        return self._accept(state, AccountState.CLOSED, action)

    def _accept(
        self, previous: AccountState, new: AccountState, action: LifecycleAction
    ) -> LifecycleTransitionResult:
        return LifecycleTransitionResult(
            new_state=new,
            previous_state=previous,
            transition_occurred=True,
            transition_reason=f"{action.value.lower()}_{previous.value}_to_{new.value}",
            error=None,
            details=f"{previous.value} -> {new.value}",
        )

    def _reject(
        self,
        state: AccountState,
        action: LifecycleAction,
        error: Type[LifecycleError],
        details: str,
    ) -> LifecycleTransitionResult:
        return LifecycleTransitionResult(
            new_state=state,
            previous_state=state,
            transition_occurred=False,
            transition_reason=f"{action.value.lower()}_rejected",
            error=error,
            details=details,
        )
