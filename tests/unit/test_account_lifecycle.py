"""
Тесты для AccountLifecycleMachine

Переходы:
- ACTIVE → PAUSED → ACTIVE
- ACTIVE (0 shares) → CLOSED (терминальное)
"""

import pytest

from src.core.domain.broker_account import AccountState, BrokerAccount
from src.core.errors import (
    AccountAlreadyPaused,
    AccountHasOutstandingShares,
    AccountNotActive,
    AccountNotPaused,
)
from src.registry.state_machine import AccountLifecycleMachine, LifecycleAction

OWNER = "0x" + "11" * 20


def account_in(state: AccountState, outstanding: int = 0) -> BrokerAccount:
    return BrokerAccount(
        account_id=1,
        owner=OWNER,
        fee_recipient=OWNER,
        state=state,
        total_shares_outstanding=outstanding,
        cumulative_shares_minted=outstanding,
    )


class TestLifecycleMachine:
    """Тесты evaluate_transition."""

    @pytest.fixture
    def machine(self):
        return AccountLifecycleMachine()

    def test_pause_active(self, machine):
        result = machine.evaluate_transition(account_in(AccountState.ACTIVE), LifecycleAction.PAUSE)

        assert result.transition_occurred
        assert result.error is None
        assert result.new_state == AccountState.PAUSED
        assert result.previous_state == AccountState.ACTIVE

    def test_pause_paused_rejected(self, machine):
        result = machine.evaluate_transition(account_in(AccountState.PAUSED), LifecycleAction.PAUSE)

        assert not result.transition_occurred
        assert result.error is AccountAlreadyPaused
        assert result.new_state == AccountState.PAUSED

    def test_unpause_paused(self, machine):
        result = machine.evaluate_transition(
            account_in(AccountState.PAUSED), LifecycleAction.UNPAUSE
        )
        assert result.new_state == AccountState.ACTIVE

    def test_unpause_active_rejected(self, machine):
        result = machine.evaluate_transition(
            account_in(AccountState.ACTIVE), LifecycleAction.UNPAUSE
        )
        assert result.error is AccountNotPaused

    def test_close_empty_account(self, machine):
        result = machine.evaluate_transition(account_in(AccountState.ACTIVE), LifecycleAction.CLOSE)
        assert result.new_state == AccountState.CLOSED

    def test_close_with_outstanding_shares_rejected(self, machine):
        result = machine.evaluate_transition(
            account_in(AccountState.ACTIVE, outstanding=1), LifecycleAction.CLOSE
        )
        assert result.error is AccountHasOutstandingShares

    def test_close_paused_rejected(self, machine):
        result = machine.evaluate_transition(account_in(AccountState.PAUSED), LifecycleAction.CLOSE)
        assert result.error is AccountNotActive

    @pytest.mark.parametrize("action", list(LifecycleAction))
    def test_closed_is_terminal(self, machine, action):
        result = machine.evaluate_transition(account_in(AccountState.CLOSED), action)
        assert result.error is AccountNotActive
        assert result.new_state == AccountState.CLOSED

    def test_raise_if_rejected(self, machine):
        result = machine.evaluate_transition(account_in(AccountState.PAUSED), LifecycleAction.PAUSE)
        with pytest.raises(AccountAlreadyPaused) as exc_info:
            result.raise_if_rejected(1)
        assert exc_info.value.data == {"account_id": 1}
