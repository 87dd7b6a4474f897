"""
Тесты администрирования счетов через SettlementEngine

Coverage:
- Role gating: открытие / pause (admin, manager), close и настройки (owner, manager)
- Close только при 0 outstanding, ownership token сжигается
- Передача счёта (transferable)
- Fee recipient и asset policy только на активном, не истёкшем счёте
- События жизненного цикла
"""

import pytest

from src.core.domain.broker_account import AccountState, AssetDirection, OpenAccountParams
from src.core.domain.events import AccountEvent, AccountEventKind
from src.core.domain.units import MAX_UINT, ZERO_ADDRESS
from src.core.errors import (
    AccountAlreadyPaused,
    AccountExpired,
    AccountHasOutstandingShares,
    AccountNotActive,
    AccountNotFound,
    AccountNotPaused,
    AccountNotPublic,
    AccountNotTransferable,
    AssetNotPermitted,
    ConfigurationError,
    NotAccountOwner,
    Unauthorized,
)
from tests.harness import ADMIN, ASSET, BROKER, BROKER_FEES, DAY, MANAGER, OUTSIDER, SHARE


class TestOpenAccount:
    def test_manager_can_open(self, harness):
        account_id = harness.engine.open_account(MANAGER, OpenAccountParams(user=BROKER, ttl=DAY))
        assert harness.engine.get_account_info(account_id).owner == BROKER

    def test_outsider_cannot_open(self, harness):
        with pytest.raises(Unauthorized):
            harness.engine.open_account(OUTSIDER, OpenAccountParams(user=BROKER, ttl=DAY))
        assert len(harness.engine.registry) == 0

    def test_invalid_params(self, harness):
        with pytest.raises(ConfigurationError):
            harness.engine.open_account(ADMIN, OpenAccountParams(user=BROKER, ttl=0))

    def test_opened_event(self, harness):
        account_id = harness.engine.open_account(ADMIN, OpenAccountParams(user=BROKER, ttl=DAY))

        event = harness.engine.events[-1]
        assert isinstance(event, AccountEvent)
        assert event.kind == AccountEventKind.OPENED
        assert event.account_id == account_id
        assert event.details == {"owner": BROKER}

    def test_unknown_account_info(self, harness):
        with pytest.raises(AccountNotFound):
            harness.engine.get_account_info(1)


class TestPauseAndClose:
    def test_pause_unpause(self, harness):
        account_id = harness.open_account()

        harness.engine.pause_account(MANAGER, account_id)
        assert harness.engine.get_account_info(account_id).state == AccountState.PAUSED
        with pytest.raises(AccountAlreadyPaused):
            harness.engine.pause_account(ADMIN, account_id)

        harness.engine.unpause_account(ADMIN, account_id)
        assert harness.engine.get_account_info(account_id).is_active
        with pytest.raises(AccountNotPaused):
            harness.engine.unpause_account(ADMIN, account_id)

    def test_owner_cannot_pause(self, harness):
        account_id = harness.open_account()
        with pytest.raises(Unauthorized):
            harness.engine.pause_account(BROKER, account_id)

    def test_close_requires_zero_outstanding(self, harness):
        account_id = harness.open_account()
        harness.fund(BROKER, 1_000)
        harness.engine.deposit(BROKER, harness.deposit_order(account_id, 1_000))

        with pytest.raises(AccountHasOutstandingShares):
            harness.engine.close_account(BROKER, account_id)

        harness.engine.withdraw(BROKER, harness.withdraw_order(account_id, MAX_UINT))
        harness.engine.close_account(BROKER, account_id)

        account = harness.engine.get_account_info(account_id)
        assert account.state == AccountState.CLOSED
        assert harness.engine.registry.owner_of(account_id) is None
        assert harness.engine.events[-1].kind == AccountEventKind.CLOSED

    def test_closed_is_terminal(self, harness):
        account_id = harness.open_account()
        harness.fund(BROKER, 1_000)
        harness.engine.close_account(ADMIN, account_id)

        with pytest.raises(AccountNotActive):
            harness.engine.deposit(BROKER, harness.deposit_order(account_id, 1_000))
        with pytest.raises(AccountNotActive):
            harness.engine.unpause_account(ADMIN, account_id)
        # Владельца больше нет: повторно закрыть может только manager
        with pytest.raises(NotAccountOwner):
            harness.engine.close_account(BROKER, account_id)
        with pytest.raises(AccountNotActive):
            harness.engine.close_account(ADMIN, account_id)

    def test_outsider_cannot_close(self, harness):
        account_id = harness.open_account()
        with pytest.raises(NotAccountOwner):
            harness.engine.close_account(OUTSIDER, account_id)


class TestTransferAccount:
    def test_not_transferable(self, harness):
        account_id = harness.open_account()
        with pytest.raises(AccountNotTransferable):
            harness.engine.transfer_account(BROKER, account_id, OUTSIDER)

    def test_transfer(self, harness):
        account_id = harness.open_account(transferable=True)

        harness.engine.transfer_account(BROKER, account_id, OUTSIDER)

        assert harness.engine.get_account_info(account_id).owner == OUTSIDER
        assert harness.engine.registry.accounts_of(OUTSIDER) == [account_id]
        event = harness.engine.events[-1]
        assert event.kind == AccountEventKind.TRANSFERRED
        assert event.details == {"new_owner": OUTSIDER}

        # Прежний владелец теряет доступ к приватному счёту
        harness.fund(BROKER, 100)
        with pytest.raises(AccountNotPublic):
            harness.engine.deposit(BROKER, harness.deposit_order(account_id, 100))

    def test_only_owner_transfers(self, harness):
        account_id = harness.open_account(transferable=True)
        with pytest.raises(NotAccountOwner):
            harness.engine.transfer_account(ADMIN, account_id, OUTSIDER)

    def test_zero_address_rejected(self, harness):
        account_id = harness.open_account(transferable=True)
        with pytest.raises(ConfigurationError):
            harness.engine.transfer_account(BROKER, account_id, ZERO_ADDRESS)
        assert harness.engine.get_account_info(account_id).owner == BROKER


class TestAccountSettings:
    def test_set_fee_recipient(self, harness):
        account_id = harness.open_account()

        harness.engine.set_broker_fee_recipient(BROKER, account_id, BROKER_FEES)

        assert harness.engine.get_account_info(account_id).fee_recipient == BROKER_FEES
        assert harness.engine.events[-1].kind == AccountEventKind.FEE_RECIPIENT_SET

    def test_fee_recipient_rules(self, harness):
        account_id = harness.open_account(ttl=DAY)

        with pytest.raises(NotAccountOwner):
            harness.engine.set_broker_fee_recipient(OUTSIDER, account_id, OUTSIDER)
        with pytest.raises(ConfigurationError):
            harness.engine.set_broker_fee_recipient(BROKER, account_id, ZERO_ADDRESS)

        harness.clock.advance(DAY + 1)
        with pytest.raises(AccountExpired):
            harness.engine.set_broker_fee_recipient(BROKER, account_id, BROKER_FEES)

    def test_disable_policy_blocks_deposit(self, harness):
        account_id = harness.open_account()
        harness.fund(BROKER, 1_000)

        harness.engine.disable_broker_asset_policy(BROKER, account_id, ASSET, AssetDirection.DEPOSIT)

        assert not harness.engine.is_asset_permitted(account_id, ASSET, AssetDirection.DEPOSIT)
        assert harness.engine.is_asset_permitted(account_id, ASSET, AssetDirection.WITHDRAW)
        with pytest.raises(AssetNotPermitted):
            harness.engine.deposit(BROKER, harness.deposit_order(account_id, 1_000))

        event = harness.engine.events[-1]
        assert event.kind == AccountEventKind.POLICY_DISABLED
        assert event.details == {"asset": ASSET, "direction": "deposit"}

    def test_policy_requires_active_account(self, harness):
        account_id = harness.open_account()
        harness.engine.pause_account(ADMIN, account_id)

        with pytest.raises(AccountNotActive):
            harness.engine.enable_broker_asset_policy(
                BROKER, account_id, SHARE, AssetDirection.DEPOSIT
            )
        assert not harness.engine.is_asset_permitted(account_id, SHARE, AssetDirection.DEPOSIT)

    def test_policy_outsider_rejected(self, harness):
        account_id = harness.open_account()
        with pytest.raises(NotAccountOwner):
            harness.engine.enable_broker_asset_policy(
                OUTSIDER, account_id, SHARE, AssetDirection.DEPOSIT
            )
