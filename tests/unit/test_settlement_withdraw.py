"""
Тесты выводов SettlementEngine (прямые и по подписанному intent)

Coverage:
- Exit fees в asset units, распределение получателям
- Performance fee относительно средней цены входа
- MAX shares, сброс средней цены после полного вывода, новый цикл по своей цене
- Expiration не блокирует вывод, pause блокирует
- Burn outstanding для лимитных и безлимитных счетов
- Intent: tip и bribe из net payout, покрытие, сожжённый nonce
"""

import pytest

from src.core.domain.broker_account import FeeSchedule
from src.core.domain.events import WithdrawSettled
from src.core.domain.units import MAX_UINT, WAD
from src.core.errors import (
    AccountNotActive,
    AmountBelowMinimum,
    BurnExceedsOutstanding,
    InsufficientAmountForBribeAndTip,
    SlippageExceeded,
)
from tests.harness import (
    ADMIN,
    ASSET,
    BROKER,
    BROKER_FEES,
    DAY,
    FUND,
    OUTSIDER,
    PROTOCOL,
    RELAYER,
    SHARE,
)

EXIT_FEES = FeeSchedule(broker_exit_fee_bps=100, protocol_exit_fee_bps=50)


@pytest.fixture
def funded(harness):
    """Счёт с exit fees и 10000 shares у брокера."""
    account_id = harness.open_account(fees=EXIT_FEES, fee_recipient=BROKER_FEES)
    harness.fund(BROKER, 10_000)
    harness.engine.deposit(BROKER, harness.deposit_order(account_id, 10_000))
    return account_id


# =============================================================================
# ТЕСТЫ: Прямой вывод
# =============================================================================


class TestDirectWithdraw:
    def test_exit_fees(self, harness, funded):
        """4000 shares → 4000 asset; exit 100 + 50 bps → 40 / 20 fees, 3940 получателю."""
        result = harness.engine.withdraw(BROKER, harness.withdraw_order(funded, 4_000))

        assert result.assets_out == 4_000
        assert result.liquidity_units == 4_000
        assert (result.user_amount, result.broker_fee, result.protocol_fee) == (3_940, 40, 20)

        assert harness.balance(ASSET, BROKER) == 3_940
        assert harness.balance(ASSET, BROKER_FEES) == 40
        assert harness.balance(ASSET, PROTOCOL) == 20
        assert harness.balance(ASSET, FUND) == 6_000
        assert harness.balance(SHARE, BROKER) == 6_000
        assert harness.balance(ASSET, harness.engine.address) == 0

        account = harness.engine.get_account_info(funded)
        assert account.total_shares_outstanding == 6_000
        assert account.cumulative_shares_minted == 10_000

    def test_event_emitted(self, harness, funded):
        harness.engine.withdraw(BROKER, harness.withdraw_order(funded, 1_000, recipient=OUTSIDER))

        event = harness.engine.events[-1]
        assert isinstance(event, WithdrawSettled)
        assert event.shares_burnt == 1_000
        assert event.recipient == OUTSIDER
        assert harness.balance(ASSET, OUTSIDER) == event.user_assets

    def test_max_shares_and_history_reset(self, harness, funded):
        result = harness.engine.withdraw(BROKER, harness.withdraw_order(funded, MAX_UINT))

        assert result.assets_out == 10_000
        assert harness.balance(SHARE, BROKER) == 0

        account = harness.engine.get_account_info(funded)
        assert account.total_shares_outstanding == 0
        assert account.cumulative_shares_minted == 0
        assert account.cumulative_units_deposited == 0

    def test_zero_shares_rejected(self, harness):
        account_id = harness.open_account(is_public=True)
        harness.fund(OUTSIDER, 0)

        with pytest.raises(AmountBelowMinimum):
            harness.engine.withdraw(OUTSIDER, harness.withdraw_order(account_id, MAX_UINT))

    def test_expired_account_still_withdrawable(self, harness, funded):
        harness.clock.advance(31 * DAY)

        result = harness.engine.withdraw(BROKER, harness.withdraw_order(funded, 1_000))

        assert result.assets_out == 1_000

    def test_paused_account_blocks_withdraw(self, harness, funded):
        harness.engine.pause_account(ADMIN, funded)

        with pytest.raises(AccountNotActive):
            harness.engine.withdraw(BROKER, harness.withdraw_order(funded, 1_000))

    def test_slippage_rolls_back(self, harness, funded):
        with pytest.raises(SlippageExceeded):
            harness.engine.withdraw(
                BROKER, harness.withdraw_order(funded, 4_000, min_amount_out=3_950)
            )

        assert harness.balance(SHARE, BROKER) == 10_000
        assert harness.balance(ASSET, FUND) == 10_000
        assert harness.vault.internal_vault().total_assets == 10_000
        assert harness.engine.get_account_info(funded).total_shares_outstanding == 10_000


class TestPerformanceFee:
    @pytest.fixture
    def account_id(self, harness):
        account_id = harness.open_account(
            fees=FeeSchedule(broker_performance_fee_bps=1_000), fee_recipient=BROKER_FEES
        )
        harness.fund(BROKER, 10_000)
        harness.engine.deposit(BROKER, harness.deposit_order(account_id, 10_000))
        return account_id

    def test_fee_on_gain(self, harness, account_id):
        """Цена share удвоилась: performance 5000, broker fee 10% = 500."""
        harness.ledger.mint(ASSET, OUTSIDER, 10_000)
        harness.vault.donate(ASSET, 10_000, OUTSIDER)

        result = harness.engine.withdraw(BROKER, harness.withdraw_order(account_id, 5_000))

        assert result.assets_out == 10_000
        assert result.broker_fee == 500
        assert result.user_amount == 9_500
        assert harness.balance(ASSET, BROKER_FEES) == 500

        account = harness.engine.get_account_info(account_id)
        assert account.total_shares_outstanding == 5_000
        assert account.cumulative_units_deposited == 10_000

    def test_no_fee_without_gain(self, harness, account_id):
        result = harness.engine.withdraw(BROKER, harness.withdraw_order(account_id, 5_000))
        assert result.broker_fee == 0
        assert result.user_amount == 5_000

    def test_new_cycle_uses_own_entry_price(self, harness, account_id):
        """
        Цикл 1 по цене 1 закрыт полностью; цикл 2 входит по цене 2.

        Performance цикла 2 считается от цены 2: рост до 2.2 на 5000 shares
        даёт 1000 units, broker fee 10% = 100.
        """
        other = harness.open_account(owner=OUTSIDER)
        harness.fund(OUTSIDER, 33_000)
        harness.engine.deposit(
            OUTSIDER, harness.deposit_order(other, 10_000, recipient=OUTSIDER)
        )

        harness.vault.donate(ASSET, 20_000, OUTSIDER)
        first = harness.engine.withdraw(BROKER, harness.withdraw_order(account_id, MAX_UINT))
        assert first.broker_fee == 1_000
        assert harness.engine.get_account_info(account_id).cumulative_shares_minted == 0

        second = harness.engine.deposit(BROKER, harness.deposit_order(account_id, 10_000))
        assert second.shares_out == 5_000
        assert harness.engine.get_account_info(account_id).average_entry_price_wad() == 2 * WAD

        harness.vault.donate(ASSET, 3_000, OUTSIDER)
        result = harness.engine.withdraw(BROKER, harness.withdraw_order(account_id, 5_000))

        assert result.liquidity_units == 11_000
        assert result.broker_fee == 100
        assert result.user_amount == 10_900


class TestShareLimits:
    def test_limited_account_cannot_burn_foreign_shares(self, harness):
        limited = harness.open_account(share_mint_limit=1_000_000)
        unlimited = harness.open_account()
        harness.fund(BROKER, 1_500)
        harness.engine.deposit(BROKER, harness.deposit_order(limited, 1_000))
        harness.engine.deposit(BROKER, harness.deposit_order(unlimited, 500))

        with pytest.raises(BurnExceedsOutstanding):
            harness.engine.withdraw(BROKER, harness.withdraw_order(limited, 1_200))

        assert harness.balance(SHARE, BROKER) == 1_500

    def test_unlimited_account_saturates(self, harness):
        limited = harness.open_account(share_mint_limit=1_000_000)
        unlimited = harness.open_account()
        harness.fund(BROKER, 1_500)
        harness.engine.deposit(BROKER, harness.deposit_order(limited, 1_000))
        harness.engine.deposit(BROKER, harness.deposit_order(unlimited, 500))

        harness.engine.withdraw(BROKER, harness.withdraw_order(unlimited, 1_200))

        account = harness.engine.get_account_info(unlimited)
        assert account.total_shares_outstanding == 0
        assert account.cumulative_shares_minted == 0
        assert harness.engine.get_account_info(limited).total_shares_outstanding == 1_000


# =============================================================================
# ТЕСТЫ: Intent вывод
# =============================================================================


class TestIntentWithdraw:
    @pytest.fixture
    def account_id(self, harness):
        user = harness.user.address
        account_id = harness.open_account(is_public=True)
        harness.fund(user, 1_000)
        harness.engine.deposit(user, harness.deposit_order(account_id, 1_000, recipient=user))
        return account_id

    def test_tip_and_bribe_from_payout(self, harness, account_id):
        user = harness.user.address
        intent = harness.withdraw_intent(account_id, 1_000, relayer_tip=10, bribe=5)

        result = harness.engine.intent_withdraw(RELAYER, intent)

        assert result.assets_out == 1_000
        assert result.user_amount == 985
        assert harness.balance(ASSET, user) == 985
        assert harness.balance(ASSET, RELAYER) == 10
        assert harness.balance(ASSET, FUND) == 5
        assert harness.balance(SHARE, user) == 0
        assert harness.engine.nonces(user, account_id) == 1

    def test_payout_must_cover_bribe_and_tip(self, harness, account_id):
        user = harness.user.address
        intent = harness.withdraw_intent(account_id, 10, relayer_tip=20)

        with pytest.raises(InsufficientAmountForBribeAndTip):
            harness.engine.intent_withdraw(RELAYER, intent)

        assert harness.balance(SHARE, user) == 1_000
        assert harness.engine.nonces(user, account_id) == 1

    def test_slippage_after_tip(self, harness, account_id):
        intent = harness.withdraw_intent(account_id, 1_000, relayer_tip=10, min_amount_out=995)

        with pytest.raises(SlippageExceeded):
            harness.engine.intent_withdraw(RELAYER, intent)

    def test_deposit_intent_rejected(self, harness, account_id):
        intent = harness.deposit_intent(account_id, 100)
        with pytest.raises(TypeError):
            harness.engine.intent_withdraw(RELAYER, intent)


class TestRoundTrip:
    def test_zero_fee_round_trip(self, harness):
        """Без fees депозит и полный вывод возвращают исходную сумму."""
        account_id = harness.open_account()
        harness.fund(BROKER, 1_234)

        harness.engine.deposit(BROKER, harness.deposit_order(account_id, 1_234))
        result = harness.engine.withdraw(BROKER, harness.withdraw_order(account_id, MAX_UINT))

        assert result.user_amount == 1_234
        assert harness.balance(ASSET, BROKER) == 1_234
        assert harness.balance(SHARE, BROKER) == 0
