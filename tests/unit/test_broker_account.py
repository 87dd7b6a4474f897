"""
Тесты для BrokerAccount и FeeSchedule

Проверяют:
1. Ленивое истечение счёта (строго после expiration)
2. Среднюю цену входа (WAD, вверх)
3. Счётчики: накопление при mint, сброс при возврате outstanding к нулю
4. Валидацию пар ставок
"""

import pytest
from pydantic import ValidationError

from src.core.domain.broker_account import (
    AccountState,
    BrokerAccount,
    FeeSchedule,
    OpenAccountParams,
)
from src.core.domain.units import MAX_UINT

OWNER = "0x" + "11" * 20


@pytest.fixture
def account():
    return BrokerAccount(
        account_id=1,
        owner=OWNER,
        fee_recipient=OWNER,
        expiration_timestamp=100,
        share_mint_limit=1_000,
    )


class TestExpiration:
    def test_not_expired_at_exact_timestamp(self, account):
        assert not account.is_expired(100)

    def test_expired_after_timestamp(self, account):
        assert account.is_expired(101)

    def test_zero_never_expires(self, account):
        forever = account.model_copy(update={"expiration_timestamp": 0})
        assert not forever.is_expired(10**12)


class TestCounters:
    """Тесты with_deposit / with_burn."""

    def test_deposit_accumulates(self, account):
        updated = account.with_deposit(300, 600).with_deposit(100, 200)

        assert updated.total_shares_outstanding == 400
        assert updated.cumulative_shares_minted == 400
        assert updated.cumulative_units_deposited == 800
        # Immutable: исходная запись не изменилась
        assert account.total_shares_outstanding == 0

    def test_partial_burn_keeps_history(self, account):
        updated = account.with_deposit(300, 600).with_burn(100)

        assert updated.total_shares_outstanding == 200
        assert updated.cumulative_shares_minted == 300
        assert updated.cumulative_units_deposited == 600

    def test_full_burn_resets_history(self, account):
        updated = account.with_deposit(300, 600).with_burn(300)

        assert updated.total_shares_outstanding == 0
        assert updated.cumulative_shares_minted == 0
        assert updated.cumulative_units_deposited == 0

    def test_over_burn_saturates(self, account):
        updated = account.with_deposit(300, 600).with_burn(500)
        assert updated.total_shares_outstanding == 0
        assert updated.cumulative_shares_minted == 0

    def test_remaining_capacity(self, account):
        assert account.with_deposit(300, 300).remaining_mint_capacity() == 700

    def test_unlimited_capacity(self, account):
        unlimited = account.model_copy(update={"share_mint_limit": MAX_UINT})
        assert not unlimited.has_mint_limit
        assert unlimited.remaining_mint_capacity() == MAX_UINT


class TestAverageEntryPrice:
    def test_no_history(self, account):
        assert account.average_entry_price_wad() == 0

    def test_exact(self, account):
        assert account.with_deposit(1_000, 2_000).average_entry_price_wad() == 2 * 10**18

    def test_rounds_up(self, account):
        assert account.with_deposit(3, 1).average_entry_price_wad() == 333_333_333_333_333_334


class TestStateAndValidation:
    def test_with_state(self, account):
        paused = account.with_state(AccountState.PAUSED)
        assert paused.state == AccountState.PAUSED
        assert not paused.is_active
        assert account.is_active

    def test_frozen(self, account):
        with pytest.raises(ValidationError):
            account.state = AccountState.CLOSED

    def test_address_normalized(self):
        params = OpenAccountParams(user="0x" + "AB" * 20, ttl=10)
        assert params.user == "0x" + "ab" * 20

    def test_invalid_address_rejected(self):
        with pytest.raises(ValidationError):
            OpenAccountParams(user="not-an-address", ttl=10)

    def test_fee_pair_must_stay_below_100_pct(self):
        with pytest.raises(ValueError, match="entrance"):
            FeeSchedule(
                broker_entrance_fee_bps=5_000, protocol_entrance_fee_bps=5_000
            ).validate_pairs()
        FeeSchedule(broker_exit_fee_bps=4_999, protocol_exit_fee_bps=5_000).validate_pairs()

    def test_single_rate_bounded(self):
        with pytest.raises(ValidationError):
            FeeSchedule(broker_exit_fee_bps=10_001)

    def test_charges_performance(self):
        assert not FeeSchedule().charges_performance
        assert FeeSchedule(protocol_performance_fee_bps=1).charges_performance
