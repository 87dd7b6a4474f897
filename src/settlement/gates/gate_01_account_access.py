"""GATE 1: Account Access — lifecycle, публичность, владелец

Порядок проверок:
1. Состояние: только ACTIVE (PAUSED / CLOSED блокируются); у закрытого
   счёта владельца уже нет, поэтому состояние проверяется первым
2. Непубличный счёт → плательщик обязан быть владельцем
3. Expiration: блокирует только депозиты; истёкший счёт должен
   оставаться доступным для вывода
"""

from src.core.domain.broker_account import AccountState, AssetDirection, BrokerAccount
from src.core.errors import AccountExpired, AccountNotActive, AccountNotPublic
from src.settlement.gates.base import GateResult


class Gate01AccountAccess:
    """GATE 1: доступ плательщика к счёту."""

    def evaluate(
        self,
        account: BrokerAccount,
        payer_is_owner: bool,
        direction: AssetDirection,
        now: int,
    ) -> GateResult:
        data = {"account_id": account.account_id}

        # 1. Lifecycle
        if account.state != AccountState.ACTIVE:
            return GateResult.blocked(
                block_reason=f"account_{account.state.value.lower()}",
                error=AccountNotActive,
                details=f"account {account.account_id} is {account.state.value}",
                data=data,
            )

        # 2. Публичность / владелец
        if not account.is_public and not payer_is_owner:
            return GateResult.blocked(
                block_reason="account_not_public",
                error=AccountNotPublic,
                details=f"account {account.account_id} is private; only its owner may settle",
                data=data,
            )

        # 3. Expiration (только для депозитов)
        if direction == AssetDirection.DEPOSIT and account.is_expired(now):
            return GateResult.blocked(
                block_reason="account_expired",
                error=AccountExpired,
                details=(
                    f"account {account.account_id} expired at "
                    f"{account.expiration_timestamp}"
                ),
                data=data,
            )

        return GateResult.passed(
            f"PASS: account={account.account_id}, direction={direction.value}"
        )
