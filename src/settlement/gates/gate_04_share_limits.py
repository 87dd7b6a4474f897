"""GATE 4: Share Limits

- Mint: total_shares_outstanding + shares_minted <= share_mint_limit
  (нарушение откатывает депозит целиком, частичного mint нет)
- Burn: для лимитных счетов нельзя сжечь больше, чем учтено outstanding
"""

from src.core.domain.broker_account import BrokerAccount
from src.core.errors import BurnExceedsOutstanding, MintLimitExceeded
from src.settlement.gates.base import GateResult


class Gate04ShareLimits:
    """GATE 4: mint limit и burn outstanding."""

    def evaluate_mint(self, account: BrokerAccount, shares_minted: int) -> GateResult:
        if not account.has_mint_limit:
            return GateResult.passed("PASS: unlimited account")

        outstanding_after = account.total_shares_outstanding + shares_minted
        if outstanding_after > account.share_mint_limit:
            return GateResult.blocked(
                block_reason="mint_limit_exceeded",
                error=MintLimitExceeded,
                details=(
                    f"outstanding {outstanding_after} would exceed limit "
                    f"{account.share_mint_limit}"
                ),
                data={
                    "account_id": account.account_id,
                    "outstanding_after": outstanding_after,
                    "limit": account.share_mint_limit,
                },
            )
        return GateResult.passed(
            f"PASS: {account.share_mint_limit - outstanding_after} shares of capacity left"
        )

    def evaluate_burn(self, account: BrokerAccount, shares_burnt: int) -> GateResult:
        if account.has_mint_limit and shares_burnt > account.total_shares_outstanding:
            return GateResult.blocked(
                block_reason="burn_exceeds_outstanding",
                error=BurnExceedsOutstanding,
                details=(
                    f"burn {shares_burnt} exceeds outstanding "
                    f"{account.total_shares_outstanding}"
                ),
                data={
                    "account_id": account.account_id,
                    "shares": shares_burnt,
                    "outstanding": account.total_shares_outstanding,
                },
            )
        return GateResult.passed()
