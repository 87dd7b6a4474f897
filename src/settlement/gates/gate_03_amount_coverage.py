"""GATE 3: Amount Coverage

- Сумма после разрешения MAX обязана быть > 0
- Сумма обязана покрывать bribe + relayer tip (intent-варианты)
"""

from src.core.errors import AmountBelowMinimum, InsufficientAmountForBribeAndTip
from src.settlement.gates.base import GateResult


class Gate03AmountCoverage:
    """GATE 3: сумма покрывает bribe + tip."""

    def evaluate(
        self,
        amount: int,
        bribe: int = 0,
        relayer_tip: int = 0,
        require_positive: bool = True,
    ) -> GateResult:
        # Вывод: net payout после fees может быть 0, проверяется только покрытие
        if require_positive and amount <= 0:
            return GateResult.blocked(
                block_reason="amount_zero",
                error=AmountBelowMinimum,
                details="resolved amount is zero",
                data={"amount": amount},
            )
        if amount < bribe + relayer_tip:
            return GateResult.blocked(
                block_reason="insufficient_for_bribe_and_tip",
                error=InsufficientAmountForBribeAndTip,
                details=f"amount {amount} < bribe {bribe} + relayer tip {relayer_tip}",
                data={"amount": amount, "bribe": bribe, "relayer_tip": relayer_tip},
            )
        return GateResult.passed()
