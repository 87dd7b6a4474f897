"""GATE 5: Slippage Floor

Сумма, доставляемая получателю (после fees, tip и bribe), не может быть
меньше заявленного минимума ордера.
"""

from src.core.errors import SlippageExceeded
from src.settlement.gates.base import GateResult


class Gate05Slippage:
    """GATE 5: net output >= заявленный минимум."""

    def evaluate(self, delivered: int, minimum: int, unit: str) -> GateResult:
        if delivered < minimum:
            return GateResult.blocked(
                block_reason="slippage_exceeded",
                error=SlippageExceeded,
                details=f"delivered {delivered} {unit} below minimum {minimum}",
                data={"delivered": delivered, "minimum": minimum, "unit": unit},
            )
        return GateResult.passed()
