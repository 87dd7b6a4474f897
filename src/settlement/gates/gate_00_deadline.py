"""GATE 0: Deadline

Первый gate в цепочке: вызов в момент deadline или позже отклоняется
до любых переводов токенов и до потребления nonce.
"""

from src.core.errors import DeadlineExpired
from src.settlement.gates.base import GateResult


class Gate00Deadline:
    """GATE 0: ордер не просрочен (now < deadline)."""

    def evaluate(self, deadline: int, now: int) -> GateResult:
        if now >= deadline:
            return GateResult.blocked(
                block_reason="deadline_expired",
                error=DeadlineExpired,
                details=f"order deadline {deadline} reached at {now}",
                data={"deadline": deadline, "now": now},
            )
        return GateResult.passed(f"PASS: {deadline - now}s before deadline")
