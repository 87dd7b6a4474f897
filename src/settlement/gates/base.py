"""Общий результат гейта расчётов."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from src.core.errors import SettlementError


@dataclass(frozen=True)
class GateResult:
    """Результат гейта.

    entry_allowed=False всегда сопровождается error — типом ошибки, которую
    движок поднимет (raise_if_blocked).
    """

    entry_allowed: bool
    block_reason: str
    error: Optional[Type[SettlementError]]
    details: str
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def passed(cls, details: str = "PASS") -> "GateResult":
        return cls(entry_allowed=True, block_reason="", error=None, details=details)

    @classmethod
    def blocked(
        cls,
        block_reason: str,
        error: Type[SettlementError],
        details: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> "GateResult":
        return cls(
            entry_allowed=False,
            block_reason=block_reason,
            error=error,
            details=details,
            data=data,
        )

    def raise_if_blocked(self) -> None:
        if not self.entry_allowed and self.error is not None:
            raise self.error(self.details, data=self.data)
