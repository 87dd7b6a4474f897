"""Simulated TransferAuthorization: перевод по разрешению владельца."""

from dataclasses import dataclass
from typing import Dict, Tuple

from src.core.domain.units import MAX_UINT, normalize_address
from src.sim.token_ledger import InMemoryTokenLedger


class TransferNotAuthorized(PermissionError):
    """Владелец не разрешил перевод (или разрешение исчерпано)."""


@dataclass
class SimulatedTransferAuthority:
    """
    Разрешения (owner, token) → остаток.

    MAX_UINT — бессрочное разрешение, не уменьшается при переводах.
    """

    ledger: InMemoryTokenLedger

    def __post_init__(self):
        self._allowances: Dict[Tuple[str, str], int] = {}

    def approve(self, owner: str, token: str, amount: int = MAX_UINT) -> None:
        self._allowances[(normalize_address(owner), normalize_address(token))] = amount

    def allowance(self, owner: str, token: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(token)), 0)

    def transfer_from(self, owner: str, to: str, amount: int, token: str) -> None:
        key = (normalize_address(owner), normalize_address(token))
        allowed = self._allowances.get(key, 0)
        if amount > allowed:
            raise TransferNotAuthorized(
                f"{key[0]} authorized {allowed} of {key[1]}, requested {amount}"
            )
        self.ledger.transfer(token, owner, to, amount)
        if allowed != MAX_UINT:
            self._allowances[key] = allowed - amount

    def snapshot(self) -> Dict[Tuple[str, str], int]:
        return dict(self._allowances)

    def restore(self, snapshot: Dict[Tuple[str, str], int]) -> None:
        self._allowances = dict(snapshot)
