"""In-memory token ledger: балансы (token, owner) и total supply."""

from dataclasses import dataclass
from typing import Dict, Tuple

from src.core.domain.units import normalize_address, validate_amount


class InsufficientBalance(ValueError):
    """Перевод или burn больше баланса."""


@dataclass
class InMemoryTokenLedger:
    """
    Deterministic token ledger:
      - все адреса нормализуются
      - mint/burn меняют total supply, transfer нет
    """

    def __post_init__(self):
        self._balances: Dict[Tuple[str, str], int] = {}
        self._supply: Dict[str, int] = {}

    def balance_of(self, token: str, owner: str) -> int:
        return self._balances.get((normalize_address(token), normalize_address(owner)), 0)

    def total_supply(self, token: str) -> int:
        return self._supply.get(normalize_address(token), 0)

    def mint(self, token: str, owner: str, amount: int) -> None:
        validate_amount(amount)
        token = normalize_address(token)
        key = (token, normalize_address(owner))
        self._balances[key] = self._balances.get(key, 0) + amount
        self._supply[token] = self._supply.get(token, 0) + amount

    def burn(self, token: str, owner: str, amount: int) -> None:
        token = normalize_address(token)
        key = (token, normalize_address(owner))
        validate_amount(amount)
        balance = self._balances.get(key, 0)
        if amount > balance:
            raise InsufficientBalance(f"{key[1]} cannot burn {amount} of {token}: balance {balance}")
        self._balances[key] = balance - amount
        self._supply[token] -= amount

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        token = normalize_address(token)
        src = (token, normalize_address(sender))
        dst = (token, normalize_address(recipient))
        validate_amount(amount)
        balance = self._balances.get(src, 0)
        if amount > balance:
            raise InsufficientBalance(
                f"{src[1]} cannot transfer {amount} of {token}: balance {balance}"
            )
        self._balances[src] = balance - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount

    def snapshot(self) -> Tuple[Dict[Tuple[str, str], int], Dict[str, int]]:
        return dict(self._balances), dict(self._supply)

    def restore(self, snapshot: Tuple[Dict[Tuple[str, str], int], Dict[str, int]]) -> None:
        balances, supply = snapshot
        self._balances = dict(balances)
        self._supply = dict(supply)
