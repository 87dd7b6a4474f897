"""Policy Store — per-account allow-list активов по направлениям.

Флаги (account_id, asset, direction) независимы от любого глобального
allow-list: актив, разрешённый для депозита, не разрешён автоматически
для вывода.
"""

from typing import Dict, Tuple

from src.core.domain.broker_account import AssetDirection
from src.core.domain.units import normalize_address

PolicyKey = Tuple[int, str, AssetDirection]


class AssetPolicyStore:
    """Хранилище per-account asset policy."""

    def __init__(self):
        self._flags: Dict[PolicyKey, bool] = {}

    def enable(self, account_id: int, asset: str, direction: AssetDirection) -> None:
        self._flags[(account_id, normalize_address(asset), direction)] = True

    def disable(self, account_id: int, asset: str, direction: AssetDirection) -> None:
        self._flags.pop((account_id, normalize_address(asset), direction), None)

    def is_permitted(self, account_id: int, asset: str, direction: AssetDirection) -> bool:
        return self._flags.get((account_id, normalize_address(asset), direction), False)

    def permitted_assets(self, account_id: int, direction: AssetDirection) -> list[str]:
        return sorted(
            asset
            for (acc, asset, d), flag in self._flags.items()
            if acc == account_id and d == direction and flag
        )

    # Snapshot scope движка

    def snapshot(self) -> Dict[PolicyKey, bool]:
        return dict(self._flags)

    def restore(self, snapshot: Dict[PolicyKey, bool]) -> None:
        self._flags = dict(snapshot)
