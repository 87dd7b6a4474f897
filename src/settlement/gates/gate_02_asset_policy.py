"""GATE 2: Asset Policy

Актив обязан быть разрешён для направления (deposit / withdraw) на данном
счёте. Глобальный allow-list здесь не учитывается.
"""

from src.core.domain.broker_account import AssetDirection
from src.core.errors import AssetNotPermitted
from src.registry.policy_store import AssetPolicyStore
from src.settlement.gates.base import GateResult


class Gate02AssetPolicy:
    """GATE 2: (asset, direction) policy bit."""

    def __init__(self, policy_store: AssetPolicyStore):
        self.policy_store = policy_store

    def evaluate(self, account_id: int, asset: str, direction: AssetDirection) -> GateResult:
        if not self.policy_store.is_permitted(account_id, asset, direction):
            return GateResult.blocked(
                block_reason="asset_not_permitted",
                error=AssetNotPermitted,
                details=f"{asset} not permitted for {direction.value} on account {account_id}",
                data={"account_id": account_id, "asset": asset, "direction": direction.value},
            )
        return GateResult.passed()
