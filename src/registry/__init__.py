"""Registry — брокерские счета, жизненный цикл и per-account asset policy.

- BrokerAccountRegistry: записи счетов + ownership map
- AccountLifecycleMachine: ACTIVE ⇄ PAUSED, ACTIVE → CLOSED
- AssetPolicyStore: (account, asset, direction) allow-list
"""

from .account_registry import BrokerAccountRegistry
from .policy_store import AssetPolicyStore
from .state_machine import (
    AccountLifecycleMachine,
    LifecycleAction,
    LifecycleTransitionResult,
)

__all__ = [
    "BrokerAccountRegistry",
    "AssetPolicyStore",
    "AccountLifecycleMachine",
    "LifecycleAction",
    "LifecycleTransitionResult",
]
