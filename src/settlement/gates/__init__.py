"""Gates — индивидуальные проверки движка расчётов.

- GATE 0: Deadline
- GATE 1: Account Access (публичность / владелец / lifecycle / expiration)
- GATE 2: Asset Policy
- GATE 3: Amount Coverage (MAX resolution, bribe + tip)
- GATE 4: Share Limits (mint limit, burn outstanding)
- GATE 5: Slippage Floor
"""

from .base import GateResult
from .gate_00_deadline import Gate00Deadline
from .gate_01_account_access import Gate01AccountAccess
from .gate_02_asset_policy import Gate02AssetPolicy
from .gate_03_amount_coverage import Gate03AmountCoverage
from .gate_04_share_limits import Gate04ShareLimits
from .gate_05_slippage import Gate05Slippage

__all__ = [
    "GateResult",
    "Gate00Deadline",
    "Gate01AccountAccess",
    "Gate02AssetPolicy",
    "Gate03AmountCoverage",
    "Gate04ShareLimits",
    "Gate05Slippage",
]
