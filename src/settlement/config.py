"""Engine Config — конфигурация движка расчётов.

Frozen dataclass с валидацией в __post_init__. from_mapping() собирает
конфиг из обычного dict (например, распарсенного JSON).
"""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping

from src.core.domain.units import BPS_DENOMINATOR, is_zero_address, normalize_address
from src.core.errors import ConfigurationError

# Верхняя граница годовой management fee по умолчанию (10%)
DEFAULT_MAX_MANAGEMENT_FEE_BPS = 1_000


@dataclass(frozen=True)
class EngineConfig:
    """Конфигурация SettlementEngine.

    Attributes:
        chain_id: chain исполнения (часть domain separator intent)
        engine_address: адрес движка (держит shares/активы в ходе расчёта)
        admin: администратор (management fee, открытие счетов, pause)
        protocol_fee_recipient: получатель protocol fees и management fee
        managers: адреса с правом управления счетами наравне с владельцем
        management_fee_rate_bps: начальная годовая ставка management fee
        max_management_fee_bps: верхняя граница ставки management fee
    """

    chain_id: int
    engine_address: str
    admin: str
    protocol_fee_recipient: str
    managers: FrozenSet[str] = field(default_factory=frozenset)
    management_fee_rate_bps: int = 0
    max_management_fee_bps: int = DEFAULT_MAX_MANAGEMENT_FEE_BPS

    def __post_init__(self):
        try:
            engine = normalize_address(self.engine_address)
            admin = normalize_address(self.admin)
            recipient = normalize_address(self.protocol_fee_recipient)
            managers = frozenset(normalize_address(m) for m in self.managers)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if self.chain_id < 0:
            raise ConfigurationError(f"chain_id must be non-negative, got {self.chain_id}")
        if is_zero_address(engine):
            raise ConfigurationError("engine_address cannot be the zero address")
        if is_zero_address(recipient):
            raise ConfigurationError("protocol_fee_recipient cannot be the zero address")
        if not 0 <= self.max_management_fee_bps < BPS_DENOMINATOR:
            raise ConfigurationError(
                f"max_management_fee_bps must be in [0, {BPS_DENOMINATOR}), "
                f"got {self.max_management_fee_bps}"
            )
        if not 0 <= self.management_fee_rate_bps <= self.max_management_fee_bps:
            raise ConfigurationError(
                f"management_fee_rate_bps {self.management_fee_rate_bps} outside "
                f"[0, {self.max_management_fee_bps}]"
            )

        # frozen: нормализованные значения через object.__setattr__
        object.__setattr__(self, "engine_address", engine)
        object.__setattr__(self, "admin", admin)
        object.__setattr__(self, "protocol_fee_recipient", recipient)
        object.__setattr__(self, "managers", managers)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """
        Raises:
            ConfigurationError: Если отсутствуют обязательные ключи или значения невалидны
        """
        required = ("chain_id", "engine_address", "admin", "protocol_fee_recipient")
        missing = [k for k in required if k not in data]
        if missing:
            raise ConfigurationError(f"missing engine config keys: {', '.join(missing)}")

        return cls(
            chain_id=int(data["chain_id"]),
            engine_address=data["engine_address"],
            admin=data["admin"],
            protocol_fee_recipient=data["protocol_fee_recipient"],
            managers=frozenset(data.get("managers", ())),
            management_fee_rate_bps=int(data.get("management_fee_rate_bps", 0)),
            max_management_fee_bps=int(
                data.get("max_management_fee_bps", DEFAULT_MAX_MANAGEMENT_FEE_BPS)
            ),
        )

    def is_manager(self, address: str) -> bool:
        address = normalize_address(address)
        return address == self.admin or address in self.managers
