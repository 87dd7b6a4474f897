"""
JSON Schema Contract Validators

Модуль для валидации signing payload подписанных intent согласно формальным
JSON Schema контрактам. Использует библиотеку jsonschema.

Схемы (src/core/contracts/schema/):
- deposit_intent.json
- withdraw_intent.json
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from jsonschema import Draft202012Validator


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    По умолчанию ищет схемы в каталоге schema/ рядом с этим модулем.
    """

    def __init__(self, schema_dir: Optional[Path] = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'deposit_intent')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не проходит meta-validation
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        return self.validator.iter_errors(data)


class DepositIntentValidator(ContractValidator):
    def __init__(self):
        super().__init__("deposit_intent")


class WithdrawIntentValidator(ContractValidator):
    def __init__(self):
        super().__init__("withdraw_intent")


_VALIDATORS: Dict[str, ContractValidator] = {}


def _validator_for(intent_type: str) -> ContractValidator:
    if intent_type not in _VALIDATORS:
        if intent_type == "deposit":
            _VALIDATORS[intent_type] = DepositIntentValidator()
        elif intent_type == "withdraw":
            _VALIDATORS[intent_type] = WithdrawIntentValidator()
        else:
            raise ValueError(f"Unknown intent type: {intent_type!r}")
    return _VALIDATORS[intent_type]


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_deposit_intent(data: Dict[str, Any]) -> None:
    """
    Raises:
        ValidationError: Если payload не соответствует deposit_intent.json
    """
    _validator_for("deposit").validate(data)


def validate_withdraw_intent(data: Dict[str, Any]) -> None:
    """
    Raises:
        ValidationError: Если payload не соответствует withdraw_intent.json
    """
    _validator_for("withdraw").validate(data)


def validate_intent_payload(data: Dict[str, Any]) -> None:
    """Валидация payload по полю type (deposit / withdraw)."""
    _validator_for(data.get("type", "")).validate(data)
