"""
JSON Schema Contract Validators

Валидация экспортируемых снапшотов ledger согласно формальным JSON Schema
контрактам. Использует библиотеку jsonschema (Draft 2020-12).

Схемы:
- campaign_state.json (SaleEngine.snapshot)
- settlement_token_state.json (RedeemableToken.snapshot)
- escrow_state.json (Escrow.snapshot)
"""

import json
from pathlib import Path
from typing import Any, Dict, Type

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import BaseModel

from src.core.domain.snapshots import CampaignSnapshot, EscrowSnapshot, SettlementTokenSnapshot


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Автоматически находит схемы в contracts/schema/ относительно корня проекта.
    """

    def __init__(self):
        # Корень проекта (4 уровня вверх от этого файла)
        self._schema_dir = Path(__file__).parent.parent.parent.parent / "contracts" / "schema"
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
            schema_name: Имя схемы без расширения (например, 'campaign_state')

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

        # Meta-validation
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Базовый класс: валидация данных против одной JSON Schema."""

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
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


class CampaignStateValidator(ContractValidator):
    """Валидатор campaign_state (снапшот SaleEngine)."""

    def __init__(self):
        super().__init__("campaign_state")


class SettlementTokenStateValidator(ContractValidator):
    """Валидатор settlement_token_state (снапшот RedeemableToken)."""

    def __init__(self):
        super().__init__("settlement_token_state")


class EscrowStateValidator(ContractValidator):
    """Валидатор escrow_state (снапшот Escrow)."""

    def __init__(self):
        super().__init__("escrow_state")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_campaign_state(data: Dict[str, Any]) -> None:
    """
    Валидация campaign_state данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    CampaignStateValidator().validate(data)


def validate_settlement_token_state(data: Dict[str, Any]) -> None:
    """
    Валидация settlement_token_state данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    SettlementTokenStateValidator().validate(data)


def validate_escrow_state(data: Dict[str, Any]) -> None:
    """
    Валидация escrow_state данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    EscrowStateValidator().validate(data)


_SNAPSHOT_VALIDATORS: Dict[Type[BaseModel], Type[ContractValidator]] = {
    CampaignSnapshot: CampaignStateValidator,
    SettlementTokenSnapshot: SettlementTokenStateValidator,
    EscrowSnapshot: EscrowStateValidator,
}


def validate_snapshot(snapshot: BaseModel) -> Dict[str, Any]:
    """
    Валидация снапшота живого объекта против его контракта.

    Схема выбирается по типу модели. Снапшот сериализуется в JSON-режиме
    (enum → строка, None → null), как он уходит наружу.

    Returns:
        Проверенный JSON dict

    Raises:
        TypeError: Если для типа снапшота нет контракта
        ValidationError: Если данные не соответствуют схеме
    """
    validator_cls = _SNAPSHOT_VALIDATORS.get(type(snapshot))
    if validator_cls is None:
        raise TypeError(f"No contract for snapshot type {type(snapshot).__name__}")

    data = snapshot.model_dump(mode="json")
    validator_cls().validate(data)
    return data
