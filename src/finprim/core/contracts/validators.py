"""
Контракты запросов к солверам ставок

Запрос IRR/XIRR приходит как JSON-совместимый dict и проверяется против
JSON Schema (draft 2020-12) до того, как из него будет построен SolverConfig.

Схемы лежат в пакете (finprim/core/contracts/schema/):
- irr_request.json: регулярные cash flows
- xirr_request.json: датированные cash flows

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Каждая схема проходит meta-валидацию при первой загрузке
2. Схема читается с диска не более одного раза на загрузчик
3. Валидатор не изменяет проверяемый payload
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from jsonschema import Draft202012Validator, SchemaError, ValidationError

SCHEMA_SUFFIX = ".json"
PACKAGED_SCHEMA_DIR = Path(__file__).resolve().parent / "schema"


# =============================================================================
# ЗАГРУЗКА СХЕМ
# =============================================================================


class SchemaLoader:
    """Читает и кэширует схемы контрактов из одного каталога."""

    def __init__(self, schema_dir: Optional[Path] = None):
        root = Path(schema_dir) if schema_dir is not None else PACKAGED_SCHEMA_DIR
        if not root.is_dir():
            raise RuntimeError(f"Contract schema directory is missing: {root}")
        self._root = root
        self._cache: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._root

    def available(self) -> List[str]:
        """Имена схем каталога (без расширения), по алфавиту."""
        return sorted(path.stem for path in self._root.glob(f"*{SCHEMA_SUFFIX}"))

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Вернуть схему по имени, прочитав её при первом обращении.

        Raises:
            FileNotFoundError: Схемы с таким именем нет в каталоге
            ValueError: Файл не является корректной draft 2020-12 схемой
        """
        cached = self._cache.get(schema_name)
        if cached is not None:
            return cached

        source = self._root / f"{schema_name}{SCHEMA_SUFFIX}"
        if not source.is_file():
            raise FileNotFoundError(f"No contract schema named {schema_name!r} in {self._root}")

        schema = json.loads(source.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            raise ValueError(f"Invalid JSON Schema {source.name}: {e.message}") from e

        self._cache[schema_name] = schema
        return schema


@lru_cache(maxsize=None)
def _packaged_loader() -> SchemaLoader:
    return SchemaLoader()


@lru_cache(maxsize=None)
def _compiled(schema_name: str) -> Draft202012Validator:
    return Draft202012Validator(_packaged_loader().load_schema(schema_name))


# =============================================================================
# ВАЛИДАТОРЫ
# =============================================================================


class ContractValidator:
    """
    Проверка payload против одной из поставляемых схем.

    Скомпилированный Draft202012Validator общий для всех экземпляров
    с одинаковым schema_name.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self._validator = _compiled(schema_name)

    @property
    def schema(self) -> Dict[str, Any]:
        return self._validator.schema

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: Первое найденное нарушение контракта
        """
        self._validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self._validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        return self._validator.iter_errors(data)

    def error_messages(self, data: Dict[str, Any]) -> List[str]:
        """
        Все нарушения в виде "path: message", упорядоченные по пути.

        Корень payload обозначается как <root>.
        """
        messages = []
        for error in sorted(self.iter_errors(data), key=lambda err: list(map(str, err.absolute_path))):
            path = "/".join(str(part) for part in error.absolute_path) or "<root>"
            messages.append(f"{path}: {error.message}")
        return messages


class IrrRequestValidator(ContractValidator):
    def __init__(self):
        super().__init__("irr_request")


class XirrRequestValidator(ContractValidator):
    def __init__(self):
        super().__init__("xirr_request")


def validate_irr_request(data: Dict[str, Any]) -> None:
    """Проверить запрос IRR; ValidationError при нарушении контракта."""
    IrrRequestValidator().validate(data)


def validate_xirr_request(data: Dict[str, Any]) -> None:
    """Проверить запрос XIRR; ValidationError при нарушении контракта."""
    XirrRequestValidator().validate(data)
