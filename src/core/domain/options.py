"""
Options: Модели опций продукта

Immutable Pydantic модели конфигурации продукта:
- OptionSet: именованная ось конфигурации ("Color", "Pattern")
- Option: конкретное значение внутри OptionSet ("Blue", "Plaid")
- Selection: набор выбранных опций, который реально существует/продаётся
- CatalogSnapshot: согласованный снапшот всех данных одного продукта

Соответствует схеме src/core/contracts/schema/catalog_snapshot.json (после разрешения
option_ids в объекты Option).
"""

from decimal import Decimal
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from .money import ZERO_MONEY, to_money


# =============================================================================
# OPTION
# =============================================================================


class Option(BaseModel):
    """
    Одно значение внутри OptionSet.

    price_adjustment: знаковая надбавка к базовой цене продукта (fixed-point).
    sku_extension: суффикс, добавляемый к базовому SKU.
    has_input: опция требует свободного ввода от покупателя.
    """

    id: int = Field(..., gt=0, description="Идентификатор опции")
    name: str = Field(..., min_length=1, description="Отображаемое имя опции")
    option_set_id: int = Field(..., gt=0, description="OptionSet, которому принадлежит опция")

    has_input: bool = Field(default=False, description="Требуется ввод текста пользователем")
    price_adjustment: Decimal = Field(
        default=ZERO_MONEY, description="Надбавка к цене (может быть отрицательной)"
    )
    sku_extension: Optional[str] = Field(default=None, description="Суффикс SKU")

    model_config = {"frozen": True}

    @field_validator("price_adjustment", mode="before")
    @classmethod
    def quantize_price_adjustment(cls, v: Any) -> Decimal:
        """Fixed-point: надбавка всегда хранится с точностью до центов."""
        return to_money(v)


# =============================================================================
# OPTION SET
# =============================================================================


class OptionSet(BaseModel):
    """
    Именованная ось конфигурации продукта.

    Порядок options: порядок отображения, задаётся каталогом и сохраняется.
    """

    id: int = Field(..., gt=0, description="Идентификатор набора опций")
    name: str = Field(..., min_length=1, description="Уникальное отображаемое имя")
    options: Tuple[Option, ...] = Field(default=(), description="Опции в порядке отображения")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_ownership(self) -> "OptionSet":
        """Каждая опция должна принадлежать именно этому набору."""
        for option in self.options:
            if option.option_set_id != self.id:
                raise ValueError(
                    f"Option {option.id} ({option.name!r}) belongs to option set "
                    f"{option.option_set_id}, not {self.id}"
                )
        return self

    def option_ids(self) -> Tuple[int, ...]:
        return tuple(option.id for option in self.options)


# =============================================================================
# SELECTION
# =============================================================================


class Selection(BaseModel):
    """
    Существующая комбинация выбранных опций (product option selection).

    Не более одной опции из каждого OptionSet; покрывать все наборы не
    обязательно. Порядок options не имеет значения.
    """

    id: int = Field(..., gt=0, description="Идентификатор selection")
    options: Tuple[Option, ...] = Field(default=(), description="Выбранные опции")

    model_config = {"frozen": True}

    @field_validator("options")
    @classmethod
    def validate_one_choice_per_set(cls, v: Tuple[Option, ...]) -> Tuple[Option, ...]:
        """Две опции из одного OptionSet недопустимы."""
        seen = {}
        for option in v:
            if option.option_set_id in seen:
                raise ValueError(
                    f"Options {seen[option.option_set_id]} and {option.id} "
                    f"belong to the same option set {option.option_set_id}"
                )
            seen[option.option_set_id] = option.id
        return v

    def option_ids(self) -> frozenset:
        """Множество id выбранных опций."""
        return frozenset(option.id for option in self.options)


# =============================================================================
# CATALOG SNAPSHOT
# =============================================================================


class CatalogSnapshot(BaseModel):
    """
    Снапшот опций одного продукта.

    Получается вызывающим слоем в рамках одной транзакции чтения;
    все производные представления вычисляются из него.
    """

    product_id: int = Field(..., gt=0, description="Идентификатор продукта")
    sku: str = Field(..., min_length=1, description="Базовый SKU продукта")
    price: Decimal = Field(default=ZERO_MONEY, description="Базовая цена продукта")

    option_sets: Tuple[OptionSet, ...] = Field(default=(), description="Наборы опций")
    selections: Tuple[Selection, ...] = Field(default=(), description="Существующие selections")

    model_config = {"frozen": True}

    @field_validator("price", mode="before")
    @classmethod
    def quantize_price(cls, v: Any) -> Decimal:
        return to_money(v)
