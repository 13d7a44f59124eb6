from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from engine.week_calendar import WeekKey


class ItemType(str, Enum):
    PRODUCT = "P"
    MATERIAL = "M"

    @classmethod
    def parse(cls, value: object) -> "ItemType":
        """'P'/'M' の他に 'product'/'material'（大小文字無視）を受け付ける。"""
        if isinstance(value, ItemType):
            return value
        text = str(value or "").strip().upper()
        if text in ("P", "PRODUCT"):
            return cls.PRODUCT
        if text in ("M", "MATERIAL"):
            return cls.MATERIAL
        raise ValueError("itemType must be P or M")


class _CaseInsensitiveStatus(str, Enum):
    @classmethod
    def parse(cls, value: object):
        if isinstance(value, cls):
            return value
        text = str(getattr(value, "value", value) or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"status must be one of {allowed}") from None

    @classmethod
    def try_parse(cls, value: object):
        try:
            return cls.parse(value)
        except ValueError:
            return None


class ProductionStatus(_CaseInsensitiveStatus):
    INITIAL = "INITIAL"
    ACTIVE = "ACTIVE"
    COMPLETE = "COMPLETE"


class PurchaseStatus(_CaseInsensitiveStatus):
    INITIAL = "INITIAL"
    CONFIRM = "CONFIRM"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


# ---------------------------------------------------------------------------
# Records read from storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OpeningBalance:
    item_type: ItemType
    item_id: int
    anchor: WeekKey
    balance_qty: float


@dataclass(frozen=True)
class BomLine:
    product_id: int
    material_id: int
    consume_per_unit: float


# ---------------------------------------------------------------------------
# Request bodies (camelCase on the wire)
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OpeningBalanceUpsert(_CamelModel):
    item_type: ItemType
    item_id: int = Field(gt=0)
    start_year: int = Field(gt=0)
    start_week: int = Field(ge=1, le=53)
    balance_qty: float

    @field_validator("item_type", mode="before")
    @classmethod
    def _parse_item_type(cls, v):
        return ItemType.parse(v)


class ItemCreate(_CamelModel):
    type: ItemType
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    image_url: Optional[str] = None
    opening_year: Optional[int] = Field(default=None, gt=0)
    opening_week: Optional[int] = Field(default=None, ge=1, le=53)
    opening_balance: Optional[float] = None

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, v):
        return ItemType.parse(v)


class ItemUpdate(_CamelModel):
    code: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    opening_year: Optional[int] = Field(default=None, gt=0)
    opening_week: Optional[int] = Field(default=None, ge=1, le=53)
    opening_balance: Optional[float] = None


class BomLineUpsert(_CamelModel):
    product_id: int = Field(gt=0)
    material_id: int = Field(gt=0)
    consume_per_unit: float = Field(default=1, ge=0)


class SalesPlanEntry(_CamelModel):
    year: int = Field(gt=0)
    week: int = Field(ge=1, le=53)
    qty: Optional[float] = 0


class SalesPlanBatch(_CamelModel):
    product_id: int = Field(gt=0)
    plans: List[SalesPlanEntry]


class ProductionOrderCreate(_CamelModel):
    product_id: int = Field(gt=0)
    quantity: float = Field(gt=0)
    plan_year: int = Field(gt=0)
    plan_week: int = Field(ge=1, le=53)
    status: ProductionStatus = ProductionStatus.INITIAL

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return ProductionStatus.parse(v or "INITIAL")


class ProductionOrderUpdate(_CamelModel):
    product_id: Optional[int] = Field(default=None, gt=0)
    quantity: Optional[float] = None
    plan_year: Optional[int] = Field(default=None, gt=0)
    plan_week: Optional[int] = Field(default=None, ge=1, le=53)
    status: Optional[ProductionStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return ProductionStatus.parse(v) if v else None


class PurchaseOrderLineIn(_CamelModel):
    material_id: int = Field(gt=0)
    quantity: float
    eta_year: int = Field(gt=0)
    eta_week: int = Field(ge=1, le=53)
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    total_amount: Optional[float] = None


class PurchaseOrderCreate(_CamelModel):
    po_number: Optional[str] = None
    invoice_number: Optional[str] = None
    supplier_name: Optional[str] = None
    customer_code: Optional[str] = None
    warehouse_code: Optional[str] = None
    currency: Optional[str] = None
    invoice_date: Optional[str] = None
    status: PurchaseStatus = PurchaseStatus.INITIAL
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None
    lines: List[PurchaseOrderLineIn] = Field(min_length=1)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return PurchaseStatus.parse(v or "INITIAL")


class PurchaseOrderUpdate(_CamelModel):
    po_number: Optional[str] = None
    invoice_number: Optional[str] = None
    supplier_name: Optional[str] = None
    customer_code: Optional[str] = None
    warehouse_code: Optional[str] = None
    currency: Optional[str] = None
    invoice_date: Optional[str] = None
    status: Optional[PurchaseStatus] = None
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None
    lines: Optional[List[PurchaseOrderLineIn]] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return PurchaseStatus.parse(v) if v else None
