from __future__ import annotations
from datetime import date, datetime
import re
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from app.core.validation import InputModel, Number, Text

from app.modules.clients.schemas import ClientBrief


class PaymentMissionOut(BaseModel):
    id: str
    title: str
    status: str
    service_type: Optional[str] = None
    scheduled_date: Optional[date] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentOut(BaseModel):
    id: str
    client_id: str
    mission_id: str
    amount: float
    currency: str
    payment_method: str
    payment_status: str
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    invoice_ref: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    mission: Optional[PaymentMissionOut] = None
    client: Optional[ClientBrief] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentStatistics(BaseModel):
    status_counts: Dict[str, int]
    total_amount: float


class PaymentListOut(BaseModel):
    payments: List[PaymentOut]
    count: int
    statistics: PaymentStatistics
    filters: Dict[str, Any] = {}


class PaymentEnvelope(BaseModel):
    payment: PaymentOut
    message: str


# ================= Entrées =================

PaymentMethod = Literal["stripe", "paypal", "bank_transfer", "cash"]
PaymentStatus = Literal["pending", "completed", "failed", "refunded"]

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class _PaymentFields(InputModel):
    currency: Optional[Text] = Field(None, max_length=3)
    due_date: Optional[date] = None
    invoice_ref: Optional[Text] = Field(None, max_length=100)
    description: Optional[Text] = None

    @field_validator("currency")
    @classmethod
    def _iso_currency(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.upper()
        if not _CURRENCY_RE.match(v):
            raise ValueError("currency doit être un code ISO à 3 lettres (ex: EUR)")
        return v


class PaymentCreate(_PaymentFields):
    # client_id facultatif: déduit de la mission
    mission_id: Text
    client_id: Optional[Text] = None
    payment_method: PaymentMethod
    amount: Number = Field(gt=0)


class PaymentUpdate(_PaymentFields):
    # mission_id / client_id ne changent plus après création
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    amount: Optional[Number] = Field(None, gt=0)

    @field_validator("payment_status", "payment_method", "amount", "currency")
    @classmethod
    def _not_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            raise ValueError(f"{info.field_name} doit être une valeur non vide si fournie")
        return v
