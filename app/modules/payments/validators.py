# app/modules/payments/validators.py
from __future__ import annotations

from typing import Any

from app.core.validation import ValidationResult, validate_payload
from .schemas import PaymentCreate, PaymentUpdate


def validate_payment(payload: Any, partial: bool = False) -> ValidationResult:
    """
    Création: mission_id, payment_method et amount (> 0) requis; client_id
    facultatif. Mise à jour: champs de PaymentUpdate uniquement.
    """
    return validate_payload(PaymentUpdate if partial else PaymentCreate, payload)
