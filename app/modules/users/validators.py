# app/modules/users/validators.py
from __future__ import annotations

from typing import Any

from app.core.validation import ValidationResult, validate_payload
from .schemas import UserCreate, UserUpdate


def validate_user(payload: Any, partial: bool = False) -> ValidationResult:
    res = validate_payload(UserUpdate if partial else UserCreate, payload)
    if partial and res.is_valid and not res.data:
        res.errors.append("Données manquantes pour la mise à jour (full_name, role)")
    return res
