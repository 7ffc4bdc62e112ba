# app/modules/staff/validators.py
from __future__ import annotations

from datetime import date
from typing import Any

from app.core.validation import ValidationResult, validate_payload
from .schemas import Availability, RatingIn, StaffCreate, StaffUpdate

DEFAULT_AVAILABILITY = {day: day not in ("saturday", "sunday") for day in Availability.model_fields}

# champs qu'un membre du personnel peut modifier sur son propre profil
SELF_MUTABLE_FIELDS = frozenset({
    "phone", "address", "skills", "certifications", "availability", "emergency_contact",
})


def validate_staff(payload: Any, partial: bool = False) -> ValidationResult:
    return validate_payload(StaffUpdate if partial else StaffCreate, payload)


def validate_rating(payload: Any) -> ValidationResult:
    return validate_payload(RatingIn, payload)


def with_staff_defaults(values: dict[str, Any]) -> dict[str, Any]:
    """Valeurs par défaut d'un nouveau profil (champs absents ou null)."""
    values["hire_date"] = values.get("hire_date") or date.today()
    values["status"] = values.get("status") or "active"
    values["skills"] = values.get("skills") or []
    values["certifications"] = values.get("certifications") or []
    # disponibilités partielles complétées par la semaine type
    values["availability"] = {**DEFAULT_AVAILABILITY, **(values.get("availability") or {})}
    return values
