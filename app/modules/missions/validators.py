# app/modules/missions/validators.py
from __future__ import annotations

from typing import Any

from app.core.validation import ValidationResult, validate_payload
from .schemas import CommentIn, MissionCreate, MissionUpdate, MissionUpdateIn

# sous-ensemble ouvert au membre du personnel assigné
ASSIGNEE_MUTABLE_FIELDS = frozenset({
    "status", "description", "special_instructions", "estimated_duration",
    "equipment_needed", "gps_location",
})


def validate_mission(payload: Any, partial: bool = False) -> ValidationResult:
    """
    Création: title, client_id, location et service_type requis.
    Mise à jour (partial=True): seuls les champs de MissionUpdate présents
    sont contrôlés et recopiés; le reste est ignoré.
    """
    return validate_payload(MissionUpdate if partial else MissionCreate, payload)


def validate_comment(payload: Any) -> ValidationResult:
    return validate_payload(CommentIn, payload)


def validate_mission_update(payload: Any) -> ValidationResult:
    return validate_payload(MissionUpdateIn, payload)
