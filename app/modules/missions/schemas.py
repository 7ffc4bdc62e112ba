from __future__ import annotations
from datetime import date, datetime
import re
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from app.core.validation import InputModel, Text

from app.modules.clients.schemas import ClientBrief
from app.modules.staff.schemas import StaffBrief


class MissionUpdateOut(BaseModel):
    id: str
    mission_id: str
    staff_id: Optional[str] = None
    update_type: str
    content: str
    photo_url: Optional[str] = None
    timestamp: datetime
    model_config = ConfigDict(from_attributes=True)


class CommentAuthorOut(BaseModel):
    id: str
    full_name: str
    model_config = ConfigDict(from_attributes=True)


class CommentOut(BaseModel):
    id: str
    mission_id: str
    content: str
    created_at: datetime
    user: Optional[CommentAuthorOut] = None
    model_config = ConfigDict(from_attributes=True)


class MissionOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    client_id: Optional[str] = None
    assigned_staff_id: Optional[str] = None
    location: str
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    estimated_duration: Optional[int] = None
    priority: str
    status: str
    service_type: str
    zone: Optional[str] = None
    equipment_needed: Optional[List[str]] = None
    gps_location: Optional[str] = None
    special_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[ClientBrief] = None
    assigned_staff: Optional[StaffBrief] = None
    mission_updates: List[MissionUpdateOut] = []
    comments: List[CommentOut] = []
    model_config = ConfigDict(from_attributes=True)


class MissionStatistics(BaseModel):
    status_counts: Dict[str, int]
    priority_counts: Dict[str, int]
    total: int


class MissionListOut(BaseModel):
    missions: List[MissionOut]
    # alias conservé pour le front (écran "demandes")
    requests: List[MissionOut]
    count: int
    statistics: MissionStatistics
    filters: Dict[str, Any]


class MissionEnvelope(BaseModel):
    mission: MissionOut
    request: MissionOut
    message: str


class CommentEnvelope(BaseModel):
    comment: CommentOut
    message: str


class MissionUpdateEnvelope(BaseModel):
    update: MissionUpdateOut
    message: str


class MessageOut(BaseModel):
    message: str


# ================= Entrées =================

ServiceType = Literal["ramassage", "recyclage", "dechets_speciaux", "urgence"]
MissionStatus = Literal["pending", "assigned", "in_progress", "completed", "cancelled"]
Priority = Literal["low", "medium", "high", "urgent"]
UpdateType = Literal["status_change", "note", "photo", "issue"]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


class _MissionFields(InputModel):
    priority: Optional[Priority] = None
    assigned_staff_id: Optional[Text] = None
    description: Optional[Text] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[Text] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    special_instructions: Optional[Text] = None
    equipment_needed: Optional[List[Text]] = None
    gps_location: Optional[Text] = Field(None, max_length=100)
    zone: Optional[Text] = Field(None, max_length=100)

    @field_validator("scheduled_time")
    @classmethod
    def _hh_mm(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _TIME_RE.match(v):
            raise ValueError("scheduled_time doit être au format HH:MM")
        return v

    @field_validator("equipment_needed")
    @classmethod
    def _drop_blank_items(cls, v: Optional[List[str]]) -> List[str]:
        return [item for item in (v or []) if item]


class MissionCreate(_MissionFields):
    # statut jamais lu à la création: il découle de l'assignation
    title: Text = Field(max_length=200)
    client_id: Text
    location: Text = Field(max_length=300)
    service_type: ServiceType


class MissionUpdate(_MissionFields):
    # client_id n'est jamais réassigné
    title: Optional[Text] = Field(None, max_length=200)
    location: Optional[Text] = Field(None, max_length=300)
    service_type: Optional[ServiceType] = None
    status: Optional[MissionStatus] = None

    @field_validator("title", "location", "service_type", "priority", "status")
    @classmethod
    def _not_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            raise ValueError(f"{info.field_name} doit être une valeur non vide si fournie")
        return v


class CommentIn(InputModel):
    content: Text = Field(max_length=5000)


class MissionUpdateIn(InputModel):
    content: Text = Field(max_length=5000)
    update_type: Optional[UpdateType] = None
    photo_url: Optional[Text] = Field(None, max_length=500)
