from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from app.core.validation import InputModel, Number, PayloadModel, Text


class StaffBrief(BaseModel):
    id: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    skills: Optional[List[str]] = None
    availability: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class AssignedMissionOut(BaseModel):
    id: str
    title: str
    status: str
    scheduled_date: Optional[date] = None
    service_type: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class RatingMissionOut(BaseModel):
    title: str
    model_config = ConfigDict(from_attributes=True)


class RatingClientOut(BaseModel):
    company_name: str
    model_config = ConfigDict(from_attributes=True)


class RatingOut(BaseModel):
    id: str
    staff_id: str
    mission_id: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    mission: Optional[RatingMissionOut] = None
    client: Optional[RatingClientOut] = None
    model_config = ConfigDict(from_attributes=True)


class StaffOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    hire_date: Optional[date] = None
    position: str
    department: Optional[str] = None
    hourly_rate: Optional[float] = None
    skills: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    availability: Optional[Dict[str, Any]] = None
    status: str
    emergency_contact: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    missions_assigned: List[AssignedMissionOut] = []
    ratings_received: List[RatingOut] = []
    # agrégats calculés (services.aggregates)
    average_rating: Optional[float] = None
    total_ratings: int = 0
    active_missions: int = 0
    model_config = ConfigDict(from_attributes=True)


class StaffStatistics(BaseModel):
    status_counts: Dict[str, int]
    department_counts: Dict[str, int]
    total: int


class StaffListOut(BaseModel):
    staff: List[StaffOut]
    count: int
    statistics: StaffStatistics
    filters: Dict[str, Any]


class StaffEnvelope(BaseModel):
    staff: StaffOut
    message: str


class RatingEnvelope(BaseModel):
    rating: RatingOut
    message: str


# ================= Entrées =================

StaffStatus = Literal["active", "inactive", "on_leave"]


class Availability(PayloadModel):
    monday: Optional[bool] = None
    tuesday: Optional[bool] = None
    wednesday: Optional[bool] = None
    thursday: Optional[bool] = None
    friday: Optional[bool] = None
    saturday: Optional[bool] = None
    sunday: Optional[bool] = None


class EmergencyContact(PayloadModel):
    name: Optional[Text] = Field(None, max_length=200)
    phone: Optional[Text] = Field(None, max_length=40)
    relation: Optional[Text] = Field(None, max_length=100)


class _StaffFields(InputModel):
    phone: Optional[Text] = Field(None, max_length=40)
    address: Optional[Text] = Field(None, max_length=300)
    department: Optional[Text] = Field(None, max_length=120)
    hire_date: Optional[date] = None
    status: Optional[StaffStatus] = None
    hourly_rate: Optional[Number] = Field(None, ge=0)
    skills: Optional[List[Text]] = None
    certifications: Optional[List[Text]] = None
    availability: Optional[Availability] = None
    emergency_contact: Optional[EmergencyContact] = None

    @field_validator("skills", "certifications")
    @classmethod
    def _drop_blank_items(cls, v: Optional[List[str]]) -> List[str]:
        return [item for item in (v or []) if item]


class StaffCreate(_StaffFields):
    first_name: Text = Field(max_length=100)
    last_name: Text = Field(max_length=100)
    position: Text = Field(max_length=120)


class StaffUpdate(_StaffFields):
    first_name: Optional[Text] = Field(None, max_length=100)
    last_name: Optional[Text] = Field(None, max_length=100)
    position: Optional[Text] = Field(None, max_length=120)

    @field_validator("first_name", "last_name", "position", "status")
    @classmethod
    def _not_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            raise ValueError(f"{info.field_name} doit être une valeur non vide si fournie")
        return v


class RatingIn(InputModel):
    mission_id: Text
    rating: int = Field(ge=1, le=5)
    comment: Optional[Text] = Field(None, max_length=2000)
