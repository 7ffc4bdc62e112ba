from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from app.core.validation import InputModel, Text


class UserOut(BaseModel):
    id: str
    full_name: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class UserEnvelope(BaseModel):
    user: UserOut
    message: str


# ================= Entrées =================

Role = Literal["admin", "client", "staff"]

MIN_PASSWORD_LENGTH = 6


class UserCreate(InputModel):
    email: EmailStr
    # jamais nettoyé: transmis tel quel au fournisseur d'identité
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    full_name: Text = Field(max_length=200)
    role: Role
    # valeurs du profil staff/client créé avec le compte
    profile: Optional[Dict[str, Any]] = None

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.lower()


class UserUpdate(InputModel):
    # email et mot de passe passent par l'auth
    full_name: Optional[Text] = Field(None, max_length=200)
    role: Optional[Role] = None

    @field_validator("full_name", "role")
    @classmethod
    def _not_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            raise ValueError(f"{info.field_name} doit être une valeur non vide si fournie")
        return v
