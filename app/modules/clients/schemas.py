from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.core.validation import InputModel, Text


class ClientUserOut(BaseModel):
    id: str
    email: str
    full_name: str
    model_config = ConfigDict(from_attributes=True)


class ClientBrief(BaseModel):
    id: str
    company_name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    contract_type: Optional[str] = None
    user: Optional[ClientUserOut] = None
    model_config = ConfigDict(from_attributes=True)


class ClientProfileIn(InputModel):
    # nom de société et contact: full_name du compte à défaut
    company_name: Optional[Text] = Field(None, max_length=200)
    contact_person: Optional[Text] = Field(None, max_length=200)
    phone: Optional[Text] = Field(None, max_length=40)
    address: Optional[Text] = Field(None, max_length=300)
    contract_type: Optional[Text] = Field(None, max_length=50)
