# File: busbuzz/schemas/user.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from busbuzz.models.user import UserRole
from busbuzz.schemas.report import CamelModel, StrictCamelModel

RoleName = Literal["student", "admin", "driver"]

ROUTE_NO_MAX = 120

def stripped_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("name must not be blank")
    return v

def route_as_text(v: Optional[Union[str, int]]) -> Optional[str]:
    # spreadsheets hand route numbers over as ints
    if v is None:
        return None
    v = str(v)
    if len(v) > ROUTE_NO_MAX:
        raise ValueError(f"must be at most {ROUTE_NO_MAX} characters")
    return v

class UserOut(CamelModel):
    """Outward user shape; never carries the password hash."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    email: str
    role: UserRole
    roll_number_or_staff_id: Optional[str] = None
    assigned_bus_route_no: Optional[str] = None
    boarding_point: Optional[str] = None
    created_at: Optional[datetime] = None

class UserCreate(StrictCamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: RoleName = "student"
    roll_number_or_staff_id: Optional[str] = Field(default=None, max_length=60)
    assigned_bus_route_no: Optional[Union[str, int]] = None
    boarding_point: Optional[str] = Field(default=None, max_length=120)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v):
        return stripped_name(v)

    @field_validator("assigned_bus_route_no")
    @classmethod
    def _route_as_text(cls, v):
        return route_as_text(v)

class UserPatch(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    role: Optional[RoleName] = None
    roll_number_or_staff_id: Optional[str] = Field(default=None, max_length=60)
    assigned_bus_route_no: Optional[Union[str, int]] = None
    boarding_point: Optional[str] = Field(default=None, max_length=120)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v):
        return stripped_name(v)

    @field_validator("assigned_bus_route_no")
    @classmethod
    def _route_as_text(cls, v):
        return route_as_text(v)

class UsersImportIn(StrictCamelModel):
    # rows are validated one at a time so one bad row cannot sink the batch
    users: List[Dict[str, Any]] = Field(min_length=1)

class ImportFailure(CamelModel):
    identifier: str
    reason: str

class ImportResult(CamelModel):
    message: str
    imported: int
    errors: List[ImportFailure] = []

class UserImportRow(UserCreate):
    # spreadsheet exports carry extra columns (id, createdAt, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
