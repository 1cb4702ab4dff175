# File: busbuzz/schemas/auth.py

from typing import Literal, Optional, Union
from pydantic import EmailStr, Field, field_validator
from busbuzz.schemas.report import CamelModel, StrictCamelModel
from busbuzz.schemas.user import UserOut, route_as_text, stripped_name

class RegisterIn(StrictCamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: Optional[Literal["student", "driver", "admin"]] = None
    roll_number_or_staff_id: Optional[str] = Field(default=None, max_length=60)
    assigned_bus_route_no: Optional[Union[str, int]] = None
    boarding_point: Optional[str] = Field(default=None, max_length=120)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return stripped_name(v)

    @field_validator("assigned_bus_route_no")
    @classmethod
    def _route_as_text(cls, v):
        return route_as_text(v)

class LoginIn(StrictCamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

class TokenOut(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
