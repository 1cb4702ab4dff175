from typing import Dict, List, Literal, Optional
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel
from busbuzz.schemas.report import CamelModel

BusStatusName = Literal["On Route", "Idle", "Maintenance"]


class BusOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    bus_no: str
    route: str
    capacity: Optional[int] = None
    driver: Optional[str] = None
    status: str


class BusUpsert(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    route: Optional[str] = Field(default=None, min_length=1, max_length=120)
    capacity: Optional[int] = Field(default=None, ge=1, le=200)
    driver: Optional[str] = Field(default=None, max_length=120)
    status: Optional[BusStatusName] = None


class AssignedBus(CamelModel):
    bus_no: str
    driver: Optional[str] = None
    status: str


class RouteOut(CamelModel):
    id: int
    name: str
    stops: Dict[str, str] = {}
    capacity: Optional[int] = None
    buses: List[AssignedBus] = []


class RouteUpsert(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    stops: Optional[Dict[str, str]] = None
    capacity: Optional[int] = Field(default=None, ge=1, le=200)
