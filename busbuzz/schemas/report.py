from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON bodies use camelCase keys; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class AttachmentRef(StrictCamelModel):
    url: str = Field(min_length=1, max_length=500)
    name: Optional[str] = Field(default=None, max_length=255)
    id: Optional[str] = Field(default=None, max_length=32)


class ConversationEntry(CamelModel):
    author_name: str
    message: str = ""
    attachment: Optional[AttachmentRef] = None
    timestamp: datetime


class Resolution(CamelModel):
    text: Optional[str] = None
    resolved_by: str
    resolved_on: datetime


class FeedbackDetails(StrictCamelModel):
    punctuality: Optional[int] = Field(default=None, ge=1, le=5)
    driver_behavior: Optional[int] = Field(default=None, ge=1, le=5)
    cleanliness: Optional[int] = Field(default=None, ge=1, le=5)


class ReportDoc(CamelModel):
    """One report as the store reads and writes it."""
    id: Optional[int] = None
    kind: Literal["Feedback", "Lost", "Found"]
    author_user_id: Optional[int] = None
    author_name: Optional[str] = None

    route: Optional[str] = None
    bus_no: Optional[str] = None
    issue: Optional[str] = None
    item: Optional[str] = None
    description: Optional[str] = None
    details: Optional[FeedbackDetails] = None
    attachments: List[AttachmentRef] = []

    status: Optional[str] = None
    submitted_on: datetime
    resolution: Optional[Resolution] = None
    conversation: List[ConversationEntry] = []


# ---- request bodies ----

class FeedbackCreate(StrictCamelModel):
    kind: Literal["Feedback"]
    route: str = Field(default="", max_length=120)
    bus_no: str = Field(default="", max_length=40)
    issue: str = Field(default="", max_length=120)
    description: Optional[str] = Field(default=None, max_length=4000)
    details: Optional[FeedbackDetails] = None
    attachments: List[AttachmentRef] = []


class LostFoundCreate(StrictCamelModel):
    kind: Literal["Lost", "Found"]
    item: str = Field(default="", max_length=200)
    route: str = Field(default="", max_length=120)
    description: str = Field(default="", max_length=4000)
    status: Optional[Literal["unclaimed", "claimed"]] = None
    attachments: List[AttachmentRef] = []


# the Literal "kind" plus extra="forbid" selects exactly one variant
ReportCreate = Union[FeedbackCreate, LostFoundCreate]


class StatusUpdateIn(StrictCamelModel):
    status: str = Field(min_length=1, max_length=20)
    resolution: Optional[str] = Field(default=None, max_length=4000)


class ReportFieldsPatch(CamelModel):
    # unknown keys are dropped, never applied
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    status: Optional[str] = Field(default=None, max_length=20)
    description: Optional[str] = Field(default=None, max_length=4000)
    route: Optional[str] = Field(default=None, max_length=120)
    item: Optional[str] = Field(default=None, max_length=200)
    bus_no: Optional[str] = Field(default=None, max_length=40)
    issue: Optional[str] = Field(default=None, max_length=120)
    resolution: Optional[str] = Field(default=None, max_length=4000)


class ConversationIn(StrictCamelModel):
    message: str = Field(default="", max_length=4000)
    attachment: Optional[AttachmentRef] = None
