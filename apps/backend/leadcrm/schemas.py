# Pydantic request & response models shared by the routes, the contract table and the client

from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator, model_serializer
from pydantic.alias_generators import to_camel

Program = Literal[
    "Leadership Masterclass",
    "Leadership Essentials Program (LEP)",
    "Transition to Leadership Bootcamp",
    "1-Crore Club",
    "100 Board Members Program",
    "Master Business Warfare (MBW)",
    "Corporate Custom Program",
]
LeadStatus = Literal["New", "Contacted", "Interested", "Enrolled", "Closed"]
ApplicationStatus = Literal["Under Review", "Interview Scheduled", "Accepted", "Rejected"]

PROGRAMS: tuple[str, ...] = get_args(Program)
LEAD_STATUSES: tuple[str, ...] = get_args(LeadStatus)
APPLICATION_STATUSES: tuple[str, ...] = get_args(ApplicationStatus)

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

DEFAULT_CONVERSATION_TITLE = "Program Advice Session"

# Row ids are SQLite/Postgres signed 64-bit integers
MAX_ID = 2**63 - 1
EntityId = Annotated[int, Field(ge=1, le=MAX_ID)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class _PartialModel(CamelModel):
    """Partial-update base: every field may be omitted, but a field that is
    sent must not be ``null`` unless listed in ``nullable_fields``."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, v, info):
        if v is None and info.field_name not in cls.nullable_fields:
            raise ValueError("Field may not be null")
        return v


# --- Leads ---

class LeadCreate(CamelModel):
    name: NonEmptyStr
    email: EmailStr
    phone: NonEmptyStr
    program_interest: Program
    status: LeadStatus = "New"


class LeadUpdate(_PartialModel):
    name: Optional[NonEmptyStr] = None
    email: Optional[EmailStr] = None
    phone: Optional[NonEmptyStr] = None
    program_interest: Optional[Program] = None
    status: Optional[LeadStatus] = None


class LeadOut(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    program_interest: str
    status: str
    created_at: Optional[datetime] = None


# --- Applications ---

class ApplicationCreate(CamelModel):
    lead_id: EntityId
    program: Program
    status: ApplicationStatus = "Under Review"
    notes: Optional[str] = None


class ApplicationUpdate(_PartialModel):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"notes"})

    lead_id: Optional[EntityId] = None
    program: Optional[Program] = None
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None


class ApplicationOut(CamelModel):
    id: int
    lead_id: int
    program: str
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ApplicationWithLead(ApplicationOut):
    lead: Optional[LeadOut] = None

    @model_serializer(mode="wrap")
    def _drop_missing_lead(self, handler) -> dict[str, Any]:
        # An orphaned application has no "lead" key at all
        data = handler(self)
        if self.lead is None:
            data.pop("lead", None)
        return data


# --- Conversations ---

class ConversationCreate(CamelModel):
    title: NonEmptyStr = DEFAULT_CONVERSATION_TITLE


class ConversationOut(CamelModel):
    id: int
    title: str
    created_at: Optional[datetime] = None


class MessageOut(CamelModel):
    id: int
    conversation_id: int
    role: str
    content: str
    created_at: Optional[datetime] = None


class ConversationDetail(ConversationOut):
    messages: list[MessageOut] = Field(default_factory=list)


class MessageCreate(CamelModel):
    content: NonEmptyStr


class AdvisorMessage(MessageCreate):
    conversation_id: Optional[EntityId] = None


# --- Errors & dashboard ---

class ValidationErrorBody(BaseModel):
    message: str
    field: str = ""


class NotFoundBody(BaseModel):
    message: str


class InternalErrorBody(BaseModel):
    message: str


class DashboardStats(CamelModel):
    total_leads: int
    new_leads: int
    enrolled_leads: int
    closed_leads: int
    total_applications: int
    pending_applications: int
    leads_by_program: dict[str, int]
    applications_by_status: dict[str, int]
