"""Request and response bodies for the API.

Create payloads require the fields a form marks as required; update payloads
make every field optional and are applied with ``exclude_unset`` so that only
submitted fields change.
"""

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PermissionType = Literal["anyone", "specific_users", "team_admins", "team_members"]
LinkType = Literal["collection", "project", "task"]


class AssignPermissions(BaseModel):
    type: PermissionType = "team_admins"
    allowed_ids: list[str] | None = None


class ActionResult(BaseModel):
    """What every form submission gets back: shown as a toast by the client."""
    message: str
    id: str | None = None
    error: str | None = None
    errors: dict[str, list[str]] | None = None


# --- collections & labels ---

class CollectionIn(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None

class CollectionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    is_shared: bool | None = None

class LabelIn(BaseModel):
    name: str = Field(min_length=1)
    color: str = Field(min_length=1)   # "#ff0000"
    icon: str = Field(min_length=1)    # icon name, e.g. "Flag"
    description: str | None = None
    assign_permissions: AssignPermissions = Field(default_factory=AssignPermissions)

class LabelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    color: str | None = Field(default=None, min_length=1)
    icon: str | None = Field(default=None, min_length=1)
    description: str | None = None
    assign_permissions: AssignPermissions | None = None

class LabelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    collection_id: str
    name: str
    color: str
    icon: str
    description: str | None = None
    assign_permissions: AssignPermissions
    owner_id: str

class CollectionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    owner_id: str
    is_shared: bool = False
    is_linked: bool = False

class CollectionOut(CollectionSummary):
    labels: list[LabelOut] = []


# --- projects, phases & events ---

class ProjectIn(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None

class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    is_shared: bool | None = None

class PhaseIn(BaseModel):
    name: str = Field(min_length=1)
    start_date: datetime.date
    end_date: datetime.date

class PhaseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None

def _split_guest_emails(value):
    # the event form posts "a@x.com, b@y.com"
    if isinstance(value, str):
        return [email.strip() for email in value.split(",") if email.strip()]
    return value

class EventIn(BaseModel):
    name: str = Field(min_length=1)
    start_date: datetime.date
    end_date: datetime.date
    location: str | None = None
    guest_emails: list[str] = []

    @field_validator("guest_emails", mode="before")
    @classmethod
    def split_guest_emails(cls, value):
        return _split_guest_emails(value)

class EventUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    location: str | None = None
    guest_emails: list[str] | None = None
    is_shared: bool | None = None

    @field_validator("guest_emails", mode="before")
    @classmethod
    def split_guest_emails(cls, value):
        return _split_guest_emails(value)

class PhaseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    name: str
    start_date: datetime.date
    end_date: datetime.date
    owner_id: str

class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    name: str
    start_date: datetime.date
    end_date: datetime.date
    location: str | None = None
    guest_emails: list[str] = []
    owner_id: str
    is_shared: bool = False

class ProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    owner_id: str
    is_shared: bool = False
    is_linked: bool = False

class ProjectOut(ProjectSummary):
    phases: list[PhaseOut] = []
    events: list[EventOut] = []


# --- links, dashboard, shared pool ---

class LinkIn(BaseModel):
    entity_id: str = Field(min_length=1)
    type: LinkType

class DashboardView(BaseModel):
    collections: list[CollectionSummary]
    projects: list[ProjectSummary]

class SharedCollection(CollectionSummary):
    is_owner: bool = False

class SharedProject(ProjectSummary):
    is_owner: bool = False

class SharedPool(BaseModel):
    collections: list[SharedCollection]
    projects: list[SharedProject]
    linked_ids: list[str]


# --- meeting notes ---

class MeetingNotesIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meeting_notes: str = Field(alias="meetingNotes")

    @field_validator("meeting_notes")
    @classmethod
    def long_enough(cls, value: str) -> str:
        if len(value.strip()) < 10:
            raise ValueError("Meeting notes must be at least 10 characters.")
        return value

class MeetingNotesAnalysis(BaseModel):
    """Structured suggestions returned by the model; all three lists are required."""
    model_config = ConfigDict(populate_by_name=True)

    suggested_dates: list[str] = Field(alias="suggestedDates")
    suggested_invitees: list[str] = Field(alias="suggestedInvitees")
    suggested_tasks: list[str] = Field(alias="suggestedTasks")

    @property
    def is_empty(self) -> bool:
        return not (self.suggested_dates or self.suggested_invitees or self.suggested_tasks)

class AnalysisResult(ActionResult):
    result: MeetingNotesAnalysis | None = None
