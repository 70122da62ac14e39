"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. The wire format uses camelCase keys
(`courseTitle`, `pEntryTime`, ...) generated from the snake_case field
names; requests may use either spelling.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from .models import as_utc
from .utils.youtube import thumbnail_url

ResourceCategory = Literal['article', 'video', 'tool', 'guide', 'other']
PlannerStatus = Literal['pending', 'completed']
HabitFrequency = Literal['daily', 'weekly']


# aware UTC on the way in and out; SQLite returns stored values naive
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, reads attributes off ORM rows."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _ids(value):
    # relationship collections arrive as model rows
    return sorted(getattr(v, 'id', v) for v in (value or []))


# --- users and their productivity records ---

class UserCreate(CamelModel):
    """Payload sent by the front end after the first sign-in."""
    clerk_id: str = Field(min_length=1)
    user_first_name: str = Field(min_length=1)
    user_last_name: str = Field(min_length=1)
    user_email: EmailStr


class UserUpdate(CamelModel):
    """Partial profile update; `userType` is not writable here."""
    user_first_name: Optional[str] = Field(default=None, min_length=1)
    user_last_name: Optional[str] = Field(default=None, min_length=1)
    user_email: Optional[EmailStr] = None


class CheckinIn(CamelModel):
    mood: str = Field(min_length=1)
    notes: Optional[str] = None
    checkin_date: Optional[UTCDateTime] = None


class CheckinOut(CamelModel):
    id: int
    mood: str
    notes: Optional[str] = None
    checkin_date: UTCDateTime


class PlannerEntryIn(CamelModel):
    p_entry_time: str = Field(min_length=1)
    p_entry_task: str = Field(min_length=1)
    p_entry_status: PlannerStatus = 'pending'


class PlannerEntryUpdate(CamelModel):
    p_entry_time: Optional[str] = Field(default=None, min_length=1)
    p_entry_task: Optional[str] = Field(default=None, min_length=1)
    p_entry_status: Optional[PlannerStatus] = None


class PlannerEntryOut(CamelModel):
    id: int
    p_entry_time: str
    p_entry_task: str
    p_entry_status: str
    created_at: UTCDateTime


class BrainDumpIn(CamelModel):
    content: str = Field(min_length=1)


class BrainDumpOut(CamelModel):
    id: int
    content: str
    created_at: UTCDateTime


class FocusSessionIn(CamelModel):
    duration_minutes: int = Field(gt=0)
    task: Optional[str] = None


class FocusSessionOut(CamelModel):
    id: int
    duration_minutes: int
    task: Optional[str] = None
    completed_at: UTCDateTime


class EntryRef(CamelModel):
    """Body of the planner/brain-dump delete endpoints."""
    entry_id: int


class CourseRef(CamelModel):
    course_id: int


class ResourceRef(CamelModel):
    resource_id: int


class EventRef(CamelModel):
    event_id: int


class UserOut(CamelModel):
    """Full profile document, membership lists flattened to ids."""
    id: int
    clerk_id: str
    user_first_name: str
    user_last_name: str
    user_email: str
    user_type: str
    created_at: UTCDateTime
    updated_at: UTCDateTime
    emotional_checkins: List[CheckinOut] = []
    planner_entries: List[PlannerEntryOut] = []
    brain_dump_entries: List[BrainDumpOut] = []
    focus_sessions: List[FocusSessionOut] = []
    enrolled_courses: List[int] = []
    favorite_resources: List[int] = []
    registered_events: List[int] = []

    @field_validator('enrolled_courses', 'favorite_resources', 'registered_events', mode='before')
    @classmethod
    def flatten_ids(cls, value):
        return _ids(value)


# --- catalog ---

class CourseIn(CamelModel):
    course_title: str = Field(min_length=1)
    course_description: str = Field(min_length=1)
    course_instructor: str = Field(min_length=1)
    course_start_date: UTCDateTime
    course_end_date: UTCDateTime
    payment_link: str = ''
    course_link: str = ''


class CourseUpdate(CamelModel):
    course_title: Optional[str] = Field(default=None, min_length=1)
    course_description: Optional[str] = Field(default=None, min_length=1)
    course_instructor: Optional[str] = Field(default=None, min_length=1)
    course_start_date: Optional[UTCDateTime] = None
    course_end_date: Optional[UTCDateTime] = None
    payment_link: Optional[str] = None
    course_link: Optional[str] = None


class CourseOut(CamelModel):
    id: int
    course_title: str
    course_description: str
    course_instructor: str
    course_start_date: UTCDateTime
    course_end_date: UTCDateTime
    payment_link: str
    course_link: str
    created_at: UTCDateTime
    updated_at: UTCDateTime


class EventIn(CamelModel):
    event_name: str = Field(min_length=1)
    event_date: UTCDateTime
    event_location: str = Field(min_length=1)
    event_description: str = Field(min_length=1)
    payment_link: str = ''
    event_link: str = ''


class EventUpdate(CamelModel):
    """Partial event update; attendees change only through the attendee endpoints."""
    event_name: Optional[str] = Field(default=None, min_length=1)
    event_date: Optional[UTCDateTime] = None
    event_location: Optional[str] = Field(default=None, min_length=1)
    event_description: Optional[str] = Field(default=None, min_length=1)
    payment_link: Optional[str] = None
    event_link: Optional[str] = None


class EventOut(CamelModel):
    id: int
    event_name: str
    event_date: UTCDateTime
    event_location: str
    event_description: str
    attendees: List[int] = []
    payment_link: str
    event_link: str
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @field_validator('attendees', mode='before')
    @classmethod
    def flatten_ids(cls, value):
        return _ids(value)


class PaymentLinkOut(CamelModel):
    payment_link: str


class CourseLinkOut(CamelModel):
    course_link: str


class EventLinkOut(CamelModel):
    event_link: str


class ResourceIn(CamelModel):
    resource_title: str = Field(min_length=1)
    resource_category: ResourceCategory
    resource_link: str = Field(min_length=1)
    resource_description: str = ''


class ResourceUpdate(CamelModel):
    resource_title: Optional[str] = Field(default=None, min_length=1)
    resource_category: Optional[ResourceCategory] = None
    resource_link: Optional[str] = Field(default=None, min_length=1)
    resource_description: Optional[str] = None


class ResourceOut(CamelModel):
    id: int
    resource_title: str
    resource_category: str
    resource_link: str
    resource_description: str
    created_at: UTCDateTime
    updated_at: UTCDateTime


class ExpertTalkIn(CamelModel):
    """Both fields are required; `ExpertTalkService.create_talk` rejects blanks with a 400."""
    title: Optional[str] = None
    youtube_link: Optional[str] = None


class ExpertTalkOut(CamelModel):
    id: int
    title: str
    youtube_link: str
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @computed_field(alias='thumbnailUrl')
    @property
    def thumbnail_url(self) -> Optional[str]:
        return thumbnail_url(self.youtube_link)


# --- habits ---

class HabitIn(CamelModel):
    clerk_id: str = Field(min_length=1)
    habit_name: str = Field(min_length=1)
    habit_description: str = ''
    habit_frequency: HabitFrequency = 'daily'
    habit_target: int = Field(default=1, ge=1)


class HabitProgressIn(CamelModel):
    progress: int = Field(ge=0)


class HabitOut(CamelModel):
    id: int
    clerk_id: str
    habit_name: str
    habit_description: str
    habit_frequency: str
    habit_target: int
    habit_progress: int
    created_at: UTCDateTime
    updated_at: UTCDateTime


# --- aggregate views ---

class UserSummaryOut(CamelModel):
    """Profile page view: joined catalog details plus counters."""
    enrolled_courses: List[CourseOut]
    registered_events: List[EventOut]
    favorite_resources: List[ResourceOut]
    checkin_count: int
    pending_planner_count: int
    total_focus_minutes: int


class AdminStatsOut(CamelModel):
    total_courses: int
    total_events: int
    upcoming_events: int
    total_resources: int
    total_expert_talks: int
    total_users: int
