"""SQLModel data models.

This module defines the application's database tables using SQLModel.
The user profile owns its productivity records (check-ins, planner
entries, brain-dump notes, focus sessions) as child tables, and its
membership lists (enrolled courses, favorite resources, registered
events) as link tables whose composite primary key keeps each pair
unique.

Timestamps are written as timezone-aware UTC. SQLite hands them back
naive, so code comparing stored values goes through `as_utc`.
"""

from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return `value` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CourseEnrollment(SQLModel, table=True):
    """A user enrolled in a course."""
    user_id: Optional[int] = Field(default=None, foreign_key='user.id', primary_key=True)
    course_id: Optional[int] = Field(default=None, foreign_key='course.id', primary_key=True)


class ResourceFavorite(SQLModel, table=True):
    """A resource marked as favorite by a user."""
    user_id: Optional[int] = Field(default=None, foreign_key='user.id', primary_key=True)
    resource_id: Optional[int] = Field(default=None, foreign_key='resource.id', primary_key=True)


class EventAttendance(SQLModel, table=True):
    """A user registered for an event.

    Backs both `Event.attendees` and `User.registered_events`.
    """
    user_id: Optional[int] = Field(default=None, foreign_key='user.id', primary_key=True)
    event_id: Optional[int] = Field(default=None, foreign_key='event.id', primary_key=True)


class User(SQLModel, table=True):
    """Application profile of an identity-provider user.

    Fields:
    - `clerk_id`: opaque id issued by Clerk, unique per profile
    - `user_type`: `user` or `admin`
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    clerk_id: str = Field(index=True, nullable=False, unique=True)
    user_first_name: str
    user_last_name: str
    user_email: str
    user_type: str = 'user'
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    emotional_checkins: List['EmotionalCheckin'] = Relationship(
        back_populates='user',
        sa_relationship_kwargs={'cascade': 'all, delete-orphan', 'order_by': 'EmotionalCheckin.id'},
    )
    planner_entries: List['PlannerEntry'] = Relationship(
        back_populates='user',
        sa_relationship_kwargs={'cascade': 'all, delete-orphan', 'order_by': 'PlannerEntry.id'},
    )
    brain_dump_entries: List['BrainDumpEntry'] = Relationship(
        back_populates='user',
        sa_relationship_kwargs={'cascade': 'all, delete-orphan', 'order_by': 'BrainDumpEntry.id'},
    )
    focus_sessions: List['FocusSession'] = Relationship(
        back_populates='user',
        sa_relationship_kwargs={'cascade': 'all, delete-orphan', 'order_by': 'FocusSession.id'},
    )
    enrolled_courses: List['Course'] = Relationship(back_populates='enrolled_users', link_model=CourseEnrollment)
    favorite_resources: List['Resource'] = Relationship(back_populates='favorited_by', link_model=ResourceFavorite)
    registered_events: List['Event'] = Relationship(back_populates='attendees', link_model=EventAttendance)


class EmotionalCheckin(SQLModel, table=True):
    """A mood check-in recorded by a user."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    mood: str
    notes: Optional[str] = None
    checkin_date: datetime = Field(default_factory=utcnow)
    user: Optional[User] = Relationship(back_populates='emotional_checkins')


class PlannerEntry(SQLModel, table=True):
    """A scheduled task in the user's day planner.

    `p_entry_status` is `pending` until the user marks it `completed`.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    p_entry_time: str
    p_entry_task: str
    p_entry_status: str = 'pending'
    created_at: datetime = Field(default_factory=utcnow)
    user: Optional[User] = Relationship(back_populates='planner_entries')


class BrainDumpEntry(SQLModel, table=True):
    """A free-form note captured with the brain-dump tool."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow)
    user: Optional[User] = Relationship(back_populates='brain_dump_entries')


class FocusSession(SQLModel, table=True):
    """A completed focus-timer session."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    duration_minutes: int
    task: Optional[str] = None
    completed_at: datetime = Field(default_factory=utcnow)
    user: Optional[User] = Relationship(back_populates='focus_sessions')


class Course(SQLModel, table=True):
    """A course in the catalog."""
    id: Optional[int] = Field(default=None, primary_key=True)
    course_title: str
    course_description: str
    course_instructor: str
    course_start_date: datetime
    course_end_date: datetime
    payment_link: str = ''
    course_link: str = ''
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    enrolled_users: List[User] = Relationship(back_populates='enrolled_courses', link_model=CourseEnrollment)


class Event(SQLModel, table=True):
    """A community event; `attendees` are the registered users."""
    id: Optional[int] = Field(default=None, primary_key=True)
    event_name: str
    event_date: datetime = Field(index=True)
    event_location: str
    event_description: str
    payment_link: str = ''
    event_link: str = ''
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    attendees: List[User] = Relationship(back_populates='registered_events', link_model=EventAttendance)


class Resource(SQLModel, table=True):
    """A curated link (article, video, tool, guide, ...)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    resource_title: str
    resource_category: str = Field(index=True)
    resource_link: str
    resource_description: str = ''
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    favorited_by: List[User] = Relationship(back_populates='favorite_resources', link_model=ResourceFavorite)


class ExpertTalk(SQLModel, table=True):
    """A recorded expert talk hosted on YouTube."""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    youtube_link: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Habit(SQLModel, table=True):
    """A habit tracked by a user, with progress toward a periodic target."""
    id: Optional[int] = Field(default=None, primary_key=True)
    clerk_id: str = Field(foreign_key='user.clerk_id', index=True)
    habit_name: str
    habit_description: str = ''
    habit_frequency: str = 'daily'
    habit_target: int = 1
    habit_progress: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
