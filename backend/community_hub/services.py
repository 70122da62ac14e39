"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they perform validation, call one
repository operation and log state changes. Lookups that miss return
`None`; invalid input raises `ValueError`, which controllers map to a
400 response.
"""

import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from . import models, repositories, schemas
from .models import as_utc, utcnow

logger = logging.getLogger("community_hub.services")


def _changes(updates) -> Dict:
    """Fields the client actually sent, ignoring explicit nulls."""
    return updates.model_dump(exclude_unset=True, exclude_none=True)


class UserService:
    """Profile documents and the productivity records embedded in them."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.course_repo = repositories.CourseRepository(session)
        self.event_repo = repositories.EventRepository(session)
        self.resource_repo = repositories.ResourceRepository(session)

    def get_user(self, clerk_id: str) -> Optional[models.User]:
        return self.user_repo.get_by_clerk_id(clerk_id)

    def get_or_create_user(self, payload: schemas.UserCreate) -> Tuple[models.User, bool]:
        """Return `(profile, created)` for `payload.clerk_id`.

        A new profile gets `user_type='user'`. An existing one is returned
        unchanged, including when a concurrent request inserted it between
        the lookup and our insert.
        """
        existing = self.get_user(payload.clerk_id)
        if existing:
            return existing, False
        user = models.User(
            clerk_id=payload.clerk_id,
            user_first_name=payload.user_first_name,
            user_last_name=payload.user_last_name,
            user_email=str(payload.user_email),
            user_type='user',
        )
        try:
            user = self.user_repo.create(user)
        except IntegrityError:
            self.session.rollback()
            logger.info("user_create_conflict clerk_id=%s", payload.clerk_id)
            return self.user_repo.get_by_clerk_id(payload.clerk_id), False
        logger.info("user_created clerk_id=%s id=%s", user.clerk_id, user.id)
        return user, True

    def update_user(self, clerk_id: str, updates: schemas.UserUpdate) -> Optional[models.User]:
        user = self.get_user(clerk_id)
        if not user:
            return None
        changes = _changes(updates)
        if 'user_email' in changes:
            changes['user_email'] = str(changes['user_email'])
        return self.user_repo.update(user, changes)

    def add_emotional_checkin(self, clerk_id: str, checkin: schemas.CheckinIn) -> Optional[models.User]:
        """Push a check-in; `checkin_date` defaults to now."""
        user = self.get_user(clerk_id)
        if not user:
            return None
        row = models.EmotionalCheckin(
            mood=checkin.mood,
            notes=checkin.notes,
            checkin_date=checkin.checkin_date or utcnow(),
        )
        return self.user_repo.add_child(user, row)

    def get_emotional_checkins(self, clerk_id: str) -> List[models.EmotionalCheckin]:
        user = self.get_user(clerk_id)
        return list(user.emotional_checkins) if user else []

    def add_planner_entry(self, clerk_id: str, entry: schemas.PlannerEntryIn) -> Optional[models.User]:
        user = self.get_user(clerk_id)
        if not user:
            return None
        row = models.PlannerEntry(
            p_entry_time=entry.p_entry_time,
            p_entry_task=entry.p_entry_task,
            p_entry_status=entry.p_entry_status,
        )
        return self.user_repo.add_child(user, row)

    def get_planner_entries(self, clerk_id: str) -> List[models.PlannerEntry]:
        user = self.get_user(clerk_id)
        return list(user.planner_entries) if user else []

    def update_planner_entry(self, clerk_id: str, entry_id: int, updates: schemas.PlannerEntryUpdate) -> Optional[models.PlannerEntry]:
        """Update only the time/task/status fields the client sent.

        Returns the updated entry, or `None` when the user does not exist
        or the entry is not one of theirs.
        """
        user = self.get_user(clerk_id)
        if not user:
            return None
        entry = self.user_repo.get_planner_entry(user, entry_id)
        if not entry:
            return None
        return self.user_repo.update_planner_entry(user, entry, _changes(updates))

    def delete_planner_entry(self, clerk_id: str, entry_id: int) -> Optional[models.User]:
        user = self.get_user(clerk_id)
        if not user:
            return None
        return self.user_repo.remove_child(user, models.PlannerEntry, entry_id)

    def add_brain_dump_entry(self, clerk_id: str, entry: schemas.BrainDumpIn) -> Optional[models.User]:
        user = self.get_user(clerk_id)
        if not user:
            return None
        return self.user_repo.add_child(user, models.BrainDumpEntry(content=entry.content))

    def delete_brain_dump_entry(self, clerk_id: str, entry_id: int) -> Optional[models.User]:
        user = self.get_user(clerk_id)
        if not user:
            return None
        return self.user_repo.remove_child(user, models.BrainDumpEntry, entry_id)

    def add_focus_session(self, clerk_id: str, session: schemas.FocusSessionIn) -> Optional[models.User]:
        """Record a finished focus session; `completed_at` is set to now."""
        user = self.get_user(clerk_id)
        if not user:
            return None
        row = models.FocusSession(duration_minutes=session.duration_minutes, task=session.task)
        return self.user_repo.add_child(user, row)

    def enroll_course(self, user: models.User, course_id: int) -> Optional[models.User]:
        """Add the course to the user's enrollments (no-op if already enrolled).

        Returns `None` when the course does not exist.
        """
        if not self.course_repo.get(course_id):
            return None
        added = self.user_repo.add_link(user, models.CourseEnrollment(user_id=user.id, course_id=course_id))
        if added:
            logger.info("course_enrolled clerk_id=%s course_id=%s", user.clerk_id, course_id)
        return user

    def add_favorite_resource(self, user: models.User, resource_id: int) -> Optional[models.User]:
        if not self.resource_repo.get(resource_id):
            return None
        added = self.user_repo.add_link(user, models.ResourceFavorite(user_id=user.id, resource_id=resource_id))
        if added:
            logger.info("resource_favorited clerk_id=%s resource_id=%s", user.clerk_id, resource_id)
        return user

    def register_event(self, user: models.User, event_id: int) -> Optional[models.User]:
        """Register the user for an event; also makes them an attendee."""
        if not self.event_repo.get(event_id):
            return None
        added = self.user_repo.add_link(user, models.EventAttendance(user_id=user.id, event_id=event_id))
        if added:
            logger.info("event_registered clerk_id=%s event_id=%s", user.clerk_id, event_id)
        return user

    def unregister_event(self, user: models.User, event_id: int) -> bool:
        removed = self.user_repo.remove_link(user, models.EventAttendance, user_id=user.id, event_id=event_id)
        if removed:
            logger.info("event_unregistered clerk_id=%s event_id=%s", user.clerk_id, event_id)
        return removed

    def get_summary(self, user: models.User) -> Dict:
        """Aggregate the profile page: joined catalog rows plus counters."""
        return {
            'enrolled_courses': sorted(user.enrolled_courses, key=lambda c: c.id),
            'registered_events': sorted(user.registered_events, key=lambda e: (as_utc(e.event_date), e.id)),
            'favorite_resources': sorted(user.favorite_resources, key=lambda r: r.id),
            'checkin_count': len(user.emotional_checkins),
            'pending_planner_count': sum(1 for p in user.planner_entries if p.p_entry_status == 'pending'),
            'total_focus_minutes': sum(f.duration_minutes for f in user.focus_sessions),
        }


class CourseService:
    """Course catalog management."""
    def __init__(self, session: Session):
        self.session = session
        self.course_repo = repositories.CourseRepository(session)

    def list_courses(self) -> List[models.Course]:
        return self.course_repo.list_all()

    def get_course(self, course_id: int) -> Optional[models.Course]:
        return self.course_repo.get(course_id)

    @staticmethod
    def _check_dates(start, end):
        if as_utc(end) < as_utc(start):
            raise ValueError("courseEndDate must not be before courseStartDate")

    def create_course(self, payload: schemas.CourseIn) -> models.Course:
        self._check_dates(payload.course_start_date, payload.course_end_date)
        course = self.course_repo.create(models.Course(**payload.model_dump()))
        logger.info("course_created id=%s title=%r", course.id, course.course_title)
        return course

    def update_course(self, course_id: int, updates: schemas.CourseUpdate) -> Optional[models.Course]:
        """Partial update; the resulting date range must stay ordered."""
        course = self.course_repo.get(course_id)
        if not course:
            return None
        changes = _changes(updates)
        self._check_dates(
            changes.get('course_start_date', course.course_start_date),
            changes.get('course_end_date', course.course_end_date),
        )
        return self.course_repo.update(course, changes)

    def delete_course(self, course_id: int) -> bool:
        """Delete a course together with its enrollments."""
        ok = self.course_repo.delete(course_id)
        if ok:
            logger.info("course_deleted id=%s", course_id)
        return ok


class EventService:
    """Event catalog management and attendance."""
    def __init__(self, session: Session):
        self.session = session
        self.event_repo = repositories.EventRepository(session)

    def list_events(self) -> List[models.Event]:
        return self.event_repo.list_all()

    def list_upcoming(self) -> List[models.Event]:
        """Events later than the current time, soonest first."""
        return self.event_repo.list_upcoming(utcnow())

    def get_event(self, event_id: int) -> Optional[models.Event]:
        return self.event_repo.get(event_id)

    def create_event(self, payload: schemas.EventIn) -> models.Event:
        event = self.event_repo.create(models.Event(**payload.model_dump()))
        logger.info("event_created id=%s name=%r", event.id, event.event_name)
        return event

    def update_event(self, event_id: int, updates: schemas.EventUpdate) -> Optional[models.Event]:
        event = self.event_repo.get(event_id)
        if not event:
            return None
        return self.event_repo.update(event, _changes(updates))

    def delete_event(self, event_id: int) -> bool:
        ok = self.event_repo.delete(event_id)
        if ok:
            logger.info("event_deleted id=%s", event_id)
        return ok


class ResourceService:
    """Resource library management."""
    def __init__(self, session: Session):
        self.session = session
        self.resource_repo = repositories.ResourceRepository(session)

    def list_resources(self, category: Optional[str] = None) -> List[models.Resource]:
        return self.resource_repo.list_all(category)

    def get_resource(self, resource_id: int) -> Optional[models.Resource]:
        return self.resource_repo.get(resource_id)

    def create_resource(self, payload: schemas.ResourceIn) -> models.Resource:
        resource = self.resource_repo.create(models.Resource(**payload.model_dump()))
        logger.info("resource_created id=%s category=%s", resource.id, resource.resource_category)
        return resource

    def update_resource(self, resource_id: int, updates: schemas.ResourceUpdate) -> Optional[models.Resource]:
        resource = self.resource_repo.get(resource_id)
        if not resource:
            return None
        return self.resource_repo.update(resource, _changes(updates))

    def delete_resource(self, resource_id: int) -> bool:
        ok = self.resource_repo.delete(resource_id)
        if ok:
            logger.info("resource_deleted id=%s", resource_id)
        return ok


class ExpertTalkService:
    """Expert talk listing."""
    def __init__(self, session: Session):
        self.session = session
        self.talk_repo = repositories.ExpertTalkRepository(session)

    def list_talks(self) -> List[models.ExpertTalk]:
        return self.talk_repo.list_all()

    def create_talk(self, payload: schemas.ExpertTalkIn) -> models.ExpertTalk:
        title = (payload.title or '').strip()
        link = (payload.youtube_link or '').strip()
        if not title or not link:
            raise ValueError("title and youtubeLink are required")
        talk = self.talk_repo.create(models.ExpertTalk(title=title, youtube_link=link))
        logger.info("expert_talk_created id=%s", talk.id)
        return talk

    def delete_talk(self, talk_id: int) -> bool:
        ok = self.talk_repo.delete(talk_id)
        if ok:
            logger.info("expert_talk_deleted id=%s", talk_id)
        return ok


class HabitService:
    """Habit tracking for a single user."""
    def __init__(self, session: Session):
        self.session = session
        self.habit_repo = repositories.HabitRepository(session)

    def list_habits(self, clerk_id: str) -> List[models.Habit]:
        return self.habit_repo.list_for_user(clerk_id)

    def get_habit(self, habit_id: int) -> Optional[models.Habit]:
        return self.habit_repo.get(habit_id)

    def create_habit(self, payload: schemas.HabitIn) -> models.Habit:
        return self.habit_repo.create(models.Habit(**payload.model_dump()))

    def update_progress(self, habit: models.Habit, progress: int) -> models.Habit:
        if progress < 0:
            raise ValueError("progress must be >= 0")
        return self.habit_repo.update(habit, {'habit_progress': progress})

    def delete_habit(self, habit_id: int) -> bool:
        return self.habit_repo.delete(habit_id)


class StatsService:
    """Totals shown on the admin dashboard."""
    def __init__(self, session: Session):
        self.session = session

    def get_stats(self) -> Dict:
        return {
            'total_courses': repositories.CourseRepository(self.session).count(),
            'total_events': repositories.EventRepository(self.session).count(),
            'upcoming_events': repositories.EventRepository(self.session).count_upcoming(utcnow()),
            'total_resources': repositories.ResourceRepository(self.session).count(),
            'total_expert_talks': repositories.ExpertTalkRepository(self.session).count(),
            'total_users': repositories.UserRepository(self.session).count(),
        }
