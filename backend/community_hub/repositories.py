"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
courses, events, resources, expert talks, habits). Repositories return
SQLModel objects and perform commits/refreshes where appropriate.
Missing records are reported as `None` (lookups) or `False` (deletes).
"""

from typing import Dict, List, Optional
from sqlmodel import Session, select
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from . import models
from .models import utcnow


class _BaseRepository:
    """Shared CRUD helpers for a single table with `updated_at` tracking."""
    model = None

    def __init__(self, session: Session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def get(self, obj_id: int):
        """Fetch a row by primary key or `None`."""
        return self.session.get(self.model, obj_id)

    def create(self, obj):
        """Persist a new row and return the managed instance."""
        return self._save(obj)

    def update(self, obj, updates: Dict):
        """Apply a partial update and bump `updated_at`."""
        for key, value in updates.items():
            setattr(obj, key, value)
        obj.updated_at = utcnow()
        return self._save(obj)

    def delete(self, obj_id: int) -> bool:
        """Delete a row by id. Returns True when a row was removed."""
        obj = self.session.get(self.model, obj_id)
        if not obj:
            return False
        self.session.delete(obj)
        self.session.commit()
        return True

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(self.model)).one()


class UserRepository(_BaseRepository):
    """Profile lookups plus the sub-record and membership mutations.

    Every mutation bumps the owning user's `updated_at` in the same
    commit as the change itself.
    """
    model = models.User

    def get_by_clerk_id(self, clerk_id: str) -> Optional[models.User]:
        """Return a `User` by Clerk id or `None` if not found."""
        stmt = select(models.User).where(models.User.clerk_id == clerk_id)
        return self.session.exec(stmt).first()

    def _commit_for(self, user: models.User, *objs):
        for obj in objs:
            self.session.add(obj)
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def add_child(self, user: models.User, child) -> models.User:
        """Attach a check-in, planner entry, brain-dump note or focus session."""
        child.user_id = user.id
        return self._commit_for(user, child)

    def get_planner_entry(self, user: models.User, entry_id: int) -> Optional[models.PlannerEntry]:
        """Return the planner entry only if it belongs to `user`."""
        stmt = select(models.PlannerEntry).where(
            models.PlannerEntry.id == entry_id,
            models.PlannerEntry.user_id == user.id
        )
        return self.session.exec(stmt).first()

    def update_planner_entry(self, user: models.User, entry: models.PlannerEntry, updates: Dict) -> models.PlannerEntry:
        for key, value in updates.items():
            setattr(entry, key, value)
        self._commit_for(user, entry)
        self.session.refresh(entry)
        return entry

    def remove_child(self, user: models.User, child_model, entry_id: int) -> models.User:
        """Pull a child row by id; a missing or foreign entry is a no-op."""
        stmt = select(child_model).where(child_model.id == entry_id, child_model.user_id == user.id)
        child = self.session.exec(stmt).first()
        if child is not None:
            self.session.delete(child)
        return self._commit_for(user)

    def add_link(self, user: models.User, link) -> bool:
        """Insert a membership row with set semantics.

        Returns False when the pair already exists, including when a
        concurrent request inserted it first.
        """
        key = {c: getattr(link, c) for c in link.__table__.primary_key.columns.keys()}
        if self.session.get(type(link), key) is not None:
            return False
        try:
            self._commit_for(user, link)
        except IntegrityError:
            self.session.rollback()
            return False
        return True

    def remove_link(self, user: models.User, link_model, **key) -> bool:
        """Delete a membership row. Returns False when it did not exist."""
        link = self.session.get(link_model, key)
        if link is None:
            return False
        self.session.delete(link)
        self._commit_for(user)
        return True

    def set_user_type(self, user: models.User, user_type: str) -> models.User:
        user.user_type = user_type
        return self._commit_for(user)


class CourseRepository(_BaseRepository):
    """CRUD operations for `Course` rows."""
    model = models.Course

    def list_all(self) -> List[models.Course]:
        return self.session.exec(select(models.Course).order_by(models.Course.id)).all()


class EventRepository(_BaseRepository):
    """CRUD operations and date queries for `Event` rows."""
    model = models.Event

    def list_all(self) -> List[models.Event]:
        return self.session.exec(select(models.Event).order_by(models.Event.id)).all()

    def list_upcoming(self, now) -> List[models.Event]:
        """Events strictly after `now`, soonest first."""
        stmt = select(models.Event).where(models.Event.event_date > now).order_by(models.Event.event_date, models.Event.id)
        return self.session.exec(stmt).all()

    def count_upcoming(self, now) -> int:
        stmt = select(func.count()).select_from(models.Event).where(models.Event.event_date > now)
        return self.session.exec(stmt).one()


class ResourceRepository(_BaseRepository):
    """CRUD operations for `Resource` rows."""
    model = models.Resource

    def list_all(self, category: Optional[str] = None) -> List[models.Resource]:
        """Return all resources, optionally restricted to one category."""
        stmt = select(models.Resource)
        if category:
            stmt = stmt.where(models.Resource.resource_category == category)
        return self.session.exec(stmt.order_by(models.Resource.id)).all()


class ExpertTalkRepository(_BaseRepository):
    """Create/list/delete for `ExpertTalk` rows."""
    model = models.ExpertTalk

    def list_all(self) -> List[models.ExpertTalk]:
        """Newest talks first."""
        stmt = select(models.ExpertTalk).order_by(models.ExpertTalk.created_at.desc(), models.ExpertTalk.id.desc())
        return self.session.exec(stmt).all()


class HabitRepository(_BaseRepository):
    """Per-user habit records."""
    model = models.Habit

    def list_for_user(self, clerk_id: str) -> List[models.Habit]:
        stmt = select(models.Habit).where(models.Habit.clerk_id == clerk_id).order_by(models.Habit.id)
        return self.session.exec(stmt).all()
