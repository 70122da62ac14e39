"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the community hub backend.
Controllers are intentionally thin: they accept requests, check
required fields and authorization, delegate to services, and return
JSON responses (camelCase keys).

Endpoints implemented:
- /api/users: profile, check-ins, planner, brain dump, focus sessions,
  course enrollment, favorite resources, event registration, summary
- /api/courses: catalog CRUD, payment and course links
- /api/events: catalog CRUD, upcoming events, payment and event links,
  attendees
- /api/resources: library CRUD with category filter
- /api/expert-talks: list/create/delete
- /api/habits: per-user habit tracking
- /api/admin/stats: dashboard totals
- GET /health
"""

from typing import List, Optional
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services, repositories, models, schemas
from .auth import authorize_clerk_id, get_current_clerk_id, is_self_or_admin, require_admin
from .config import settings

app = FastAPI(title="Community Hub API")
logger = logging.getLogger("community_hub.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS for the local React dev server
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _request_log_line(request: Request, req_id: str, started: float, **extra) -> str:
    fields = {
        "request_id": req_id,
        "method": request.method,
        "path": request.url.path,
        **extra,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    return json.dumps(fields, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Tag each request with an X-Request-ID and log one JSON line per API call."""
    req_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = req_id
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed %s", _request_log_line(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            _request_log_line(request, req_id, started, status_code=response.status_code),
        )
    return response


def _user_out(user: Optional[models.User]) -> schemas.UserOut:
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    return schemas.UserOut.model_validate(user)


def _no_content() -> Response:
    return Response(status_code=204)


# --- users ---

@app.post('/api/users', response_model=schemas.UserOut, status_code=201)
def create_user(
    payload: schemas.UserCreate,
    response: Response,
    db: Session = Depends(get_session),
    caller: str = Depends(get_current_clerk_id),
):
    """Create the profile for a Clerk identity (idempotent).

    Returns the existing profile with status 200 if one already exists
    for `clerkId`, so the front end can call this on every sign-in.
    """
    if not is_self_or_admin(db, caller, payload.clerk_id):
        raise HTTPException(status_code=403, detail='not allowed to create this user')
    user, created = services.UserService(db).get_or_create_user(payload)
    if not created:
        response.status_code = 200
    return _user_out(user)


@app.get('/api/users/{clerk_id}', response_model=schemas.UserOut)
def get_user(clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return _user_out(services.UserService(db).get_user(clerk_id))


@app.put('/api/users/{clerk_id}', response_model=schemas.UserOut)
def update_user(payload: schemas.UserUpdate, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    """Update name/email fields of a profile."""
    return _user_out(services.UserService(db).update_user(clerk_id, payload))


@app.post('/api/users/{clerk_id}/checkin', response_model=schemas.UserOut)
def add_emotional_checkin(payload: schemas.CheckinIn, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return _user_out(services.UserService(db).add_emotional_checkin(clerk_id, payload))


@app.get('/api/users/{clerk_id}/checkins', response_model=List[schemas.CheckinOut])
def get_emotional_checkins(clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    """List check-ins; an unknown user simply has none."""
    rows = services.UserService(db).get_emotional_checkins(clerk_id)
    return [schemas.CheckinOut.model_validate(r) for r in rows]


@app.post('/api/users/{clerk_id}/planner', response_model=schemas.UserOut)
def add_planner_entry(payload: schemas.PlannerEntryIn, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return _user_out(services.UserService(db).add_planner_entry(clerk_id, payload))


@app.get('/api/users/{clerk_id}/planner', response_model=List[schemas.PlannerEntryOut])
def get_planner_entries(clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    rows = services.UserService(db).get_planner_entries(clerk_id)
    return [schemas.PlannerEntryOut.model_validate(r) for r in rows]


@app.put('/api/users/{clerk_id}/planner/{entry_id}', response_model=schemas.PlannerEntryOut)
def update_planner_entry(
    entry_id: int,
    payload: schemas.PlannerEntryUpdate,
    clerk_id: str = Depends(authorize_clerk_id),
    db: Session = Depends(get_session),
):
    """Update one planner entry and return it."""
    entry = services.UserService(db).update_planner_entry(clerk_id, entry_id, payload)
    if not entry:
        raise HTTPException(status_code=404, detail='User or planner entry not found')
    return schemas.PlannerEntryOut.model_validate(entry)


@app.put('/api/users/{clerk_id}/planner-delete', response_model=schemas.UserOut)
def delete_planner_entry(payload: schemas.EntryRef, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    """Remove a planner entry given as `{entryId}` in the body."""
    return _user_out(services.UserService(db).delete_planner_entry(clerk_id, payload.entry_id))


@app.post('/api/users/{clerk_id}/braindump', response_model=schemas.UserOut)
def add_brain_dump_entry(payload: schemas.BrainDumpIn, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return _user_out(services.UserService(db).add_brain_dump_entry(clerk_id, payload))


@app.put('/api/users/{clerk_id}/braindump-delete', response_model=schemas.UserOut)
def delete_brain_dump_entry(payload: schemas.EntryRef, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return _user_out(services.UserService(db).delete_brain_dump_entry(clerk_id, payload.entry_id))


@app.post('/api/users/{clerk_id}/focus', response_model=schemas.UserOut)
def add_focus_session(payload: schemas.FocusSessionIn, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return _user_out(services.UserService(db).add_focus_session(clerk_id, payload))


@app.post('/api/users/{clerk_id}/enrollCourse', response_model=schemas.UserOut)
def enroll_course(payload: schemas.CourseRef, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    """Enroll the user in a course. Enrolling twice is a no-op."""
    svc = services.UserService(db)
    user = svc.get_user(clerk_id)
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    if not svc.enroll_course(user, payload.course_id):
        raise HTTPException(status_code=404, detail='Course not found')
    return _user_out(user)


@app.post('/api/users/{clerk_id}/favoriteResource', response_model=schemas.UserOut)
def add_favorite_resource(payload: schemas.ResourceRef, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    svc = services.UserService(db)
    user = svc.get_user(clerk_id)
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    if not svc.add_favorite_resource(user, payload.resource_id):
        raise HTTPException(status_code=404, detail='Resource not found')
    return _user_out(user)


@app.post('/api/users/{clerk_id}/registerEvent', response_model=schemas.UserOut)
def register_event(payload: schemas.EventRef, clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    """Register the user for an event; they also appear in its attendees."""
    svc = services.UserService(db)
    user = svc.get_user(clerk_id)
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    if not svc.register_event(user, payload.event_id):
        raise HTTPException(status_code=404, detail='Event not found')
    return _user_out(user)


@app.get('/api/users/{clerk_id}/summary', response_model=schemas.UserSummaryOut)
def get_user_summary(clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    """Profile page data: enrolled courses, registered events and favorite
    resources with their details, plus check-in, pending-task and focus totals.
    """
    svc = services.UserService(db)
    user = svc.get_user(clerk_id)
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    s = svc.get_summary(user)
    return schemas.UserSummaryOut(
        enrolled_courses=[schemas.CourseOut.model_validate(c) for c in s['enrolled_courses']],
        registered_events=[schemas.EventOut.model_validate(e) for e in s['registered_events']],
        favorite_resources=[schemas.ResourceOut.model_validate(r) for r in s['favorite_resources']],
        checkin_count=s['checkin_count'],
        pending_planner_count=s['pending_planner_count'],
        total_focus_minutes=s['total_focus_minutes'],
    )


# --- courses ---

def _course_or_404(db: Session, course_id: int) -> models.Course:
    course = services.CourseService(db).get_course(course_id)
    if not course:
        raise HTTPException(status_code=404, detail='Course not found')
    return course


@app.get('/api/courses', response_model=List[schemas.CourseOut])
def list_courses(db: Session = Depends(get_session)):
    """Return the entire course catalog."""
    return [schemas.CourseOut.model_validate(c) for c in services.CourseService(db).list_courses()]


@app.get('/api/courses/{course_id}', response_model=schemas.CourseOut)
def get_course(course_id: int, db: Session = Depends(get_session)):
    return schemas.CourseOut.model_validate(_course_or_404(db, course_id))


@app.get('/api/courses/{course_id}/payment-link', response_model=schemas.PaymentLinkOut)
def get_course_payment_link(course_id: int, db: Session = Depends(get_session)):
    course = _course_or_404(db, course_id)
    if not course.payment_link:
        raise HTTPException(status_code=404, detail='Payment link not available for this course')
    return schemas.PaymentLinkOut(payment_link=course.payment_link)


@app.get('/api/courses/{course_id}/course-link', response_model=schemas.CourseLinkOut)
def get_course_link(course_id: int, db: Session = Depends(get_session)):
    course = _course_or_404(db, course_id)
    if not course.course_link:
        raise HTTPException(status_code=404, detail='Course link not available for this course')
    return schemas.CourseLinkOut(course_link=course.course_link)


@app.post('/api/courses', response_model=schemas.CourseOut, status_code=201)
def create_course(payload: schemas.CourseIn, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Create a course (admin only)."""
    try:
        course = services.CourseService(db).create_course(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return schemas.CourseOut.model_validate(course)


@app.put('/api/courses/{course_id}', response_model=schemas.CourseOut)
def update_course(course_id: int, payload: schemas.CourseUpdate, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    try:
        course = services.CourseService(db).update_course(course_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not course:
        raise HTTPException(status_code=404, detail='Course not found')
    return schemas.CourseOut.model_validate(course)


@app.delete('/api/courses/{course_id}', status_code=204)
def delete_course(course_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Delete a course; existing enrollments in it are dropped."""
    if not services.CourseService(db).delete_course(course_id):
        raise HTTPException(status_code=404, detail='Course not found or could not be deleted')
    return _no_content()


# --- events ---

def _event_or_404(db: Session, event_id: int) -> models.Event:
    event = services.EventService(db).get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail='Event not found')
    return event


@app.get('/api/events', response_model=List[schemas.EventOut])
def list_events(db: Session = Depends(get_session)):
    return [schemas.EventOut.model_validate(e) for e in services.EventService(db).list_events()]


@app.get('/api/events/upcoming', response_model=List[schemas.EventOut])
def list_upcoming_events(db: Session = Depends(get_session)):
    """Events that have not started yet, soonest first."""
    return [schemas.EventOut.model_validate(e) for e in services.EventService(db).list_upcoming()]


@app.get('/api/events/{event_id}', response_model=schemas.EventOut)
def get_event(event_id: int, db: Session = Depends(get_session)):
    return schemas.EventOut.model_validate(_event_or_404(db, event_id))


@app.get('/api/events/{event_id}/payment-link', response_model=schemas.PaymentLinkOut)
def get_event_payment_link(event_id: int, db: Session = Depends(get_session)):
    event = _event_or_404(db, event_id)
    if not event.payment_link:
        raise HTTPException(status_code=404, detail='Payment link not available for this event')
    return schemas.PaymentLinkOut(payment_link=event.payment_link)


@app.get('/api/events/{event_id}/event-link', response_model=schemas.EventLinkOut)
def get_event_link(event_id: int, db: Session = Depends(get_session)):
    event = _event_or_404(db, event_id)
    if not event.event_link:
        raise HTTPException(status_code=404, detail='Event link not available for this event')
    return schemas.EventLinkOut(event_link=event.event_link)


@app.post('/api/events', response_model=schemas.EventOut, status_code=201)
def create_event(payload: schemas.EventIn, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Create an event with no attendees (admin only)."""
    return schemas.EventOut.model_validate(services.EventService(db).create_event(payload))


@app.put('/api/events/{event_id}', response_model=schemas.EventOut)
def update_event(event_id: int, payload: schemas.EventUpdate, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    event = services.EventService(db).update_event(event_id, payload)
    if not event:
        raise HTTPException(status_code=404, detail='Event not found')
    return schemas.EventOut.model_validate(event)


def _attendee_or_403(db: Session, caller: str, user_id: int) -> models.User:
    """Resolve `user_id` for an attendance change by that user or an admin.

    Anyone else gets 403 whether or not the id exists.
    """
    target = repositories.UserRepository(db).get(user_id)
    if not is_self_or_admin(db, caller, target.clerk_id if target else None):
        raise HTTPException(status_code=403, detail='not allowed to change this registration')
    if not target:
        raise HTTPException(status_code=404, detail='Event or User not found')
    return target


@app.post('/api/events/{event_id}/attendee/{user_id}', response_model=schemas.EventOut)
def add_attendee(event_id: int, user_id: int, db: Session = Depends(get_session), caller: str = Depends(get_current_clerk_id)):
    """Add a user to the event's attendees (no-op if already attending)."""
    target = _attendee_or_403(db, caller, user_id)
    if not services.UserService(db).register_event(target, event_id):
        raise HTTPException(status_code=404, detail='Event not found')
    return schemas.EventOut.model_validate(_event_or_404(db, event_id))


@app.delete('/api/events/{event_id}/attendee/{user_id}', response_model=schemas.EventOut)
def remove_attendee(event_id: int, user_id: int, db: Session = Depends(get_session), caller: str = Depends(get_current_clerk_id)):
    target = _attendee_or_403(db, caller, user_id)
    event = services.EventService(db).get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail='Event or User not found')
    services.UserService(db).unregister_event(target, event_id)
    return schemas.EventOut.model_validate(_event_or_404(db, event_id))


@app.delete('/api/events/{event_id}', status_code=204)
def delete_event(event_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    if not services.EventService(db).delete_event(event_id):
        raise HTTPException(status_code=404, detail='Event not found or could not be deleted')
    return _no_content()


# --- resources ---

@app.get('/api/resources', response_model=List[schemas.ResourceOut])
def list_resources(category: Optional[schemas.ResourceCategory] = None, db: Session = Depends(get_session)):
    """List resources, optionally filtered with `?category=`."""
    rows = services.ResourceService(db).list_resources(category)
    return [schemas.ResourceOut.model_validate(r) for r in rows]


@app.get('/api/resources/{resource_id}', response_model=schemas.ResourceOut)
def get_resource(resource_id: int, db: Session = Depends(get_session)):
    resource = services.ResourceService(db).get_resource(resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail='Resource not found')
    return schemas.ResourceOut.model_validate(resource)


@app.post('/api/resources', response_model=schemas.ResourceOut, status_code=201)
def create_resource(payload: schemas.ResourceIn, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    return schemas.ResourceOut.model_validate(services.ResourceService(db).create_resource(payload))


@app.put('/api/resources/{resource_id}', response_model=schemas.ResourceOut)
def update_resource(resource_id: int, payload: schemas.ResourceUpdate, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    resource = services.ResourceService(db).update_resource(resource_id, payload)
    if not resource:
        raise HTTPException(status_code=404, detail='Resource not found')
    return schemas.ResourceOut.model_validate(resource)


@app.delete('/api/resources/{resource_id}', status_code=204)
def delete_resource(resource_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    if not services.ResourceService(db).delete_resource(resource_id):
        raise HTTPException(status_code=404, detail='Resource not found or could not be deleted')
    return _no_content()


# --- expert talks ---

@app.get('/api/expert-talks', response_model=List[schemas.ExpertTalkOut])
def list_expert_talks(db: Session = Depends(get_session)):
    """Newest talks first, each with a YouTube thumbnail URL when one can be derived."""
    return [schemas.ExpertTalkOut.model_validate(t) for t in services.ExpertTalkService(db).list_talks()]


@app.post('/api/expert-talks', response_model=schemas.ExpertTalkOut, status_code=201)
def create_expert_talk(payload: schemas.ExpertTalkIn, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    try:
        talk = services.ExpertTalkService(db).create_talk(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return schemas.ExpertTalkOut.model_validate(talk)


@app.delete('/api/expert-talks/{talk_id}', status_code=204)
def delete_expert_talk(talk_id: int, db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    if not services.ExpertTalkService(db).delete_talk(talk_id):
        raise HTTPException(status_code=404, detail='Not found')
    return _no_content()


# --- habits ---

def _owned_habit(db: Session, caller: str, habit_id: int) -> models.Habit:
    habit = services.HabitService(db).get_habit(habit_id)
    if not habit:
        raise HTTPException(status_code=404, detail='Habit not found')
    if not is_self_or_admin(db, caller, habit.clerk_id):
        raise HTTPException(status_code=403, detail='not allowed to access this habit')
    return habit


@app.get('/api/habits/{clerk_id}', response_model=List[schemas.HabitOut])
def list_habits(clerk_id: str = Depends(authorize_clerk_id), db: Session = Depends(get_session)):
    return [schemas.HabitOut.model_validate(h) for h in services.HabitService(db).list_habits(clerk_id)]


@app.post('/api/habits', response_model=schemas.HabitOut, status_code=201)
def create_habit(payload: schemas.HabitIn, db: Session = Depends(get_session), caller: str = Depends(get_current_clerk_id)):
    """Create a habit for `clerkId`; the profile must already exist."""
    if not is_self_or_admin(db, caller, payload.clerk_id):
        raise HTTPException(status_code=403, detail='not allowed to create habits for this user')
    if not services.UserService(db).get_user(payload.clerk_id):
        raise HTTPException(status_code=404, detail='User not found')
    return schemas.HabitOut.model_validate(services.HabitService(db).create_habit(payload))


@app.put('/api/habits/{habit_id}/progress', response_model=schemas.HabitOut)
def update_habit_progress(
    habit_id: int,
    payload: schemas.HabitProgressIn,
    db: Session = Depends(get_session),
    caller: str = Depends(get_current_clerk_id),
):
    habit = _owned_habit(db, caller, habit_id)
    try:
        habit = services.HabitService(db).update_progress(habit, payload.progress)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return schemas.HabitOut.model_validate(habit)


@app.delete('/api/habits/{habit_id}', status_code=204)
def delete_habit(habit_id: int, db: Session = Depends(get_session), caller: str = Depends(get_current_clerk_id)):
    _owned_habit(db, caller, habit_id)
    services.HabitService(db).delete_habit(habit_id)
    return _no_content()


# --- admin ---

@app.get('/api/admin/stats', response_model=schemas.AdminStatsOut)
def admin_stats(db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Totals for the admin dashboard cards."""
    return schemas.AdminStatsOut(**services.StatsService(db).get_stats())


@app.get("/")
def read_root():
    return {"message": "Community Hub API is running"}


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
