"""CLI script to seed demo catalog data (courses, events, resources, talks).
Usage: python scripts/seed_catalog.py [--force]

Each collection is only seeded while it is empty unless --force is given.
"""
import sys
import argparse
import pathlib
from datetime import timedelta
# Ensure `backend/` is on sys.path so `community_hub` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from community_hub.database import engine, create_db_and_tables
from community_hub.models import utcnow
from community_hub import repositories, schemas, services


def demo_courses(now):
    return [
        schemas.CourseIn(
            course_title='Executive Function Foundations',
            course_description='Practical strategies for planning, prioritising and starting tasks.',
            course_instructor='Dr. Amara Okafor',
            course_start_date=now + timedelta(days=7),
            course_end_date=now + timedelta(days=49),
        ),
        schemas.CourseIn(
            course_title='Focus and Time Blindness',
            course_description='Tools for estimating time and protecting deep work.',
            course_instructor='Sam Lindqvist',
            course_start_date=now + timedelta(days=14),
            course_end_date=now + timedelta(days=42),
        ),
    ]


def demo_events(now):
    return [
        schemas.EventIn(
            event_name='Community Meetup',
            event_date=now + timedelta(days=10),
            event_location='Online',
            event_description='Monthly open call to share wins and challenges.',
        ),
        schemas.EventIn(
            event_name='Body Doubling Co-working',
            event_date=now + timedelta(days=3),
            event_location='Community Library, Room 2',
            event_description='Two quiet hours of working alongside others.',
        ),
    ]


def demo_resources():
    return [
        schemas.ResourceIn(
            resource_title='Pomodoro Technique Explained',
            resource_category='article',
            resource_link='https://en.wikipedia.org/wiki/Pomodoro_Technique',
            resource_description='Background on short focused work intervals.',
        ),
        schemas.ResourceIn(
            resource_title='Visual Timer',
            resource_category='tool',
            resource_link='https://www.online-stopwatch.com/countdown-timer/',
        ),
    ]


def main(force: bool = False):
    """Insert demo records into empty collections and print a summary."""
    create_db_and_tables()
    now = utcnow().replace(microsecond=0)
    with Session(engine) as session:
        created = {'courses': 0, 'events': 0, 'resources': 0, 'expert_talks': 0}
        if force or repositories.CourseRepository(session).count() == 0:
            svc = services.CourseService(session)
            for payload in demo_courses(now):
                svc.create_course(payload)
                created['courses'] += 1
        if force or repositories.EventRepository(session).count() == 0:
            svc = services.EventService(session)
            for payload in demo_events(now):
                svc.create_event(payload)
                created['events'] += 1
        if force or repositories.ResourceRepository(session).count() == 0:
            svc = services.ResourceService(session)
            for payload in demo_resources():
                svc.create_resource(payload)
                created['resources'] += 1
        if force or repositories.ExpertTalkRepository(session).count() == 0:
            services.ExpertTalkService(session).create_talk(
                schemas.ExpertTalkIn(title='Living Well with ADHD', youtube_link='https://www.youtube.com/watch?v=ouZrZa5pLXk')
            )
            created['expert_talks'] += 1
    for name, n in created.items():
        print(f'Seeded {name}: {n}')


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--force', action='store_true', help='Seed even when collections already have data')
    args = parser.parse_args()
    main(force=args.force)
