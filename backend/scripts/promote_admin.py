"""CLI script to grant or revoke admin rights on a user profile.
Usage: python scripts/promote_admin.py CLERK_ID [--demote]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `community_hub` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from community_hub.database import engine, create_db_and_tables
from community_hub import repositories


def main(clerk_id: str, demote: bool = False) -> int:
    """Set `user_type` to `admin` (or back to `user`) for `clerk_id`.

    Returns a process exit code: 1 when no profile exists for the id.
    """
    create_db_and_tables()
    with Session(engine) as session:
        repo = repositories.UserRepository(session)
        user = repo.get_by_clerk_id(clerk_id)
        if not user:
            print(f'No user profile for clerk id {clerk_id}')
            return 1
        new_type = 'user' if demote else 'admin'
        repo.set_user_type(user, new_type)
        print(f'{clerk_id} ({user.user_first_name} {user.user_last_name}) is now {new_type}')
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('clerk_id', help='Clerk user id of the profile')
    parser.add_argument('--demote', action='store_true', help='Revoke admin rights instead of granting them')
    args = parser.parse_args()
    sys.exit(main(args.clerk_id, demote=args.demote))
