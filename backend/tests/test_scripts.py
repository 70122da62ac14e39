import importlib.util
from pathlib import Path

from sqlmodel import Session

from community_hub import models, repositories
from community_hub.database import engine

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


promote_admin = _load("promote_admin")
seed_catalog = _load("seed_catalog")


def _user_type(clerk_id):
    with Session(engine) as session:
        return repositories.UserRepository(session).get_by_clerk_id(clerk_id).user_type


def _counts():
    with Session(engine) as session:
        return (
            repositories.CourseRepository(session).count(),
            repositories.EventRepository(session).count(),
            repositories.ResourceRepository(session).count(),
            repositories.ExpertTalkRepository(session).count(),
        )


def test_promote_and_demote(member):
    assert promote_admin.main("user_member") == 0
    assert _user_type("user_member") == "admin"
    assert promote_admin.main("user_member", demote=True) == 0
    assert _user_type("user_member") == "user"


def test_promote_unknown_user(capsys):
    assert promote_admin.main("user_nobody") == 1
    assert "No user profile" in capsys.readouterr().out


def test_seed_only_fills_empty_tables():
    seed_catalog.main()
    assert _counts() == (2, 2, 2, 1)
    seed_catalog.main()
    assert _counts() == (2, 2, 2, 1)
    seed_catalog.main(force=True)
    assert _counts() == (4, 4, 4, 2)


def test_seed_skips_tables_that_already_have_rows():
    with Session(engine) as session:
        session.add(models.ExpertTalk(title="Existing", youtube_link="https://youtu.be/abc"))
        session.commit()
    seed_catalog.main()
    assert _counts() == (2, 2, 2, 1)
