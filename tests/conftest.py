import sys
import os

# Ensure repo root on sys.path for imports like `lms...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Settings are read once; keep tests offline and free of retry sleeps.
os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-test-key")
os.environ["PROFILE_FETCH_DELAYS"] = "0"

import pytest

from lms.common import cache
from lms.db import supabase as supabase_module
from lms.features.assessments.timer import AttemptRegistry, attempt_registry
from lms.features.auth.permissions import AuthContext
from lms.common.enums import RoleName

from tests.fakesupabase import FakeSupabase


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_process_state():
    cache.clear()
    yield
    cache.clear()
    attempt_registry.clear()


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeSupabase()
    db.seed_roles()
    monkeypatch.setattr(supabase_module, "_client", db)
    monkeypatch.setattr(supabase_module, "_admin_client", db)
    return db


@pytest.fixture
async def registry():
    reg = AttemptRegistry()
    yield reg
    # cancel pending countdowns while their loop is still running
    reg.clear()


@pytest.fixture
def make_ctx(fake_db):
    """Build an ``AuthContext`` backed by a seeded profile row."""

    def _make(role=None, **fields):
        profile = fake_db.add_profile(role.value if role else None, **fields)
        return AuthContext(user_id=str(profile["id"]), role=role, profile=profile, access_token="token-" + str(profile["id"]))

    return _make


@pytest.fixture
def admin(make_ctx):
    return make_ctx(RoleName.HR, first_name="Hana", last_name="Reyes")


@pytest.fixture
def trainee(make_ctx):
    return make_ctx(RoleName.TRAINEE, first_name="Tomas", last_name="Ito")
