# tests/fakesupabase.py
"""In-memory stand-in for the async Supabase client.

Covers the PostgREST builder calls the repositories make, the two embeds
they use, object storage and the auth calls. Rows are copied on the way
out so callers never mutate the store.
"""

import copy
import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

_EMBED = re.compile(r"(?:(\w+):)?(\w+)\(([^)]*)\)")

# (parent table, embedded table) -> (kind, foreign key column)
_RELATIONS = {
    ("profiles", "roles"): ("parent", "role_id"),
    ("assessment_questions", "question_options"): ("children", "question_id"),
}

_DEFAULTS = {
    "profiles": {"current_status": "Pre-Joining", "manager_id": None},
    "course_enrollments": {"status": "enrolled", "completion_date": None},
    "course_assessments": {"status": "Pending"},
    "assessment_templates": {"is_mandatory": True, "assessment_type": "quiz"},
    "project_assignments": {"status": "Assigned"},
    "training_sessions": {"attendees": []},
}

_TIMESTAMP_COLUMNS = {
    "course_enrollments": "enrolled_date",
    "project_assignments": "assigned_at",
    "project_milestone_submissions": "submitted_at",
}


class FakeResult:
    def __init__(self, data):
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, db, name):
        self._db = db
        self._name = name
        self._filters = []
        self._embeds = []
        self._order = []
        self._limit = None
        self._action = "select"
        self._payload = None

    # --- builder -----------------------------------------------------------
    def select(self, columns="*", **kwargs):
        self._embeds = [(alias or table, table) for alias, table, _ in _EMBED.findall(columns or "")]
        return self

    def insert(self, payload):
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, fields):
        self._action = "update"
        self._payload = dict(fields)
        return self

    def delete(self):
        self._action = "delete"
        return self

    def eq(self, field, value):
        self._filters.append(lambda r: _same(r.get(field), value))
        return self

    def neq(self, field, value):
        self._filters.append(lambda r: not _same(r.get(field), value))
        return self

    def in_(self, field, values):
        wanted = {str(v) for v in values or []}
        self._filters.append(lambda r: str(r.get(field)) in wanted)
        return self

    def contains(self, field, values):
        wanted = {str(v) for v in values or []}
        self._filters.append(lambda r: wanted.issubset({str(v) for v in r.get(field) or []}))
        return self

    def order(self, field, desc=False):
        self._order.append((field, desc))
        return self

    def limit(self, n):
        self._limit = n
        return self

    # --- execution ---------------------------------------------------------
    async def execute(self):
        self._db.calls.append((self._name, self._action))
        if (self._name, self._action) in self._db.fail_on:
            raise RuntimeError(f"fake failure on {self._name}.{self._action}")
        table = self._db.tables.setdefault(self._name, [])
        if self._action == "insert":
            records = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = [self._db.new_row(self._name, r) for r in records]
            table.extend(inserted)
            return FakeResult(copy.deepcopy(inserted))

        matched = [r for r in table if all(f(r) for f in self._filters)]
        if self._action == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return FakeResult(copy.deepcopy(matched))
        if self._action == "delete":
            gone = {id(r) for r in matched}
            self._db.tables[self._name] = [r for r in table if id(r) not in gone]
            return FakeResult(copy.deepcopy(matched))

        rows = copy.deepcopy(matched)
        for field, desc in reversed(self._order):
            rows.sort(key=lambda r: (r.get(field) is None, "" if r.get(field) is None else r.get(field)), reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        for alias, embedded in self._embeds:
            for row in rows:
                row[alias] = self._db.embed(self._name, embedded, row)
        return FakeResult(rows)


def _same(a, b):
    if a is None or b is None:
        return a is b
    return str(a) == str(b)


class FakeBucket:
    def __init__(self, objects):
        self._objects = objects

    async def upload(self, path, file, file_options=None):
        if path in self._objects:
            return {"error": "Duplicate"}
        self._objects[path] = file
        return {"Key": path}

    async def remove(self, paths):
        for p in paths:
            self._objects.pop(p, None)
        return [{"name": p} for p in paths]

    async def create_signed_url(self, path, expires_in):
        if path not in self._objects:
            return {"error": "Object not found"}
        return {"signedURL": f"https://fake.storage/{path}?expires_in={expires_in}"}


class FakeStorage:
    def __init__(self):
        self.buckets = {}

    def from_(self, name):
        return FakeBucket(self.buckets.setdefault(name, {}))


class FakeAdminAuth:
    def __init__(self, db):
        self._db = db

    async def create_user(self, attributes):
        email = attributes["email"]
        if email in self._db.auth_emails:
            raise RuntimeError("A user with this email address has already been registered")
        user_id = str(uuid.uuid4())
        self._db.auth_emails.add(email)
        if self._db.signup_trigger:
            meta = attributes.get("user_metadata") or {}
            self._db.tables.setdefault("profiles", []).append(
                self._db.new_row(
                    "profiles",
                    {"id": user_id, "email": email, "first_name": meta.get("first_name"), "last_name": meta.get("last_name")},
                )
            )
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))


class FakeAuth:
    def __init__(self, db):
        self._db = db
        self.tokens = {}
        self.admin = FakeAdminAuth(db)

    async def get_user(self, token):
        user_id = self.tokens.get(token)
        if user_id is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user_id))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.fail_on = set()
        self.auth_emails = set()
        self.signup_trigger = True
        self.storage = FakeStorage()
        self.auth = FakeAuth(self)
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def table(self, name: str):
        return FakeQuery(self, name)

    def now(self) -> str:
        # strictly increasing so "newest first" ordering is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def new_row(self, table, record):
        row = dict(_DEFAULTS.get(table, {}))
        row.update(copy.deepcopy(record))
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self.now())
        column = _TIMESTAMP_COLUMNS.get(table)
        if column:
            row.setdefault(column, self.now())
        return row

    def embed(self, parent, embedded, row):
        kind, fk = _RELATIONS[(parent, embedded)]
        rows = self.tables.get(embedded, [])
        if kind == "parent":
            match = next((r for r in rows if _same(r.get("id"), row.get(fk))), None)
            return copy.deepcopy(match)
        return [copy.deepcopy(r) for r in rows if _same(r.get(fk), row.get("id"))]

    # --- seeding helpers -------------------------------------------------
    def seed(self, table, **record):
        row = self.new_row(table, record)
        self.tables.setdefault(table, []).append(row)
        return row

    def seed_roles(self):
        for name in ("Management", "HR", "Team Lead", "Trainee"):
            self.seed("roles", role_name=name, role_description=f"{name} role")

    def role_id(self, name):
        return next(r["id"] for r in self.tables.get("roles", []) if r["role_name"] == name)

    def add_profile(self, role_name=None, **fields):
        fields.setdefault("first_name", "Test")
        fields.setdefault("last_name", "User")
        role_id = self.role_id(role_name) if role_name else None
        return self.seed("profiles", role_id=role_id, **fields)

    def rows(self, table, **where):
        return [r for r in self.tables.get(table, []) if all(_same(r.get(k), v) for k, v in where.items())]
