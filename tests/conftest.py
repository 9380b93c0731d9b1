import uuid
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from database import get_supabase_client, new_supabase_client
from main import app

# (table, embedded relation) -> (local column, remote column)
RELATIONS = {
    ("scrap_requests", "profiles"): ("user_id", "id"),
    ("scrap_requests", "scrap_items"): ("item_type", "id"),
    ("scrap_request_images", "scrap_requests"): ("request_id", "id"),
}


def split_columns(columns):
    """Split a PostgREST select string on top-level commas"""
    parts, depth, current = [], 0, ""
    for char in columns:
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current.strip():
        parts.append(current.strip())
    return parts


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.count = None
        self.payload = None
        self.filters = []
        self.ordering = None
        self.row_limit = None

    def select(self, columns="*", count=None):
        self.action, self.columns, self.count = "select", columns, count
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def upsert(self, payload):
        self.action, self.payload = "upsert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def limit(self, size):
        self.row_limit = size
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def _project(self, row):
        projected = {}
        for part in split_columns(self.columns):
            if part == "*":
                projected.update(row)
            elif "(" in part:
                relation, inner = part.split("(", 1)
                relation = relation.strip()
                local, remote = RELATIONS[(self.table, relation)]
                fields = [f.strip() for f in inner.rstrip(")").split(",")]
                related = next((r for r in self.db.tables[relation] if r.get(remote) == row.get(local)), None)
                projected[relation] = None if related is None else {f: related.get(f) for f in fields}
            else:
                projected[part] = row.get(part)
        return projected

    def execute(self):
        self.db.calls.append((self.table, self.action))
        rows = self.db.tables.setdefault(self.table, [])

        if self.action in ("insert", "upsert"):
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                row = dict(payload)
                existing = next((r for r in rows if row.get("id") and r.get("id") == row["id"]), None)
                if existing is not None and self.action == "upsert":
                    existing.update(row)
                    inserted.append(dict(existing))
                    continue
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", self.db.next_timestamp())
                rows.append(row)
                inserted.append(dict(row))
            return SimpleNamespace(data=inserted, count=None)

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return SimpleNamespace(data=updated, count=None)

        if self.action == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=removed, count=None)

        selected = [row for row in rows if self._matches(row)]
        if self.ordering:
            column, desc = self.ordering
            selected.sort(key=lambda r: r.get(column) or "", reverse=desc)
        count = len(selected) if self.count == "exact" else None
        if self.row_limit is not None:
            selected = selected[:self.row_limit]
        return SimpleNamespace(data=[self._project(row) for row in selected], count=count)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, content, options=None):
        self.storage.upload_attempts += 1
        if self.storage.fail_on_upload == self.storage.upload_attempts:
            raise RuntimeError("storage unavailable")
        objects = self.storage.buckets.setdefault(self.name, {})
        if path in objects:
            raise RuntimeError("The resource already exists")
        objects[path] = content
        return {"Key": f"{self.name}/{path}"}

    def remove(self, paths):
        objects = self.storage.buckets.setdefault(self.name, {})
        for path in paths:
            objects.pop(path, None)
        return [{"name": path} for path in paths]

    def create_signed_url(self, path, expires_in):
        if path not in self.storage.buckets.get(self.name, {}):
            raise RuntimeError("Object not found")
        return {"signedURL": f"https://storage.test/{self.name}/{path}?expires={expires_in}"}


class FakeStorage:
    def __init__(self):
        self.buckets = {}
        self.upload_attempts = 0
        self.fail_on_upload = None

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuthAdmin:
    def __init__(self, auth):
        self.auth = auth

    def sign_out(self, jwt, scope="global"):
        self.auth.signed_out.append(jwt)
        self.auth.tokens.pop(jwt, None)


class FakeAuth:
    def __init__(self):
        self.tokens = {}
        self.passwords = {}
        self.signed_out = []
        self.admin = FakeAuthAdmin(self)

    def add_user(self, token, user_id, email, name, role="user", password="secret123"):
        user = SimpleNamespace(id=user_id, email=email, user_metadata={"name": name, "role": role})
        self.tokens[token] = user
        self.passwords[email] = (password, token, user)
        return user

    def get_user(self, jwt=None):
        if jwt not in self.tokens:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.tokens[jwt])

    def sign_up(self, credentials):
        user_id = str(uuid.uuid4())
        metadata = credentials.get("options", {}).get("data", {})
        user = self.add_user(f"token-{user_id}", user_id, credentials["email"], metadata.get("name"),
                             metadata.get("role", "user"), credentials["password"])
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        password, token, user = self.passwords.get(credentials["email"], (None, None, None))
        if password is None or password != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        session = SimpleNamespace(access_token=token, refresh_token=f"refresh-{token}")
        return SimpleNamespace(user=user, session=session)


class FakeSupabase:
    def __init__(self):
        self.tables = {
            "profiles": [],
            "scrap_items": [],
            "scrap_requests": [],
            "scrap_request_images": [],
            "contact_submissions": [],
        }
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self.calls = []
        self._clock = datetime(2026, 1, 1, 9, 0, 0)

    def next_timestamp(self):
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, table, **filters):
        return [row for row in self.tables[table] if all(row.get(k) == v for k, v in filters.items())]


def seed(fake):
    fake.auth.add_user("user-token", "user-1", "asha@example.com", "Asha Reddy")
    fake.auth.add_user("other-token", "user-2", "vikram@example.com", "Vikram Rao")
    fake.auth.add_user("admin-token", "admin-1", "admin@example.com", "Admin", role="admin")

    fake.tables["profiles"] = [
        {"id": "user-1", "name": "Asha Reddy", "email": "asha@example.com", "phone": "9876500001",
         "role": "user", "created_at": "2025-12-01T10:00:00"},
        {"id": "user-2", "name": "Vikram Rao", "email": "vikram@example.com", "phone": "9123400002",
         "role": "user", "created_at": "2025-12-02T10:00:00"},
        {"id": "admin-1", "name": "Admin", "email": "admin@example.com", "phone": "9000000000",
         "role": "admin", "created_at": "2025-11-01T10:00:00"},
    ]
    fake.tables["scrap_items"] = [
        {"id": "item-fridge", "name": "Refrigerator", "working_price_min": 100, "working_price_max": 150,
         "not_working_price_min": 50, "not_working_price_max": 80},
        {"id": "item-ac", "name": "Air Conditioner", "working_price_min": 400, "working_price_max": 600,
         "not_working_price_min": 150, "not_working_price_max": 250},
        {"id": "item-washer", "name": "Washing Machine", "working_price_min": 200, "working_price_max": 300,
         "not_working_price_min": 90, "not_working_price_max": 120},
    ]


def add_request(fake, user_id, item_id="item-fridge", status="pending", images=2, **fields):
    """Insert a request row plus image rows and storage objects"""
    row = {
        "id": fields.pop("id", str(uuid.uuid4())),
        "created_at": fake.next_timestamp(),
        "user_id": user_id,
        "item_type": item_id,
        "condition": "working",
        "description": "",
        "address": "12 MG Road",
        "city": "Hyderabad",
        "state": "Telangana",
        "pincode": "500074",
        "pickup_date": date.today().isoformat(),
        "pickup_time_slot": "morning",
        "status": status,
        "estimated_price_min": 100,
        "estimated_price_max": 150,
    }
    row.update(fields)
    fake.tables["scrap_requests"].append(row)
    for index in range(images):
        path = f"{user_id}/{row['id']}/seed-{index}.jpg"
        fake.tables["scrap_request_images"].append(
            {"id": str(uuid.uuid4()), "request_id": row["id"], "image_path": path}
        )
        fake.storage.buckets.setdefault("scrap_images", {})[path] = b"jpeg"
    return row


@pytest.fixture
def fake_supabase():
    fake = FakeSupabase()
    seed(fake)
    return fake


@pytest.fixture
def client(fake_supabase):
    app.dependency_overrides[get_supabase_client] = lambda: fake_supabase
    app.dependency_overrides[new_supabase_client] = lambda: fake_supabase
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"Authorization": "Bearer user-token"}


@pytest.fixture
def other_user_headers():
    return {"Authorization": "Bearer other-token"}


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer admin-token"}
