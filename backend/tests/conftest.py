"""
Shared fixtures: an in-memory stand-in for the Supabase client and a
TestClient wired to it through FastAPI dependency overrides.
"""
import json
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.auth.schema import CurrentUser
from app.core.auth import get_current_user
from app.core.database import get_supabase
from app.main import app

TEST_USER_ID = "7b0c6c1e-3f55-4a8e-9d0f-2f1f2c6b9a11"


class FakeQuery:
    def __init__(self, table: "FakeTable"):
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []

    def select(self, *columns):
        self.op = "select"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def limit(self, count):
        return self

    def upsert(self, payload):
        self.op = "upsert"
        self.payload = payload
        return self

    def execute(self):
        return self.table.execute(self)


class FakeTable:
    def __init__(self, name: str):
        self.name = name
        self.rows: List[Dict[str, Any]] = []
        self.upsert_calls: List[Any] = []
        self.errors: Dict[str, Exception] = {}

    def fail(self, op: str, message: str = "relation does not exist", code: str = "42P01"):
        self.errors[op] = APIError({"message": message, "code": code})

    def execute(self, query: FakeQuery):
        if query.op in self.errors:
            raise self.errors[query.op]

        if query.op == "upsert":
            self.upsert_calls.append(query.payload)
            records = query.payload if isinstance(query.payload, list) else [query.payload]
            for record in records:
                existing = next(
                    (row for row in self.rows if "id" in record and row.get("id") == record["id"]),
                    None,
                )
                if existing is not None:
                    existing.update(record)
                else:
                    self.rows.append(dict(record))
            return SimpleNamespace(data=records)

        rows = [
            row for row in self.rows
            if all(row.get(column) == value for column, value in query.filters)
        ]
        return SimpleNamespace(data=rows)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        if self.storage.fail_when(path):
            raise Exception(f"Upload rejected for {path}")
        self.storage.uploads.append(
            {"bucket": self.name, "path": path, "file": file, "file_options": file_options}
        )
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []
        self.fail_when: Callable[[str], bool] = lambda path: False

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)

    @property
    def paths(self) -> List[str]:
        return [upload["path"] for upload in self.uploads]


class FakeSupabase:
    def __init__(self):
        self._tables: Dict[str, FakeTable] = {}
        self.storage = FakeStorage()
        self.auth = SimpleNamespace(get_user=lambda token: None)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.get_table(name))

    def get_table(self, name: str) -> FakeTable:
        if name not in self._tables:
            self._tables[name] = FakeTable(name)
        return self._tables[name]


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser(
        id=TEST_USER_ID,
        email="jane.doe@example.com",
        user_metadata={"full_name": "Jane Doe"},
        email_confirmed_at="2024-05-01T10:00:00Z",
    )


@pytest.fixture
def client(fake_supabase, current_user):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_current_user] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(fake_supabase):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def profile_data() -> Dict[str, Any]:
    """JSON ``data`` part as the onboarding form sends it"""
    return {
        "personalInfo": {
            "phone": "21655123456",
            "gender": "female",
            "dateOfBirth": "1985-03-14",
            "bio": "Cardiologist with a focus on preventive care.",
        },
        "professionalInfo": {
            "specialization": "Cardiology",
            "licenseNumber": "MED-448812",
            "experience": 12,
            "qualifications": [
                {"degree": "MD", "institution": "University of Tunis", "year": 2010},
                {"degree": "Cardiology Residency", "institution": "Charles Nicolle Hospital", "year": 2014},
            ],
            "languages": ["Arabic", "French", "English"],
        },
        "practiceDetails": {
            "practiceName": "Heart Care Clinic",
            "address": {
                "streetAddress": "12 Avenue Habib Bourguiba",
                "city": "Tunis",
                "state": "Tunis",
                "postalCode": "1000",
                "country": "Tunisia",
                "location": {"lat": 36.8, "lng": 10.18},
            },
            "consultationFee": 80,
            "availableHours": [
                {"day": "Monday", "slots": [{"start": "09:00", "end": "13:00"}]}
            ],
        },
        "verificationDocuments": {"termsAgreed": True},
    }


def pdf_part(name: str, filename: str = "document.pdf", content_type: str = "application/pdf"):
    return (name, (filename, b"%PDF-1.4 test", content_type))


def multipart(data: Optional[Dict[str, Any]], files: List[tuple]) -> Dict[str, Any]:
    form = {} if data is None else {"data": json.dumps(data)}
    return {"data": form, "files": files}
