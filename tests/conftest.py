import copy
import re
import sys
import types
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace

import pytest
from bson import ObjectId
from openpyxl import Workbook
from pymongo.errors import DuplicateKeyError

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


# ---------------------------------------------------------------------------
# In-memory stand-in for config.database (no live MongoDB in unit tests)
# ---------------------------------------------------------------------------

def _matches(doc: dict, query: dict) -> bool:
    for key, expected in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in expected):
                return False
            continue
        actual = doc.get(key)
        if isinstance(expected, dict) and "$regex" in expected:
            flags = re.IGNORECASE if "i" in expected.get("$options", "") else 0
            if actual is None or not re.search(expected["$regex"], str(actual), flags):
                return False
        elif actual != expected:
            return False
    return True


class InMemoryCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, field, direction=1):
        self._docs.sort(
            key=lambda d: (d.get(field) is not None, d.get(field) or 0),
            reverse=direction < 0,
        )
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        if n:
            self._docs = self._docs[:n]
        return self

    def __iter__(self):
        return iter(self._docs)


class InMemoryCollection:
    def __init__(self):
        self.docs: list[dict] = []
        self.unique_fields: set[str] = set()

    def clear(self):
        self.docs.clear()

    def create_index(self, keys, unique=False, **_kwargs):
        field = keys if isinstance(keys, str) else keys[0][0]
        if unique:
            self.unique_fields.add(field)
        return field

    def _check_unique(self, candidate: dict, ignore_id=None):
        for field in self.unique_fields:
            value = candidate.get(field)
            if value is None:
                continue
            for doc in self.docs:
                if doc["_id"] != ignore_id and doc.get(field) == value:
                    raise DuplicateKeyError(f"E11000 duplicate key {field}: {value}")

    def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query=None):
        return InMemoryCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query or {})])

    def find_one(self, query=None, sort=None):
        for doc in self.docs:
            if _matches(doc, query or {}):
                return copy.deepcopy(doc)
        return None

    def _apply_update(self, doc, update):
        candidate = {**doc, **update.get("$set", {})}
        self._check_unique(candidate, ignore_id=doc["_id"])
        doc.update(update.get("$set", {}))

    def find_one_and_update(self, query, update, return_document=None):
        for doc in self.docs:
            if _matches(doc, query):
                self._apply_update(doc, update)
                return copy.deepcopy(doc)
        return None

    def update_one(self, query, update):
        for doc in self.docs:
            if _matches(doc, query):
                self._apply_update(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))


class InMemoryMongo:
    def __init__(self):
        self.collections: dict[str, InMemoryCollection] = {}

    def collection(self, name):
        return self.collections.setdefault(name, InMemoryCollection())

    def db(self):
        return self.collections

    def reset(self):
        for collection in self.collections.values():
            collection.clear()


_memory_mongo = InMemoryMongo()

dummy_db_module = types.ModuleType("config.database")
dummy_db_module.mongodb = _memory_mongo
dummy_db_module.MongoConnection = InMemoryMongo

sys.modules["config.database"] = dummy_db_module


@pytest.fixture(autouse=True)
def mongo():
    """Fresh in-memory collections for every test."""
    _memory_mongo.reset()
    yield _memory_mongo
    _memory_mongo.reset()


@pytest.fixture
def app(mongo):
    from app import create_app

    app = create_app()
    app.config.update(TESTING=True, SECRET_KEY="test")
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client):
    """Put an admin session on the test client."""

    def _login(role="ADMIN", username="admin"):
        with client.session_transaction() as sess:
            sess["username"] = username
            sess["role"] = role
        return client

    return _login


@pytest.fixture
def member_repo(mongo):
    from repositories.member_repository import MemberRepository

    repo = MemberRepository()
    repo.ensure_indexes()
    return repo


# ---------------------------------------------------------------------------
# Workbook helpers
# ---------------------------------------------------------------------------

def workbook_bytes(rows, title="Socios") -> bytes:
    """Build an XLSX payload whose first sheet holds ``rows`` from A1."""
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for r_idx, row in enumerate(rows, start=1):
        for c_idx, value in enumerate(row, start=1):
            if value is not None and value != "":
                ws.cell(row=r_idx, column=c_idx, value=value)
    stream = BytesIO()
    wb.save(stream)
    return stream.getvalue()


@pytest.fixture
def make_workbook():
    return workbook_bytes
