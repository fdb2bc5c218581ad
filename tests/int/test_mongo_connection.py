import os
import uuid

import pytest
from pymongo import MongoClient

from domain.models.member import Member
from repositories.member_repository import MemberRepository

pytestmark = pytest.mark.integration

TEST_URI = os.getenv("TEST_MONGODB_URI")


@pytest.fixture
def live_collection():
    if not TEST_URI:
        pytest.skip("TEST_MONGODB_URI must be set for integration tests.")
    assert TEST_URI.startswith("mongodb://") or TEST_URI.startswith("mongodb+srv://")

    client = MongoClient(TEST_URI, serverSelectionTimeoutMS=5000)
    client.admin.command("ping")
    collection = client[os.getenv("DB_NAME", "membership_registry_test")][f"members_{uuid.uuid4().hex[:8]}"]
    yield collection
    collection.drop()
    client.close()


def test_member_repository_against_live_mongo(live_collection):
    repo = MemberRepository(collection=live_collection)
    repo.ensure_indexes()

    created = repo.create(Member(rut="10.017.452-9", full_name="Ana", token="t" * 32))
    updated = repo.update("10017452-9", {"full_name": "Ana María"})

    assert updated.id == created.id
    assert updated.token == created.token
    assert repo.search_members("ana", skip=0, limit=10)[1] == 1
