from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from config.database import mongodb
from domain.models.member import Member, MemberStatus
from utils.normalize_rut import normalize_rut


def _object_id(member_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(member_id)
    except (InvalidId, TypeError):
        return None


class MemberRepository:
    """Member store keyed by normalized RUT (unique) and token (unique)."""

    def __init__(self, collection: Collection | None = None) -> None:
        self.collection: Collection = collection if collection is not None else mongodb.collection("members")

    def ensure_indexes(self) -> None:
        """Create indexes used by member queries."""
        self.collection.create_index([("rut", ASCENDING)], unique=True)
        self.collection.create_index([("token", ASCENDING)], unique=True)
        self.collection.create_index([("status", ASCENDING)])

    # ---------- Lookups ----------

    def find_by_rut(self, rut: str) -> Optional[Member]:
        """Find a member by normalized RUT."""
        doc = self.collection.find_one({"rut": rut})
        return Member.from_mongo(doc)

    def find_by_token(self, token: str) -> Optional[Member]:
        doc = self.collection.find_one({"token": token})
        return Member.from_mongo(doc)

    def find_by_id(self, member_id: str) -> Optional[Member]:
        oid = _object_id(member_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return Member.from_mongo(doc)

    # ---------- Writes ----------

    def create(self, member: Member) -> Member:
        """Insert a new member document and return it with its id."""
        now = datetime.now(timezone.utc)
        data = member.model_copy(update={"created_at": now, "updated_at": now}).to_mongo()
        data.pop("_id", None)
        result = self.collection.insert_one(data)
        data["_id"] = result.inserted_id
        return Member.from_mongo(data)

    def update(self, rut: str, data: Dict[str, Any]) -> Optional[Member]:
        """Update mutable fields of the member with ``rut``; ``rut`` and ``token`` are never touched."""
        payload = {k: v for k, v in data.items() if k not in {"_id", "id", "rut", "token", "created_at"}}
        payload["updated_at"] = datetime.now(timezone.utc)
        doc = self.collection.find_one_and_update(
            {"rut": rut}, {"$set": payload}, return_document=ReturnDocument.AFTER
        )
        return Member.from_mongo(doc)

    def set_status(self, member_id: str, status: MemberStatus) -> Optional[Member]:
        return self._set_by_id(member_id, {"status": MemberStatus(status).value})

    def set_token(self, member_id: str, token: str) -> Optional[Member]:
        return self._set_by_id(member_id, {"token": token})

    def _set_by_id(self, member_id: str, data: Dict[str, Any]) -> Optional[Member]:
        oid = _object_id(member_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**data, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        return Member.from_mongo(doc)

    # ---------- Queries ----------

    def count(self, status: MemberStatus | None = None) -> int:
        query = {"status": MemberStatus(status).value} if status else {}
        return self.collection.count_documents(query)

    def search_members(
        self,
        search: Optional[str],
        skip: int,
        limit: int,
    ) -> tuple[List[Member], int]:
        """Query members with optional search, newest updates first."""

        query: Dict[str, Any] = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            conditions: List[Dict[str, Any]] = []
            rut = normalize_rut(search)
            if rut:
                conditions.append({"rut": {"$regex": re.escape(rut), "$options": "i"}})
            conditions.extend(
                [
                    {"rut_masked": pattern},
                    {"full_name": pattern},
                    {"token": pattern},
                ]
            )
            query = {"$or": conditions}

        total = self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("updated_at", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)

        members = [Member.from_mongo(doc) for doc in cursor]
        return members, total
