#!/usr/bin/env python3
"""Normalize stored member RUTs.

This script iterates over all documents in the ``members`` collection and
rewrites ``rut`` to the canonical ``<number>-<dv>`` form and ``rut_masked`` to
its dotted display form. Documents whose RUT cannot be normalized, or whose
normalized RUT already belongs to another member, are reported and left
unchanged.
"""

from __future__ import annotations

from repositories.member_repository import MemberRepository
from utils.normalize_rut import format_rut, normalize_rut


def normalize_all(repo: MemberRepository) -> dict[str, int]:
    counts = {"updated": 0, "skipped": 0, "unchanged": 0}
    for doc in repo.collection.find({}):
        raw = doc.get("rut", "")
        rut = normalize_rut(raw)
        if not rut:
            print(f"Skipping {doc.get('_id')}: invalid RUT '{raw}'")
            counts["skipped"] += 1
            continue

        masked = format_rut(rut)
        if rut == raw and masked == doc.get("rut_masked"):
            counts["unchanged"] += 1
            continue

        if rut != raw:
            clash = repo.collection.find_one({"rut": rut})
            if clash is not None and clash.get("_id") != doc.get("_id"):
                print(f"Skipping {doc.get('_id')}: '{raw}' collides with existing {rut}")
                counts["skipped"] += 1
                continue

        repo.collection.update_one({"_id": doc["_id"]}, {"$set": {"rut": rut, "rut_masked": masked}})
        print(f"Updated {doc.get('_id')}: '{raw}' -> '{rut}' ({masked})")
        counts["updated"] += 1
    return counts


def main() -> None:
    counts = normalize_all(MemberRepository())
    print(f"Done: {counts}")


if __name__ == "__main__":  # pragma: no cover - manual execution only
    main()
