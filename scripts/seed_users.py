#!/usr/bin/env python3
"""
seed_users.py — Populate the users collection with sample alumni profiles.

Usage (from the repo root):
    python scripts/seed_users.py           # replace existing seed profiles
    python scripts/seed_users.py --append  # add without clearing first

Prerequisites:
    • MONGO_URI env var set (or .env file present)
    • `pip install -e .`

Seed profiles use `_id` values prefixed with "seed_" so re-running only
touches its own documents. The script prints a bearer token for the
first profile so the map endpoints can be exercised with curl:

    curl -H "Authorization: Bearer <token>" "http://localhost:8000/api/v1/locations?state=MA"
    curl -H "Authorization: Bearer <token>" "http://localhost:8000/api/v1/classmates?roommates=true"
"""

import argparse
import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent.parent
load_dotenv(ROOT / ".env")

import certifi  # noqa: E402
from motor.motor_asyncio import AsyncIOMotorClient  # noqa: E402

from flock.core.config import settings  # noqa: E402
from flock.core.security import create_access_token  # noqa: E402

SEED_PREFIX = "seed_"

# Columns: id, name, institution, city, state, country, lat, lng, status, employer, grad_school
_RAW = [
    ("viewer",  "Avery Chen",      "inst_mit",      "Cambridge",     "MA", "United States",  42.3736,  -71.1097, "employed",    "HubSpot",   None),
    ("mit_01",  "Jordan Patel",    "inst_mit",      "Boston",        "MA", "United States",  42.3601,  -71.0589, "employed",    "Google",    None),
    ("mit_02",  "Riley Gomez",     "inst_mit",      "Somerville",    "MA", "United States",  42.3876,  -71.0995, "grad_school", None,        "Harvard"),
    ("mit_03",  "Sam Okafor",      "inst_mit",      "San Francisco", "CA", "United States",  37.7749, -122.4194, "employed",    "Stripe",    None),
    ("mit_04",  "Morgan Lee",      "inst_mit",      "Palo Alto",     "California", "United States", 37.4419, -122.1430, "internship", "Google", None),
    ("mit_05",  "Casey Nguyen",    "inst_mit",      "New York",      "NY", "United States",  40.7128,  -74.0060, "looking",     None,        None),
    ("mit_06",  "Taylor Brooks",   "inst_mit",      "London",        None, "United Kingdom", 51.5074,   -0.1278, "grad_school", None,        "Imperial College"),
    ("mit_07",  "Quinn Ito",       "inst_mit",      "Tokyo",         None, "Japan",          35.6895,  139.6917, "employed",    "Sony",      None),
    ("bu_01",   "Drew Martin",     "inst_bu",       "Brookline",     "MA", "United States",  42.3318,  -71.1212, "employed",    "Moderna",   None),
    ("bu_02",   "Jamie Fischer",   "inst_bu",       "Providence",    "RI", "United States",  41.8240,  -71.4128, "grad_school", None,        "Brown"),
    ("bu_03",   "Alex Romero",     "inst_bu",       "Chicago",       "IL", "United States",  41.8781,  -87.6298, "employed",    "Boeing",    None),
    ("ucl_01",  "Harper Singh",    "inst_ucl",      "Oxford",        None, "UK",             51.7520,   -1.2577, "grad_school", None,        "Oxford"),
]


_JOB_TITLES = {"employed": "Software Engineer", "internship": "Product Intern"}


def _make_profile(row: tuple, index: int = 0) -> dict:
    (key, name, institution, city, state, country, lat, lng, status, employer, grad_school) = row
    # spread grad years and sign-up dates so directory filters and ordering have something to do
    joined = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(days=index)
    return {
        "_id": f"{SEED_PREFIX}{key}",
        "full_name": name,
        "email": f"{key}@example.edu",
        "institution_id": institution,
        "city": city,
        "state": state,
        "country": country,
        "latitude": lat,
        "longitude": lng,
        "status": status,
        "employer": employer,
        "grad_school": grad_school,
        "grad_year": 2023 + index % 3,
        "job_title": _JOB_TITLES.get(status),
        "looking_for_roommate": index % 4 == 1,
        "show_employer": True,
        "show_school": True,
        "created_at": joined,
        "onboarding_completed": True,
        "profile_visible": True,
    }


async def create_indexes(db) -> None:
    users = db[settings.users_collection]
    await users.create_index(
        [("onboarding_completed", 1), ("profile_visible", 1), ("institution_id", 1)],
        name="visible_by_institution",
    )
    await users.create_index(
        [("onboarding_completed", 1), ("profile_visible", 1), ("state", 1)],
        name="visible_by_state",
    )
    await users.create_index(
        [("onboarding_completed", 1), ("profile_visible", 1), ("country", 1)],
        name="visible_by_country",
    )
    await users.create_index([("created_at", -1)], name="newest_first")
    print("  Indexes OK")


async def seed(append: bool = False) -> None:
    client = AsyncIOMotorClient(settings.mongo_uri, tlsCAFile=certifi.where())
    db = client[settings.mongo_db_name]
    users = db[settings.users_collection]

    try:
        await client.admin.command("ping")
        print(f"Connected to MongoDB ({settings.mongo_db_name})")
    except Exception as exc:
        print(f"ERROR: Cannot connect to MongoDB: {exc}")
        return

    try:
        if not append:
            print("\nClearing existing seed profiles…")
            result = await users.delete_many({"_id": {"$regex": f"^{SEED_PREFIX}"}})
            print(f"  Deleted {result.deleted_count} existing documents")

        print("\nUpserting profiles…")
        for index, row in enumerate(_RAW):
            doc = _make_profile(row, index)
            await users.update_one({"_id": doc["_id"]}, {"$set": doc}, upsert=True)
        print(f"  {len(_RAW)} profiles upserted")

        print("\nEnsuring indexes…")
        await create_indexes(db)

        institutions = await users.distinct("institution_id", {"_id": {"$regex": f"^{SEED_PREFIX}"}})
        print("\n✓ Done")
        print(f"  Institutions : {sorted(institutions)}")
        print(f"  Viewer token : {create_access_token(SEED_PREFIX + 'viewer')}")
    finally:
        client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed Flock alumni profiles into MongoDB")
    parser.add_argument(
        "--append",
        action="store_true",
        help="Upsert profiles without clearing existing seed data first",
    )
    args = parser.parse_args()

    print(f"Flock Profile Seeder  (db: {settings.mongo_db_name})")
    print(f"Mode: {'append' if args.append else 'replace'}\n")

    asyncio.run(seed(append=args.append))
