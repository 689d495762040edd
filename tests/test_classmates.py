"""
test_classmates.py — GET /api/v1/classmates and the directory filters.

The viewer ("me") is an MIT student in Cambridge, MA. Everyone else is
either a classmate, a neighbour within 50 miles, or a stranger.
"""

from datetime import datetime, timedelta, timezone

import pytest

from flock.models.classmates import ClassmateFilters, ClassmateStatus
from flock.services.classmates import card_from_document, matches_filters, region_query

CAMBRIDGE = {"latitude": 42.3736, "longitude": -71.1097}
NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)


def _joined(days_ago: int) -> datetime:
    return NOW - timedelta(days=days_ago)


@pytest.fixture()
def network(users, make_profile):
    rows = [
        make_profile("me", institution_id="mit", full_name="Mia Viewer", city="Cambridge", state="MA",
                     grad_year=2025, created_at=_joined(0), **CAMBRIDGE),
        make_profile("ana", institution_id="mit", full_name="Ana Lopez", city="Boston", state="MA",
                     grad_year=2024, status="employed", job_title="Software Engineer", employer="HubSpot",
                     looking_for_roommate=True, created_at=_joined(1),
                     latitude=42.3601, longitude=-71.0589),
        make_profile("ben", institution_id="mit", full_name="Ben Okafor", city="San Francisco", state="CA",
                     grad_year=2025, status="internship", job_title="Data Intern", employer="Stripe",
                     show_employer=False, created_at=_joined(3)),
        make_profile("cai", institution_id="mit", full_name="Cai Wong", city="Tokyo", state=None,
                     country="Japan", grad_year=2023, status="grad_school", grad_school="UTokyo",
                     created_at=_joined(2)),
        # Waltham, about 10 miles from the viewer
        make_profile("dee", institution_id="bu", full_name="Dee Anand", city="Waltham", state="Massachusetts",
                     grad_year=2025, status="looking", looking_for_roommate=True, created_at=_joined(5),
                     latitude=42.3765, longitude=-71.2356),
        # Chicago, neither rule applies
        make_profile("eve", institution_id="bu", full_name="Eve Stranger", city="Chicago", state="IL",
                     grad_year=2025, status="employed", created_at=_joined(4),
                     latitude=41.8781, longitude=-87.6298),
        make_profile("fay", institution_id="mit", full_name="Fay Hidden", city="Boston", state="MA",
                     profile_visible=False, created_at=_joined(1)),
    ]
    for row in rows:
        users.insert(row)
    return rows


def _ids(body) -> list[str]:
    return [c["user_id"] for c in body["classmates"]]


class TestFilters:

    def test_text_filters_are_case_insensitive_substrings(self):
        doc = {"full_name": "Ana Lopez", "city": "Boston", "job_title": "Software Engineer", "employer": "HubSpot"}
        assert matches_filters(doc, ClassmateFilters(name="lop", city="BOS", job_title="engineer", company="hub"))
        assert not matches_filters(doc, ClassmateFilters(company="google"))

    def test_missing_field_fails_a_text_filter(self):
        assert not matches_filters({"full_name": "Ana"}, ClassmateFilters(job_title="eng"))

    def test_statuses_are_ored(self):
        filters = ClassmateFilters(statuses=[ClassmateStatus.EMPLOYED, ClassmateStatus.LOOKING])
        assert matches_filters({"status": "looking"}, filters)
        assert not matches_filters({"status": "grad_school"}, filters)

    def test_grad_year_range_is_inclusive(self):
        filters = ClassmateFilters(min_grad_year=2024, max_grad_year=2025)
        assert matches_filters({"grad_year": 2024}, filters)
        assert matches_filters({"grad_year": 2025}, filters)
        assert not matches_filters({"grad_year": 2023}, filters)
        assert not matches_filters({}, filters)

    def test_inverted_year_range_is_rejected(self):
        with pytest.raises(ValueError):
            ClassmateFilters(min_grad_year=2026, max_grad_year=2020)

    def test_selected_city_is_exact_ignoring_case(self):
        filters = ClassmateFilters(selected_city="boston")
        assert matches_filters({"city": "Boston"}, filters)
        assert not matches_filters({"city": "South Boston"}, filters)

    def test_region_query(self):
        assert region_query(None) == {}
        assert "Massachusetts" in region_query("MA")["state"]["$in"]
        assert "ma" in region_query("massachusetts")["state"]["$in"]
        assert "Japan" in region_query("Japan")["country"]["$in"]

    def test_card_hides_private_fields(self):
        card = card_from_document({"_id": "x", "employer": "Stripe", "show_employer": False,
                                   "grad_school": "MIT", "show_school": False})
        assert card.employer is None
        assert card.grad_school is None


class TestClassmatesRoute:

    async def test_requires_auth(self, api_client):
        r = await api_client.get("/api/v1/classmates")
        assert r.status_code == 401

    async def test_database_down(self, client, auth_headers):
        r = await client.get("/api/v1/classmates", headers=auth_headers("me"))
        assert r.status_code == 503

    async def test_visible_newest_first_without_viewer(self, api_client, auth_headers, network):
        r = await api_client.get("/api/v1/classmates", headers=auth_headers("me"))
        assert r.status_code == 200
        body = r.json()
        assert _ids(body) == ["ana", "cai", "ben", "dee"]
        assert body["total"] == 4

    async def test_private_employer_is_hidden(self, api_client, auth_headers, network):
        r = await api_client.get("/api/v1/classmates", headers=auth_headers("me"), params={"name": "ben"})
        [ben] = r.json()["classmates"]
        assert ben["employer"] is None
        assert ben["job_title"] == "Data Intern"

    async def test_status_and_roommate_filters(self, api_client, auth_headers, network):
        r = await api_client.get(
            "/api/v1/classmates",
            headers=auth_headers("me"),
            params=[("status", "employed"), ("status", "looking"), ("roommates", "true")],
        )
        assert _ids(r.json()) == ["ana", "dee"]

    async def test_grad_year_range(self, api_client, auth_headers, network):
        r = await api_client.get(
            "/api/v1/classmates", headers=auth_headers("me"), params={"min_grad_year": 2024, "max_grad_year": 2024},
        )
        assert _ids(r.json()) == ["ana"]

    async def test_state_picked_on_the_map(self, api_client, auth_headers, network):
        r = await api_client.get("/api/v1/classmates", headers=auth_headers("me"), params={"selected_region": "MA"})
        assert _ids(r.json()) == ["ana", "dee"]

    async def test_city_picked_on_the_map(self, api_client, auth_headers, network):
        r = await api_client.get(
            "/api/v1/classmates",
            headers=auth_headers("me"),
            params={"selected_city": "Waltham", "selected_region": "MA"},
        )
        assert _ids(r.json()) == ["dee"]

    async def test_country_picked_on_the_map(self, api_client, auth_headers, network):
        r = await api_client.get(
            "/api/v1/classmates", headers=auth_headers("me"), params={"selected_region": "japan"},
        )
        assert _ids(r.json()) == ["cai"]

    async def test_unknown_status_is_rejected(self, api_client, auth_headers, network):
        r = await api_client.get("/api/v1/classmates", headers=auth_headers("me"), params={"status": "retired"})
        assert r.status_code == 422

    async def test_inverted_year_range_is_rejected(self, api_client, auth_headers, network):
        r = await api_client.get(
            "/api/v1/classmates", headers=auth_headers("me"), params={"min_grad_year": 2026, "max_grad_year": 2020},
        )
        assert r.status_code == 422

    async def test_page_is_capped(self, api_client, auth_headers, network, monkeypatch):
        from flock.core.config import settings

        monkeypatch.setattr(settings, "classmates_page_limit", 2)
        r = await api_client.get("/api/v1/classmates", headers=auth_headers("me"))
        body = r.json()
        assert _ids(body) == ["ana", "cai"]
        assert body["total"] == 4
