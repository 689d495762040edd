"""
test_aggregator.py — Region grouping and name normalization.
"""

from flock.geo.aggregator import aggregate, region_key
from flock.geo.regions import (
    country_aliases,
    is_united_states,
    normalize_country,
    normalize_state,
    state_abbreviation,
    state_aliases,
)
from flock.geo.visibility import filter_visible
from flock.models.location import GroupKey, UserLocationRecord, ViewerContext


def _rec(user_id, **fields):
    return UserLocationRecord(user_id=user_id, **fields)


class TestRegionNames:

    def test_abbreviation_to_full_name(self):
        assert normalize_state("CA") == "California"
        assert normalize_state("ny") == "New York"

    def test_full_name_passes_through(self):
        assert normalize_state("California") == "California"

    def test_unknown_state_passes_through_trimmed(self):
        assert normalize_state("  Ontario ") == "Ontario"

    def test_blank_state_is_none(self):
        assert normalize_state("   ") is None
        assert normalize_state(None) is None

    def test_state_abbreviation(self):
        assert state_abbreviation("Massachusetts") == "MA"
        assert state_abbreviation("ma") == "MA"
        assert state_abbreviation("Atlantis") is None

    def test_country_synonyms(self):
        assert normalize_country("USA") == "United States of America"
        assert normalize_country("United States") == "United States of America"
        assert normalize_country("UK") == "United Kingdom"
        assert normalize_country("Russian Federation") == "Russia"
        assert normalize_country("France") == "France"

    def test_is_united_states(self):
        assert is_united_states("US")
        assert is_united_states("united states")
        assert not is_united_states("Canada")
        assert not is_united_states(None)

    def test_aliases_cover_stored_spellings(self):
        us = country_aliases("United States")
        assert "United States" in us and "USA" in us and "United States of America" in us
        ma = state_aliases("MA")
        assert {"MA", "ma", "Massachusetts", "massachusetts", "MASSACHUSETTS"} <= set(ma)

    def test_full_state_names_ignore_case(self):
        assert normalize_state("new york") == "New York"
        assert normalize_state("NEW YORK") == "New York"
        assert normalize_state("district of columbia") == "District of Columbia"
        assert state_abbreviation("new york") == "NY"

    def test_state_aliases_from_lower_case_name(self):
        aliases = state_aliases("new york")
        assert "NY" in aliases
        assert "New York" in aliases
        assert "new york" in aliases

    def test_unknown_state_aliases_keep_case_variants(self):
        assert set(state_aliases("ontario")) == {"ontario", "ONTARIO", "Ontario"}

    def test_country_names_ignore_case(self):
        assert normalize_country("japan") == "Japan"
        assert normalize_country("JAPAN") == "Japan"
        assert normalize_country("bosnia and herzegovina") == "Bosnia and Herzegovina"
        assert normalize_country("united kingdom") == "United Kingdom"
        assert "japan" in country_aliases("Japan")


class TestAggregate:

    def test_empty_input_gives_empty_maps(self):
        for level in GroupKey:
            result = aggregate([], level)
            assert result.counts == {}
            assert result.coordinates == {}
            assert result.is_empty
            assert result.max_count == 0

    def test_states_are_normalized(self):
        records = [
            _rec("a", state="CA"),
            _rec("b", state="CA"),
            _rec("c", state="NY"),
        ]
        result = aggregate(records, GroupKey.STATE)
        assert result.counts == {"California": 2, "New York": 1}
        assert result.coordinates == {}

    def test_abbreviation_and_full_name_merge(self):
        records = [_rec("a", state="CA"), _rec("b", state="California"), _rec("c", state=" ca ")]
        assert aggregate(records, GroupKey.STATE).counts == {"California": 3}

    def test_country_synonyms_merge(self):
        records = [
            _rec("a", country="USA"),
            _rec("b", country="United States"),
            _rec("c", country="UK"),
            _rec("d", country="Great Britain"),
        ]
        result = aggregate(records, GroupKey.COUNTRY)
        assert result.counts == {"United States of America": 2, "United Kingdom": 2}

    def test_state_casing_merges_into_one_region(self):
        records = [_rec("a", state="NY"), _rec("b", state="new york"), _rec("c", state="NEW YORK")]
        assert aggregate(records, GroupKey.STATE).counts == {"New York": 3}

    def test_country_casing_merges_into_one_region(self):
        records = [_rec("a", country="Japan"), _rec("b", country="japan")]
        assert aggregate(records, GroupKey.COUNTRY).counts == {"Japan": 2}

    def test_records_missing_the_key_are_skipped(self):
        records = [_rec("a", city="Boston"), _rec("b"), _rec("c", city="  ")]
        assert aggregate(records, GroupKey.CITY).counts == {"Boston": 1}

    def test_first_seen_coordinate_wins(self):
        records = [
            _rec("a", city="Boston"),
            _rec("b", city="Boston", latitude=42.36, longitude=-71.06),
            _rec("c", city="Boston", latitude=10.0, longitude=10.0),
        ]
        result = aggregate(records, GroupKey.CITY)
        assert result.counts == {"Boston": 3}
        assert result.coordinates == {"Boston": (-71.06, 42.36)}

    def test_key_without_coordinates_has_no_coordinate_entry(self):
        result = aggregate([_rec("a", city="Somerville")], GroupKey.CITY)
        assert result.counts == {"Somerville": 1}
        assert "Somerville" not in result.coordinates

    def test_aggregates_view(self):
        result = aggregate([_rec("a", city="Boston", latitude=42.0, longitude=-71.0)], GroupKey.CITY)
        [item] = result.aggregates()
        assert item.region_key == "Boston"
        assert item.count == 1
        assert item.representative_coordinate == (-71.0, 42.0)

    def test_region_key(self):
        record = _rec("a", city=" Austin ", state="TX", country="us")
        assert region_key(record, GroupKey.CITY) == "Austin"
        assert region_key(record, GroupKey.STATE) == "Texas"
        assert region_key(record, GroupKey.COUNTRY) == "United States of America"


class TestVisibleClassmatesByState:

    def test_mit_viewer_sees_three_states(self):
        viewer = ViewerContext(user_id="me", institution_id="MIT", latitude=42.3736, longitude=-71.1097)
        candidates = [
            _rec("m1", institution_id="MIT", state="CA", latitude=37.77, longitude=-122.42),
            _rec("m2", institution_id="MIT", state="California", latitude=34.05, longitude=-118.24),
            _rec("m3", institution_id="MIT", state="NY", latitude=40.71, longitude=-74.01),
            _rec("m4", institution_id="MIT", state="New York", latitude=42.65, longitude=-73.76),
            # Waltham, about 10 miles from Cambridge
            _rec("n1", institution_id="BU", state="MA", latitude=42.3765, longitude=-71.2356),
            # Chicago, neither rule applies
            _rec("x1", institution_id="BU", state="IL", latitude=41.88, longitude=-87.63),
        ]
        visible = filter_visible(viewer, candidates)
        result = aggregate(visible, GroupKey.STATE)
        assert result.counts == {"California": 2, "New York": 2, "Massachusetts": 1}
