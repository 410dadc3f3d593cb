"""Unit tests for the end-to-end clustering pipeline on in-memory records.

Tests cover:
- Reference scenarios (three countries, empty input, single country)
- Label fallback when neither cluster dominates
- Profile assembly and determinism
- Summary tables and CSV export
"""

import polars as pl
import pytest

from archetypes.clustering import (
    assemble_profiles,
    cluster_countries,
    export_profiles,
    generate_cluster_profiles,
    profiles_to_frame,
)
from archetypes.indicators import INDICATOR_NAMES, get_indicator, validate_registry
from archetypes.profiles import PROFILE_FIELDS, STABLE_LABEL, VOLATILE_LABEL, CountryProfile


# ============================================================================
# Scenario Tests
# ============================================================================

@pytest.mark.unit
class TestClusterCountries:
    """Test the full pipeline from records to profiles."""

    def test_three_country_scenario(self, scenario_records):
        """Test X and Y group together as stable, Z alone as volatile."""
        profiles = cluster_countries(scenario_records)

        assert list(profiles) == ["X", "Y", "Z"]
        assert profiles["X"].cluster_label == STABLE_LABEL
        assert profiles["Y"].cluster_label == STABLE_LABEL
        assert profiles["Z"].cluster_label == VOLATILE_LABEL

    def test_labels_independent_of_cluster_index(self, make_record):
        """Test the stable group is found when it lands in cluster 1."""
        records = [
            make_record("Z", overall_score=80.0, gini_coefficient=70.0),
            make_record("X", overall_score=10.0, gini_coefficient=20.0),
            make_record("Y", overall_score=12.0, gini_coefficient=22.0),
        ]

        profiles = cluster_countries(records)

        assert profiles["Z"].cluster_label == VOLATILE_LABEL
        assert profiles["X"].cluster_label == STABLE_LABEL
        assert profiles["Y"].cluster_label == STABLE_LABEL

    def test_empty_input(self):
        """Test no records give an empty mapping."""
        assert cluster_countries([]) == {}

    def test_only_blank_countries(self, make_record):
        """Test records without a country give an empty mapping."""
        assert cluster_countries([make_record(" ", overall_score=1.0)]) == {}

    def test_single_country(self, make_record):
        """Test one country forms one cluster and takes the fallback label.

        Cluster 1 stays empty, its NaN means fail the comparison, so
        cluster 1 is declared stable and the lone country is volatile.
        """
        profiles = cluster_countries([make_record("Solo", overall_score=1.0, gini_coefficient=25.0)])

        assert list(profiles) == ["Solo"]
        assert profiles["Solo"].cluster_label == VOLATILE_LABEL

    def test_fallback_when_no_cluster_dominates(self, make_record):
        """Test mixed dominance falls back to cluster 1 as stable."""
        # two countries seed one cluster each: A -> 0, B -> 1
        records = [
            make_record("A", overall_score=1.0, gini_coefficient=60.0),
            make_record("B", overall_score=3.0, gini_coefficient=25.0),
        ]

        profiles = cluster_countries(records)

        assert profiles["A"].cluster_label == VOLATILE_LABEL
        assert profiles["B"].cluster_label == STABLE_LABEL

    def test_yearly_records_are_averaged(self, make_record):
        """Test profiles hold means across years."""
        records = [
            make_record("X", 2010, overall_score=9.0, gini_coefficient=20.0),
            make_record("X", 2011, overall_score=11.0, gini_coefficient=None),
            make_record("Z", 2010, overall_score=80.0, gini_coefficient=70.0),
        ]

        profiles = cluster_countries(records)

        assert profiles["X"].overall_score == pytest.approx(10.0)
        assert profiles["X"].gini_coefficient == pytest.approx(20.0)

    def test_deterministic(self, make_record):
        """Test repeated runs give identical profiles."""
        records = [
            make_record(
                f"C{i}",
                overall_score=1.0 + (i * 7) % 13,
                gini_coefficient=20.0 + (i * 5) % 17,
                urban_pop_perc=30.0 + (i * 11) % 50,
                gdp=1000.0 * (1 + i % 4),
            )
            for i in range(25)
        ]

        first = cluster_countries(records)
        second = cluster_countries(records)

        assert first == second
        assert list(first) == list(second)

    def test_labeling_consistency(self, make_record):
        """Test the stable group has the lower means when it dominates."""
        records = [
            make_record(f"P{i}", overall_score=1.2 + i * 0.05, gini_coefficient=25.0 + i)
            for i in range(5)
        ] + [
            make_record(f"V{i}", overall_score=3.0 + i * 0.1, gini_coefficient=45.0 + i)
            for i in range(5)
        ]

        profiles = cluster_countries(records).values()

        stable = [p for p in profiles if p.is_stable]
        volatile = [p for p in profiles if not p.is_stable]
        assert {p.country for p in stable} == {f"P{i}" for i in range(5)}
        assert max(p.overall_score for p in stable) < min(p.overall_score for p in volatile)
        assert max(p.gini_coefficient for p in stable) < min(p.gini_coefficient for p in volatile)


# ============================================================================
# Profile Assembly Tests
# ============================================================================

@pytest.mark.unit
class TestProfiles:
    """Test profile construction and export."""

    def test_profile_fields_copied(self, make_record):
        """Test exposed fields come from the country means."""
        records = [
            make_record("X", overall_score=10.0, gini_coefficient=20.0, gdp=500.0, urban_pop_perc=80.0),
            make_record("Z", overall_score=80.0, gini_coefficient=70.0, gdp=50.0, urban_pop_perc=30.0),
        ]

        profile = cluster_countries(records)["X"]

        assert isinstance(profile, CountryProfile)
        assert profile.gdp == 500.0
        assert profile.urban_pop_perc == 80.0
        assert profile.homicide_rate == 0.0

    def test_non_finite_fields_become_zero(self, make_record):
        """Test infinite means are exposed as 0."""
        records = [
            make_record("A", overall_score=1.0, gdp=float("inf")),
            make_record("B", overall_score=2.0, gdp=10.0),
        ]

        profiles = cluster_countries(records)

        assert profiles["A"].gdp == 0.0

    def test_assemble_empty(self):
        """Test an empty aggregate frame yields no profiles."""
        assert assemble_profiles(pl.DataFrame({"country": []}, schema={"country": pl.String}), []) == {}

    def test_to_dict(self, scenario_records):
        """Test dict export holds every profile field plus the label."""
        data = cluster_countries(scenario_records)["X"].to_dict()

        assert list(data) == ["country", *PROFILE_FIELDS, "cluster_label"]

    def test_profiles_to_frame(self, scenario_records):
        """Test tabulation gives one row per country."""
        df = profiles_to_frame(cluster_countries(scenario_records))

        assert df["country"].to_list() == ["X", "Y", "Z"]
        assert df.columns == ["country", *PROFILE_FIELDS, "cluster_label"]

    def test_generate_cluster_profiles(self, scenario_records):
        """Test per-archetype summary statistics."""
        summary = generate_cluster_profiles(profiles_to_frame(cluster_countries(scenario_records)))

        rows = {row["cluster_label"]: row for row in summary.iter_rows(named=True)}
        assert rows[STABLE_LABEL]["num_countries"] == 2
        assert rows[STABLE_LABEL]["avg_overall_score"] == pytest.approx(11.0)
        assert rows[STABLE_LABEL]["avg_gini"] == pytest.approx(21.0)
        assert rows[VOLATILE_LABEL]["num_countries"] == 1

    def test_export_profiles(self, scenario_records, tmp_path):
        """Test CSV export creates missing directories."""
        df = profiles_to_frame(cluster_countries(scenario_records))

        path = export_profiles(df, tmp_path / "output" / "profiles.csv")

        assert path.exists()
        assert pl.read_csv(path)["cluster_label"].to_list() == [
            STABLE_LABEL,
            STABLE_LABEL,
            VOLATILE_LABEL,
        ]


# ============================================================================
# Registry Tests
# ============================================================================

@pytest.mark.unit
class TestIndicatorRegistry:
    """Test the ordered indicator registry."""

    def test_names_unique(self):
        assert len(set(INDICATOR_NAMES)) == len(INDICATOR_NAMES)

    def test_profile_fields_registered(self):
        assert set(PROFILE_FIELDS) <= set(INDICATOR_NAMES)
        assert len(PROFILE_FIELDS) == 25

    def test_get_indicator(self):
        assert get_indicator("gini_coefficient").headers == ("Gini coefficient (2021 prices)",)

    def test_get_unknown_indicator(self):
        with pytest.raises(KeyError):
            get_indicator("happiness")

    def test_validate_missing_indicator(self):
        """Test required names outside the registry are rejected."""
        with pytest.raises(ValueError, match="happiness"):
            validate_registry(("overall_score", "happiness"))
