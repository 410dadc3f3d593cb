"""Pytest configuration and shared fixtures for the urbanizer archetypes tests.

This module provides fixtures for:
- Building country-year records
- The three-country reference scenario
- Sample CSV files in the source dataset layout
"""

import importlib.util
from pathlib import Path
from typing import Callable, List

import pytest

from archetypes.profiles import RawRecord

PROJECT_ROOT = Path(__file__).parent.parent


# ============================================================================
# Record Fixtures
# ============================================================================

@pytest.fixture
def make_record() -> Callable[..., RawRecord]:
    """Factory for records: ``make_record("France", 2010, overall_score=1.5)``."""

    def _make(country: str, year=2010, **values) -> RawRecord:
        return RawRecord(country=country, year=year, values=values)

    return _make


@pytest.fixture
def scenario_records(make_record) -> List[RawRecord]:
    """Two peaceful, equal countries and one conflict-ridden, unequal one."""
    return [
        make_record("X", overall_score=10.0, gini_coefficient=20.0),
        make_record("Y", overall_score=12.0, gini_coefficient=22.0),
        make_record("Z", overall_score=80.0, gini_coefficient=70.0),
    ]


# ============================================================================
# CSV Fixtures
# ============================================================================

SAMPLE_CSV = (
    "\ufeffCountry,Year,overall score,Gini coefficient (2021 prices),urban_pop_perc,"
    '"Agriculture, forestry, and fishing, value added (% of GDP)",gdp\n'
    "X,2010,10,20,80,1.5,100\n"
    "X,2011,10,20, 82 ,2.5,NaN\n"
    "Y,2010,12,22,75,null,200\n"
    "\n"
    "Z,2010,80,70,30,20,abc\n"
    "World Average,2010,40,40,50,5,100\n"
    "Total,2010,40,40,50,5,100\n"
    "Ultra-urban group,2010,40,40,50,5,100\n"
    "Nowhere,,40,40,50,5,100\n"
    ",2010,40,40,50,5,100\n"
)


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    """Write a small dataset with summary rows and messy values.

    Returns:
        Path to the CSV file
    """
    path = tmp_path / "data.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


# ============================================================================
# CLI Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def cli_module():
    """Import scripts/cluster_countries.py as a module."""
    path = PROJECT_ROOT / "scripts" / "cluster_countries.py"
    spec = importlib.util.spec_from_file_location("cluster_countries", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
