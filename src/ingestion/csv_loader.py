"""
Country indicator CSV loader.

This module reads the combined urbanization / quality-of-life CSV
(2008-2020) and normalizes it into ``RawRecord`` objects for the
clustering pipeline: header aliases are resolved, numbers coerced
and regional or summary pseudo-rows dropped.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple, Union

import polars as pl
from loguru import logger

from archetypes.indicators import INDICATORS
from archetypes.profiles import RawRecord

# Configuration
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DATA_PATH_ENV_VAR = "URBANIZERS_DATA_PATH"

CANDIDATE_PATHS = [
    DATA_DIR / "data.csv",
    DATA_DIR / "combined_urbanization_life_quality_2008_2020.csv",
]

COUNTRY_HEADERS = ("Country", "country")
YEAR_HEADERS = ("Year", "year")
NULL_TOKENS = ["null", "NULL", "NaN"]

# Rows holding regional aggregates or report summaries instead of a country
SUMMARY_MARKERS = ("ultra-urban", "average", "summary", "total", "analysis")
MAX_COUNTRY_LENGTH = 50


def resolve_data_path(path: Optional[Union[Path, str]] = None) -> Path:
    """
    Find the dataset to load.

    Checks, in order: the explicit ``path``, the ``URBANIZERS_DATA_PATH``
    environment variable and the default locations under ``data/``.

    Raises:
        FileNotFoundError: If no dataset can be found.
    """
    if path is None:
        path = os.getenv(DATA_PATH_ENV_VAR) or None

    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"CSV file not found at {path}.")
        return path

    for candidate in CANDIDATE_PATHS:
        if candidate.is_file():
            return candidate

    raise FileNotFoundError(
        "CSV file not found. Place it at data/data.csv or "
        "data/combined_urbanization_life_quality_2008_2020.csv, "
        f"or set {DATA_PATH_ENV_VAR}."
    )


def read_raw_frame(path: Union[Path, str]) -> pl.DataFrame:
    """
    Read the CSV with every column as trimmed text.

    Raises:
        ValueError: If the file holds no data.
    """
    # utf-8-sig drops a leading BOM
    text = Path(path).read_text(encoding="utf-8-sig")
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise ValueError(f"CSV file is empty: {path}")

    try:
        df = pl.read_csv(
            "\n".join(lines).encode("utf-8"),
            infer_schema_length=0,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.PolarsError as e:
        logger.error(f"Failed to parse {path}: {e}")
        raise

    df = df.rename({col: col.strip() for col in df.columns})
    return df.with_columns(pl.col(pl.String).str.strip_chars())


def _first_present(df: pl.DataFrame, headers: Tuple[str, ...]) -> pl.Expr:
    """First non-empty value among the given headers, row by row."""
    present = [h for h in headers if h in df.columns]
    if not present:
        return pl.lit(None, dtype=pl.String)

    return pl.coalesce([
        pl.when(pl.col(h) != "").then(pl.col(h)).otherwise(None)
        for h in present
    ])


def _to_number(expr: pl.Expr) -> pl.Expr:
    """Parse text as a float; blanks, null markers and non-finite values become null."""
    number = (
        pl.when(expr.is_in(NULL_TOKENS))
        .then(None)
        .otherwise(expr)
        .cast(pl.Float64, strict=False)
    )
    return pl.when(number.is_finite()).then(number).otherwise(None)


def normalize_frame(df: pl.DataFrame) -> pl.DataFrame:
    """
    Map raw CSV columns onto ``country``, ``year`` and the indicator registry.

    Args:
        df: Output of ``read_raw_frame``.

    Returns:
        DataFrame with one Float64 column per registry indicator.
    """
    year = _to_number(_first_present(df, YEAR_HEADERS))
    columns = [
        _first_present(df, COUNTRY_HEADERS).fill_null("").alias("country"),
        # Fractional years are rejected rather than truncated
        pl.when(year == year.floor())
        .then(year.cast(pl.Int64, strict=False))
        .otherwise(None)
        .alias("year"),
    ]
    for indicator in INDICATORS:
        headers = indicator.headers
        if indicator.name not in headers:
            headers = headers + (indicator.name,)
        columns.append(_to_number(_first_present(df, headers)).alias(indicator.name))

    return df.select(columns)


def filter_records(df: pl.DataFrame) -> pl.DataFrame:
    """Drop rows without a country or year, and summary pseudo-rows."""
    country = pl.col("country")
    lowered = country.str.to_lowercase()

    mask = (
        (country != "")
        & pl.col("year").is_not_null()
        & (country.str.len_chars() < MAX_COUNTRY_LENGTH)
    )
    for marker in SUMMARY_MARKERS:
        mask = mask & ~lowered.str.contains(marker, literal=True)

    return df.filter(mask)


def load_records(path: Optional[Union[Path, str]] = None) -> List[RawRecord]:
    """
    Load country-year records from the dataset.

    Args:
        path: CSV file. If None, resolved with ``resolve_data_path``.

    Returns:
        Records in file order.
    """
    path = resolve_data_path(path)
    logger.info(f"Loading country records from {path}")

    raw = read_raw_frame(path)
    logger.debug(f"CSV headers: {raw.columns[:10]} ...")

    df = filter_records(normalize_frame(raw))
    if df.height < raw.height:
        logger.debug(f"Dropped {raw.height - df.height:,} invalid or summary rows")

    records = []
    for row in df.iter_rows(named=True):
        country = row.pop("country")
        year = row.pop("year")
        records.append(RawRecord(country=country, year=year, values=row))

    logger.success(f"Loaded {len(records):,} valid records")
    return records
