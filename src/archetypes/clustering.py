"""
Country clustering analysis module.

Averages yearly country indicators, standardizes them and splits countries
into two urbanization archetypes with a deterministic two-cluster K-Means
(Lloyd's algorithm). The anonymous clusters are then named by comparing
their mean GPI overall score and Gini coefficient.

Usage:
    python -m archetypes.clustering

Or from Python:
    from archetypes.clustering import cluster_countries
    profiles = cluster_countries(records)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import polars as pl
from loguru import logger
from sklearn.metrics import silhouette_score
from sklearn.preprocessing import StandardScaler

from .indicators import INDICATOR_NAMES, INEQUALITY_INDICATOR, SCORE_INDICATOR
from .profiles import (
    PROFILE_FIELDS,
    STABLE_LABEL,
    VOLATILE_LABEL,
    CountryProfile,
    RawRecord,
)

# Configuration
PROJECT_ROOT = Path(__file__).parent.parent.parent
PROFILES_OUTPUT_PATH = PROJECT_ROOT / "data" / "output" / "country_profiles.csv"

N_CLUSTERS = 2
MAX_ITERATIONS = 300


@dataclass(frozen=True, eq=False)
class PartitionResult:
    """Outcome of a K-Means run."""

    assignments: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool


@dataclass(frozen=True)
class ClusterSummary:
    """Mean stability indicators of one cluster."""

    size: int
    mean_score: float
    mean_inequality: float


def records_to_frame(records: Iterable[RawRecord]) -> pl.DataFrame:
    """
    Convert records into a frame with one Float64 column per indicator.

    Args:
        records: Country-year observations.

    Returns:
        Polars DataFrame with ``country``, ``year`` and registry columns.
    """
    schema = {"country": pl.String, "year": pl.Int64}
    schema.update({name: pl.Float64 for name in INDICATOR_NAMES})

    rows = []
    for record in records:
        row = {"country": record.country, "year": record.year}
        for name in INDICATOR_NAMES:
            value = record.get(name)
            row[name] = None if value is None else float(value)
        rows.append(row)

    return pl.DataFrame(rows, schema=schema)


def aggregate_countries(records: Iterable[RawRecord]) -> pl.DataFrame:
    """
    Average every indicator per country across all available years.

    Records with a blank country are discarded. Null values are left out
    of the mean; an indicator never observed for a country averages to 0.
    Countries keep the order in which they first appear.

    Args:
        records: Country-year observations.

    Returns:
        DataFrame with ``country``, one mean column per indicator and
        ``observations`` (number of records per country).
    """
    df = records_to_frame(records)
    df = df.filter(pl.col("country").str.strip_chars() != "")

    if df.is_empty():
        schema = {"country": pl.String}
        schema.update({name: pl.Float64 for name in INDICATOR_NAMES})
        schema["observations"] = pl.UInt32
        return pl.DataFrame(schema=schema)

    return (
        df.group_by("country", maintain_order=True)
        .agg(
            [pl.col(name).mean() for name in INDICATOR_NAMES]
            + [pl.len().cast(pl.UInt32).alias("observations")]
        )
        .with_columns([pl.col(name).fill_null(0.0) for name in INDICATOR_NAMES])
    )


def build_feature_matrix(aggregates: pl.DataFrame) -> Tuple[np.ndarray, pl.DataFrame]:
    """
    Project country means onto the indicator registry.

    Countries whose vector holds no finite value at all are dropped; any
    other non-finite entry is replaced with 0.

    Args:
        aggregates: Output of ``aggregate_countries``.

    Returns:
        Tuple of (feature matrix, aggregates of the countries kept).
    """
    if aggregates.is_empty():
        return np.empty((0, len(INDICATOR_NAMES))), aggregates

    X = aggregates.select(list(INDICATOR_NAMES)).to_numpy().astype(float)

    valid = np.isfinite(X).any(axis=1)
    if not valid.all():
        dropped = aggregates.filter(pl.Series(~valid))["country"].to_list()
        logger.warning(f"Excluding {len(dropped)} countries with no valid indicator: {dropped}")
        aggregates = aggregates.filter(pl.Series(valid))
        X = X[valid]

    X = np.where(np.isfinite(X), X, 0.0)
    return X, aggregates


def standardize_features(X: np.ndarray) -> np.ndarray:
    """
    Z-score every indicator with population statistics.

    A dimension holding the same value for every country carries no
    information and is set to 0 rather than divided by a zero deviation.

    Args:
        X: Feature matrix (countries x indicators).

    Returns:
        Standardized copy of ``X``.
    """
    X = np.asarray(X, dtype=float)
    if X.shape[0] == 0 or X.shape[1] == 0:
        return X.copy()

    scaler = StandardScaler().fit(X)

    # scaler.scale_ is 1 for near-constant columns, so divide by the raw std
    std = np.sqrt(scaler.var_)
    X_scaled = np.zeros_like(X)
    spread = std > 0
    X_scaled[:, spread] = (X[:, spread] - scaler.mean_[spread]) / std[spread]

    constant = X.max(axis=0) == X.min(axis=0)
    X_scaled[:, constant] = 0.0

    return X_scaled


def initial_centroids(points: np.ndarray, n_clusters: int = N_CLUSTERS) -> np.ndarray:
    """
    Pick evenly spaced points as starting centroids.

    With no more points than clusters, each point becomes its own
    centroid, so fewer than ``n_clusters`` centroids may be returned.
    """
    n = len(points)
    if n <= n_clusters:
        return points.copy()

    step = n // n_clusters
    indices = [min(i * step, n - 1) for i in range(n_clusters)]
    return points[indices].copy()


def assign_to_centroids(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the nearest centroid for each point (ties go to the lowest index)."""
    distances = np.sqrt(
        ((points[:, np.newaxis, :] - centroids[np.newaxis, :, :]) ** 2).sum(axis=2)
    )
    return np.argmin(distances, axis=1)


def update_centroids(
    points: np.ndarray,
    assignments: np.ndarray,
    centroids: np.ndarray,
) -> np.ndarray:
    """
    Move each centroid to the mean of its points.

    A cluster with no points keeps its previous centroid.
    """
    updated = centroids.copy()
    for cluster in range(len(centroids)):
        members = points[assignments == cluster]
        if len(members) > 0:
            updated[cluster] = members.mean(axis=0)
    return updated


def partition_countries(
    points: np.ndarray,
    n_clusters: int = N_CLUSTERS,
    max_iterations: int = MAX_ITERATIONS,
) -> PartitionResult:
    """
    Run deterministic K-Means (Lloyd's algorithm).

    Alternates nearest-centroid assignment and centroid update, stopping as
    soon as an assignment pass reproduces the previous one or after
    ``max_iterations`` passes.

    Args:
        points: Standardized feature matrix.
        n_clusters: Number of clusters.
        max_iterations: Upper bound on assignment passes.

    Returns:
        PartitionResult with one cluster index per point.
    """
    points = np.asarray(points, dtype=float)
    n = points.shape[0]

    centroids = initial_centroids(points, n_clusters)
    assignments = np.zeros(n, dtype=int)
    if n == 0:
        return PartitionResult(assignments, centroids, 0, True)

    previous = np.full(n, -1, dtype=int)
    iterations = 0
    converged = False

    for _ in range(max_iterations):
        iterations += 1
        assignments = assign_to_centroids(points, centroids)

        if np.array_equal(assignments, previous):
            converged = True
            break
        previous = assignments

        centroids = update_centroids(points, assignments, centroids)

    return PartitionResult(assignments, centroids, iterations, converged)


def summarize_cluster(scores: Sequence[float], inequality: Sequence[float]) -> ClusterSummary:
    """Mean score and inequality of a cluster; NaN means for an empty one."""
    scores = np.asarray(scores, dtype=float)
    inequality = np.asarray(inequality, dtype=float)

    if scores.size == 0:
        return ClusterSummary(size=0, mean_score=float("nan"), mean_inequality=float("nan"))

    return ClusterSummary(
        size=int(scores.size),
        mean_score=float(scores.mean()),
        mean_inequality=float(inequality.mean()),
    )


def select_stable_cluster(first: ClusterSummary, second: ClusterSummary) -> int:
    """
    Decide which cluster holds the stable urbanizers.

    Lower GPI score means more peaceful and lower Gini means more equal.
    Cluster 0 is stable only when it is lower on both; in every other case,
    including NaN means from an empty cluster, cluster 1 is.

    Args:
        first: Summary of cluster 0.
        second: Summary of cluster 1.

    Returns:
        Index of the stable cluster.
    """
    if first.mean_score < second.mean_score and first.mean_inequality < second.mean_inequality:
        return 0
    return 1


def label_clusters(assignments: Sequence[int], stable_cluster: int) -> List[str]:
    """Map raw cluster indices to archetype labels."""
    return [
        STABLE_LABEL if cluster == stable_cluster else VOLATILE_LABEL
        for cluster in assignments
    ]


def _finite_values(aggregates: pl.DataFrame, columns: Sequence[str]) -> np.ndarray:
    values = aggregates.select(list(columns)).to_numpy().astype(float)
    return np.where(np.isfinite(values), values, 0.0)


def assemble_profiles(
    aggregates: pl.DataFrame,
    labels: Sequence[str],
) -> Dict[str, CountryProfile]:
    """
    Build the country -> profile mapping.

    Args:
        aggregates: Country means, one row per clustered country.
        labels: Archetype label per row of ``aggregates``.

    Returns:
        Profiles keyed by country name, in aggregate order.
    """
    if aggregates.is_empty():
        return {}

    values = _finite_values(aggregates, PROFILE_FIELDS)
    profiles: Dict[str, CountryProfile] = {}

    for country, row, label in zip(aggregates["country"].to_list(), values, labels):
        profiles[country] = CountryProfile(
            country=country,
            cluster_label=label,
            **{name: float(value) for name, value in zip(PROFILE_FIELDS, row)},
        )

    return profiles


def _log_silhouette(X: np.ndarray, assignments: np.ndarray) -> None:
    n_labels = len(np.unique(assignments))
    if 1 < n_labels < len(assignments):
        score = silhouette_score(X, assignments)
        logger.debug(f"Silhouette Score: {score:.4f}")


def cluster_countries(records: Iterable[RawRecord]) -> Dict[str, CountryProfile]:
    """
    Run the full clustering pipeline over country-year records.

    Args:
        records: Country-year observations, in source order.

    Returns:
        Profiles keyed by country name. Empty when no country can be clustered.
    """
    aggregates = aggregate_countries(records)
    if aggregates.is_empty():
        logger.warning("No countries to cluster")
        return {}

    X, aggregates = build_feature_matrix(aggregates)
    if X.shape[0] == 0 or X.shape[1] == 0:
        logger.warning("No valid feature vectors to cluster")
        return {}

    logger.info(f"Clustering {X.shape[0]} countries using {X.shape[1]} indicators")

    X_scaled = standardize_features(X)
    result = partition_countries(X_scaled)
    logger.debug(
        f"K-Means stopped after {result.iterations} iterations "
        f"(converged={result.converged}, centroids={len(result.centroids)})"
    )
    _log_silhouette(X_scaled, result.assignments)

    stability = _finite_values(aggregates, [SCORE_INDICATOR, INEQUALITY_INDICATOR])
    summaries = []
    for cluster in range(N_CLUSTERS):
        members = stability[result.assignments == cluster]
        summary = summarize_cluster(members[:, 0], members[:, 1])
        logger.info(
            f"Cluster {cluster}: GPI={summary.mean_score:.2f}, "
            f"Gini={summary.mean_inequality:.2f}, Count={summary.size}"
        )
        summaries.append(summary)

    stable_cluster = select_stable_cluster(summaries[0], summaries[1])
    logger.info(f"Stable cluster: {stable_cluster}")

    labels = label_clusters(result.assignments, stable_cluster)
    return assemble_profiles(aggregates, labels)


def profiles_to_frame(profiles: Dict[str, CountryProfile]) -> pl.DataFrame:
    """Tabulate profiles, one row per country."""
    schema = {"country": pl.String}
    schema.update({name: pl.Float64 for name in PROFILE_FIELDS})
    schema["cluster_label"] = pl.String

    return pl.DataFrame([p.to_dict() for p in profiles.values()], schema=schema)


def generate_cluster_profiles(df: pl.DataFrame) -> pl.DataFrame:
    """
    Generate summary statistics for each archetype.

    Args:
        df: Output of ``profiles_to_frame``.

    Returns:
        DataFrame with one row per cluster label.
    """
    return (
        df.group_by("cluster_label")
        .agg([
            pl.len().alias("num_countries"),
            pl.col("overall_score").mean().alias("avg_overall_score"),
            pl.col("gini_coefficient").mean().alias("avg_gini"),
            pl.col("urban_pop_perc").mean().alias("avg_urban_pop_perc"),
            pl.col("gdp").mean().alias("avg_gdp"),
        ])
        .sort("cluster_label")
    )


def export_profiles(df: pl.DataFrame, output_path: Path = PROFILES_OUTPUT_PATH) -> Path:
    """
    Export country profiles to CSV.

    Args:
        df: Output of ``profiles_to_frame``.
        output_path: Destination file.

    Returns:
        Path to the created CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df.write_csv(output_path)

    return output_path


def main() -> Tuple[pl.DataFrame, pl.DataFrame]:
    """
    Run the full clustering pipeline on the default dataset.

    Returns:
        Tuple of (country profiles DataFrame, cluster summaries).
    """
    from ingestion.csv_loader import load_records, resolve_data_path

    print("=" * 60)
    print("Country Urbanization Clustering")
    print("=" * 60)

    print("\n1. Loading country-year records...")
    data_path = resolve_data_path()
    records = load_records(data_path)
    print(f"   Loaded {len(records):,} records from {data_path}")

    print(f"\n2. Running K-Means clustering (k={N_CLUSTERS})...")
    profiles = cluster_countries(records)
    df = profiles_to_frame(profiles)
    print(f"   Clustered {len(df):,} countries")

    print("\n3. Generating cluster profiles...")
    summary = generate_cluster_profiles(df)

    print("\n" + "=" * 60)
    print("CLUSTER PROFILES")
    print("=" * 60)
    for row in summary.iter_rows(named=True):
        print(f"\n[{row['cluster_label']}]")
        print(f"   Countries: {row['num_countries']:,}")
        print(f"   GPI overall score: {row['avg_overall_score']:.3f}")
        print(f"   Gini: {row['avg_gini']:.3f}")
        print(f"   Urban population: {row['avg_urban_pop_perc']:.1f}%")

    print("\n4. Exporting profiles...")
    output_path = export_profiles(df, PROFILES_OUTPUT_PATH)
    print(f"   Saved to: {output_path}")
    print("=" * 60)

    return df, summary


if __name__ == "__main__":
    main()
