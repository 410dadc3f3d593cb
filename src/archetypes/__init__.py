"""
Urbanizer archetypes analysis package.

Contains the indicator registry, country aggregation and the two-cluster
segmentation of countries into stable and volatile urbanizers.
"""

from .clustering import (
    cluster_countries,
    aggregate_countries,
    partition_countries,
    select_stable_cluster,
    generate_cluster_profiles,
    profiles_to_frame,
    export_profiles,
)
from .indicators import INDICATORS, INDICATOR_NAMES
from .profiles import CountryProfile, RawRecord, STABLE_LABEL, VOLATILE_LABEL

__all__ = [
    "cluster_countries",
    "aggregate_countries",
    "partition_countries",
    "select_stable_cluster",
    "generate_cluster_profiles",
    "profiles_to_frame",
    "export_profiles",
    "INDICATORS",
    "INDICATOR_NAMES",
    "CountryProfile",
    "RawRecord",
    "STABLE_LABEL",
    "VOLATILE_LABEL",
]
