"""
Record and profile types shared by ingestion and clustering.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Mapping, Optional, Tuple

from .indicators import validate_registry

STABLE_LABEL = "Stable Urbanizers"
VOLATILE_LABEL = "Volatile Urbanizers"


@dataclass(frozen=True)
class RawRecord:
    """
    One country-year observation.

    ``values`` maps registry indicator names to numbers; a missing key
    and ``None`` both mean the indicator was not observed that year.
    """

    country: str
    year: Optional[int] = None
    values: Mapping[str, Optional[float]] = field(default_factory=dict)

    def get(self, name: str) -> Optional[float]:
        return self.values.get(name)


@dataclass(frozen=True)
class CountryProfile:
    """Country-level averages exposed to consumers, plus the archetype label."""

    country: str
    urban_pop_perc: float
    gini_coefficient: float
    overall_score: float
    homicide_rate: float
    militarisation: float
    political_instability: float
    internal_peace: float
    weapons_exports: float
    weapons_imports: float
    nuclear_heavy_weapons: float
    ongoing_conflict: float
    neighbouring_countries_relations: float
    intensity_of_internal_conflict: float
    ag_value_added: float
    ren_energy_cons_perc: float
    clean_cooking_access: float
    perceptions_of_criminality: float
    violent_crime: float
    violent_demonstrations: float
    access_to_small_arms: float
    safety_and_security: float
    total_pop: float
    carbon_damage: float
    gdp: float
    pop_dens_sq_km: float
    cluster_label: str

    @property
    def is_stable(self) -> bool:
        return self.cluster_label == STABLE_LABEL

    def to_dict(self) -> dict:
        return asdict(self)


# Indicator means copied onto each profile, in declaration order
PROFILE_FIELDS: Tuple[str, ...] = tuple(
    f.name for f in fields(CountryProfile) if f.name not in ("country", "cluster_label")
)

validate_registry(PROFILE_FIELDS)
