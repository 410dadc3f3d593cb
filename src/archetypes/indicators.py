"""
Indicator registry for country clustering.

Defines the ordered list of numeric indicators read from the combined
urbanization / quality-of-life dataset. The order of ``INDICATORS`` is the
dimension order of every feature vector and centroid in the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Set, Tuple


@dataclass(frozen=True)
class Indicator:
    """A numeric indicator and the source headers it may appear under."""

    name: str
    headers: Tuple[str, ...]
    description: str = ""


INDICATORS: Tuple[Indicator, ...] = (
    # Demography and energy (World Bank)
    Indicator("total_pop", ("total_pop",), "Total population"),
    Indicator("pop_dens_sq_km", ("pop_dens_sq_km",), "Population density (per sq. km)"),
    Indicator("urban_pop_perc", ("urban_pop_perc",), "Urban population (% of total)"),
    Indicator("rural_pop_perc", ("rural_pop_perc",), "Rural population (% of total)"),
    Indicator("elect_access_pop", ("elect_access_pop",), "Population with electricity access"),
    Indicator("ren_energy_cons_perc", ("ren_energy_cons_perc",), "Renewable energy consumption (%)"),
    Indicator("clean_fuel_tech_cook_pop", ("clean_fuel_tech_cook_pop",), "Population using clean cooking fuels"),
    Indicator("co2_emiss_excl_lulucf", ("co2_emiss_excl_lulucf",), "CO2 emissions excluding LULUCF"),
    Indicator("gini_coefficient", ("Gini coefficient (2021 prices)",), "Gini coefficient"),
    # Global Peace Index domains
    Indicator("perceptions_of_criminality", ("perceptions of criminality",)),
    Indicator("homicide_rate", ("homicide rate",)),
    Indicator("police_rate", ("police rate",)),
    Indicator("incarceration_rate", ("incarceration rate",)),
    Indicator("access_to_small_arms", ("Access to small arms",)),
    Indicator("intensity_of_internal_conflict", ("intensity of internal conflict",)),
    Indicator("violent_demonstrations", ("violent demonstrations",)),
    Indicator("violent_crime", ("Violent crime",)),
    Indicator("political_instability", ("Political instability",)),
    Indicator("political_terror_scale", ("Political Terror Scale",)),
    Indicator("weapons_imports", ("weapons imports",)),
    Indicator("terrorism_impact", ("terrorism impact",)),
    Indicator("deaths_from_internal_conflict", ("deaths from internal conflict",)),
    Indicator("internal_conflicts_fought", ("internal conflicts fought",)),
    Indicator("military_expenditure_perc_gdp", ("military expenditure (% gdp)",)),
    Indicator("armed_services_personnel_rate", ("armed services personnel rate",)),
    Indicator("un_peacekeeping_funding", ("un peacekeeping funding",)),
    Indicator("nuclear_heavy_weapons", ("nuclear and heavy weapons",)),
    Indicator("weapons_exports", ("weapons exports",)),
    Indicator("refugees_and_idps", ("refugees and idps",)),
    Indicator("neighbouring_countries_relations", ("Neighbouring countries relations",)),
    Indicator("external_conflicts_fought", ("external conflicts fought",)),
    Indicator("deaths_from_external_conflict", ("deaths From external conflict",)),
    Indicator("overall_score", ("overall score",), "GPI overall score (lower = more peaceful)"),
    Indicator("internal_peace", ("internal peace",)),
    Indicator("external_peace", ("external peace",)),
    Indicator("safety_and_security", ("safety and security",)),
    Indicator("ongoing_conflict", ("ongoing conflict",)),
    Indicator("militarisation", ("militarisation",)),
    # Agriculture and adjusted savings (World Bank)
    Indicator(
        "ag_value_added",
        ("Agriculture, forestry, and fishing, value added (% of GDP)",),
    ),
    Indicator(
        "adj_savings_natural_resources_depletion",
        ("Adjusted savings: natural resources depletion (% of GNI)",),
    ),
    Indicator(
        "adj_savings_net_forest_depletion",
        ("Adjusted savings: net forest depletion (% of GNI)",),
    ),
    Indicator(
        "access_to_electricity",
        ("Access to electricity (% of population)",),
    ),
    Indicator(
        "adj_savings_energy_depletion",
        ("Adjusted savings: energy depletion (% of GNI)",),
    ),
    Indicator(
        "carbon_damage",
        ("Adjusted savings: carbon dioxide damage (% of GNI)",),
    ),
    Indicator(
        "clean_cooking_access",
        ("Access to clean fuels and technologies for cooking (% of population)",),
    ),
    Indicator(
        "ag_value_added_growth",
        ("Agriculture, forestry, and fishing, value added (annual % growth)",),
    ),
    Indicator("gdp", ("gdp",), "Gross domestic product"),
)

INDICATOR_NAMES: Tuple[str, ...] = tuple(ind.name for ind in INDICATORS)

# Axes of the stability heuristic
SCORE_INDICATOR = "overall_score"
INEQUALITY_INDICATOR = "gini_coefficient"


def get_indicator(name: str) -> Indicator:
    """
    Look up a registry entry by name.

    Raises:
        KeyError: If the indicator is not registered.
    """
    for indicator in INDICATORS:
        if indicator.name == name:
            return indicator
    raise KeyError(f"Unknown indicator: {name}")


def validate_registry(required: Tuple[str, ...] = ()) -> None:
    """
    Check the registry is well formed.

    Args:
        required: Indicator names that must be present in the registry.

    Raises:
        ValueError: On duplicate names or missing required indicators.
    """
    seen: Set[str] = set()
    for name in INDICATOR_NAMES:
        if name in seen:
            raise ValueError(f"Duplicate indicator in registry: {name}")
        seen.add(name)

    missing = [name for name in required if name not in seen]
    if missing:
        raise ValueError(f"Indicators not in registry: {', '.join(missing)}")


validate_registry((SCORE_INDICATOR, INEQUALITY_INDICATOR))
