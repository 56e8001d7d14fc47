import json
from decimal import Decimal

import pytest

from carbonestimate.coefficients import (
    Coefficients,
    CoefficientsProviders,
    RegionEmissionError,
    RegionEmissions,
    load_energy_coefficients,
    parse_emissions_csv,
)
from carbonestimate.data import Settings
from carbonestimate.estimation import Provider

HEADER = "Region,Location,Grid carbon intensity (gCO2eq / kWh)\n"

COEFFICIENTS = {
    "AWS": {"cpu_min_wh": 0.74, "cpu_max_wh": 3.5, "pue_average": 1.135},
    "GCP": {"cpu_min_wh": 0.71, "cpu_max_wh": 4.26, "memory_wh_gb": 0.392},
    "Azure": {"cpu_min_wh": "0.78", "pue_average": 1.185},
}


def test_coefficients_from_json():
    providers = CoefficientsProviders.from_json(json.dumps(COEFFICIENTS))
    assert providers.by_provider(Provider.AWS).cpu_max_wh == Decimal("3.5")
    assert providers.by_provider(Provider.GCP).memory_wh_gb == Decimal("0.392")
    assert providers.by_provider(Provider.AZURE).cpu_min_wh == Decimal("0.78")


def test_coefficients_missing_fields_are_zero():
    providers = CoefficientsProviders.from_json(json.dumps(COEFFICIENTS))
    assert providers.by_provider(Provider.AWS).memory_wh_gb == Decimal(0)
    assert providers.gcp.pue_average == Decimal(0)


def test_coefficients_missing_provider():
    providers = CoefficientsProviders.from_json(json.dumps({"GCP": COEFFICIENTS["GCP"]}))
    assert providers.aws == Coefficients()


def test_coefficients_invalid_value():
    with pytest.raises(ValueError):
        CoefficientsProviders.from_json(json.dumps({"AWS": {"cpu_min_wh": "lots"}}))


def test_load_energy_coefficients(tmp_path):
    (tmp_path / "energy_coefficients.json").write_text(json.dumps(COEFFICIENTS))
    providers = load_energy_coefficients(Settings(data_path=tmp_path))
    assert providers.aws.pue_average == Decimal("1.135")


def test_parse_emissions_csv():
    table = parse_emissions_csv(HEADER + "europe-west9,Paris,59\nus-east1,South Carolina,0.1\n")
    assert set(table) == {"europe-west9", "us-east1"}
    assert table["europe-west9"].location == "Paris"
    assert table["europe-west9"].grid_carbon_intensity == Decimal("59")
    assert table["us-east1"].grid_carbon_intensity == Decimal("0.1")


def test_parse_emissions_csv_missing_column():
    with pytest.raises(ValueError):
        parse_emissions_csv("Region,Location\neurope-west9,Paris\n")


def test_parse_emissions_csv_bad_value():
    with pytest.raises(ValueError):
        parse_emissions_csv(HEADER + "europe-west9,Paris,high\n")


@pytest.fixture
def region_emissions(tmp_path):
    (tmp_path / "gcp_co2_region.csv").write_text(HEADER + "europe-west9,Paris,59\n")
    (tmp_path / "aws_co2_region.csv").write_text(HEADER + "eu-west-3,Paris,51\n")
    return RegionEmissions(Settings(data_path=tmp_path)), tmp_path


def test_lookup_per_provider(region_emissions):
    emissions, _ = region_emissions
    assert emissions.lookup(Provider.GCP, "europe-west9").grid_carbon_intensity == Decimal("59")
    assert emissions.lookup(Provider.AWS, "eu-west-3").grid_carbon_intensity == Decimal("51")


def test_lookup_is_cached(region_emissions):
    emissions, path = region_emissions
    first = emissions.lookup(Provider.GCP, "europe-west9")
    (path / "gcp_co2_region.csv").unlink()
    assert emissions.lookup(Provider.GCP, "europe-west9") == first


def test_lookup_unknown_region(region_emissions):
    emissions, _ = region_emissions
    with pytest.raises(RegionEmissionError, match="Region does not exist: 'mars-1'"):
        emissions.lookup(Provider.GCP, "mars-1")


def test_lookup_empty_region(region_emissions):
    emissions, _ = region_emissions
    with pytest.raises(RegionEmissionError, match="Region cannot be empty"):
        emissions.lookup(Provider.GCP, "")


def test_lookup_unsupported_provider(region_emissions):
    emissions, _ = region_emissions
    with pytest.raises(RegionEmissionError, match="Provider not supported"):
        emissions.lookup(Provider.AZURE, "westeurope")