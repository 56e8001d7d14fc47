"""Energy coefficients per provider and grid carbon intensity per region."""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Any

from carbonestimate.data import Settings, read_data_file
from carbonestimate.estimation import Provider

logger = logging.getLogger(__name__)

_REGION_COLUMN = "Region"
_LOCATION_COLUMN = "Location"
_INTENSITY_COLUMN = "Grid carbon intensity (gCO2eq / kWh)"

_REGION_FILES = {
    Provider.AWS: "aws_co2_region.csv",
    Provider.GCP: "gcp_co2_region.csv",
}


@dataclass(frozen=True)
class Emissions:
    """Grid carbon intensity of a region, in gCO2eq/kWh."""

    region: str
    location: str
    grid_carbon_intensity: Decimal


class RegionEmissionError(LookupError):
    """Raised when emissions of a region cannot be found."""


@dataclass(frozen=True)
class Coefficients:
    """Energy coefficients used to estimate power draw."""

    cpu_min_wh: Decimal = Decimal(0)
    cpu_max_wh: Decimal = Decimal(0)
    storage_hdd_wh_tb: Decimal = Decimal(0)
    storage_ssd_wh_tb: Decimal = Decimal(0)
    networking_wh_gb: Decimal = Decimal(0)
    memory_wh_gb: Decimal = Decimal(0)
    pue_average: Decimal = Decimal(0)


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        raise ValueError(f"not a decimal: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"not a decimal: {value!r}") from None


def _coefficients_from(data: Any) -> Coefficients:
    if data is None:
        return Coefficients()
    if not isinstance(data, dict):
        raise ValueError("coefficients entry is not an object")
    return Coefficients(
        **{f.name: _to_decimal(data.get(f.name)) for f in fields(Coefficients)}
    )


@dataclass(frozen=True)
class CoefficientsProviders:
    """Energy coefficients for each provider."""

    aws: Coefficients
    gcp: Coefficients
    azure: Coefficients

    def by_provider(self, provider: Provider) -> Coefficients:
        return {
            Provider.AWS: self.aws,
            Provider.GCP: self.gcp,
            Provider.AZURE: self.azure,
        }[provider]

    @classmethod
    def from_json(cls, text: str | bytes) -> CoefficientsProviders:
        """Parse coefficients keyed by provider name."""
        document = json.loads(text, parse_float=Decimal, parse_int=Decimal)
        if not isinstance(document, dict):
            raise ValueError("energy coefficients document is not an object")
        by_name = {str(key).lower(): value for key, value in document.items()}
        return cls(
            aws=_coefficients_from(by_name.get("aws")),
            gcp=_coefficients_from(by_name.get("gcp")),
            azure=_coefficients_from(by_name.get("azure")),
        )


def load_energy_coefficients(settings: Settings | None = None) -> CoefficientsProviders:
    """Load coefficients from the energy_coefficients.json data file."""
    return CoefficientsProviders.from_json(
        read_data_file("energy_coefficients.json", settings)
    )


def parse_emissions_csv(text: str) -> dict[str, Emissions]:
    """Parse a region emissions table into a mapping by region."""
    reader = csv.DictReader(io.StringIO(text))
    header = reader.fieldnames or []
    missing = [
        column
        for column in (_REGION_COLUMN, _LOCATION_COLUMN, _INTENSITY_COLUMN)
        if column not in header
    ]
    if missing:
        raise ValueError(f"missing columns in emissions table: {missing}")
    table: dict[str, Emissions] = {}
    for row in reader:
        raw = row[_INTENSITY_COLUMN]
        try:
            intensity = Decimal(repr(float(raw)))
        except (TypeError, ValueError):
            raise ValueError(f"invalid grid carbon intensity: {raw!r}") from None
        region = row[_REGION_COLUMN]
        table[region] = Emissions(region, row[_LOCATION_COLUMN], intensity)
    return table


class RegionEmissions:
    """Looks up grid carbon intensity, loading each provider's table once."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()
        self._tables: dict[Provider, dict[str, Emissions]] = {}

    def _table(self, provider: Provider) -> dict[str, Emissions]:
        if provider not in self._tables:
            data_file = _REGION_FILES[provider]
            logger.debug("reading region/grid emissions from: %s", data_file)
            raw = read_data_file(data_file, self._settings)
            self._tables[provider] = parse_emissions_csv(raw.decode("utf-8-sig"))
        return self._tables[provider]

    def lookup(self, provider: Provider, region: str) -> Emissions:
        """Return the emissions of a region of a provider."""
        if provider not in _REGION_FILES:
            raise RegionEmissionError("Provider not supported")
        table = self._table(provider)
        if not region:
            raise RegionEmissionError("Region cannot be empty")
        try:
            return table[region]
        except KeyError:
            raise RegionEmissionError(f"Region does not exist: '{region}'") from None