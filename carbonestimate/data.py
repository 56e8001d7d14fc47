"""Settings, reference data files and carbon intensity forecasts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_EMBEDDED_DIR = Path(__file__).with_name("datafiles")

_DEFAULT_USAGE = {"gcp": 0.5, "aws": 0.5, "azure": 0.5}


@dataclass
class Settings:
    """Configuration shared by the estimation steps."""

    data_path: Path | None = None
    unit_time: str = "h"
    unit_carbon: str = "g"
    unit_power: str = "W"
    avg_cpu_use_by_provider: dict[str, float] = field(
        default_factory=lambda: dict(_DEFAULT_USAGE)
    )
    avg_gpu_use_by_provider: dict[str, float] = field(
        default_factory=lambda: dict(_DEFAULT_USAGE)
    )

    def avg_cpu_use(self, provider: Any) -> float:
        """Average CPU utilisation assumed for a provider, 0 if unset."""
        return self.avg_cpu_use_by_provider.get(str(provider).lower(), 0.0)

    def avg_gpu_use(self, provider: Any) -> float:
        """Average GPU utilisation assumed for a provider, 0 if unset."""
        return self.avg_gpu_use_by_provider.get(str(provider).lower(), 0.0)


class ForecastError(Exception):
    """Raised when a forecast file cannot be used."""


@dataclass(frozen=True)
class ForecastEntry:
    timestamp: str
    value: float


@dataclass(frozen=True)
class ForecastFile:
    region: str
    data: list[ForecastEntry]


def read_data_file(filename: str, settings: Settings | None = None) -> bytes:
    """Read a reference data file, preferring the configured data directory."""
    if settings is not None and settings.data_path is not None:
        path = Path(settings.data_path) / filename
        if path.exists():
            logger.debug("  reading datafile '%s' from: %s", filename, path)
            return path.read_bytes()
    logger.debug("  reading datafile '%s' embedded", filename)
    embedded = _EMBEDDED_DIR / filename
    try:
        return embedded.read_bytes()
    except OSError as error:
        raise FileNotFoundError(
            f"cannot read embedded data file: {filename}"
        ) from error


def _parse_entry(item: Any) -> ForecastEntry:
    if item is None:
        return ForecastEntry("", 0.0)
    if not isinstance(item, dict):
        raise TypeError(f"forecast entry is not an object: {item!r}")
    timestamp = item.get("timestamp")
    value = item.get("value")
    if timestamp is None:
        timestamp = ""
    if not isinstance(timestamp, str):
        raise TypeError(f"timestamp is not a string: {timestamp!r}")
    if value is None:
        value = 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"value is not a number: {value!r}")
    return ForecastEntry(timestamp, float(value))


def _parse_forecast(raw: bytes) -> ForecastFile:
    document = json.loads(raw)
    if document is None:
        return ForecastFile("", [])
    if not isinstance(document, dict):
        raise TypeError("forecast document is not an object")
    region = document.get("region") or ""
    if not isinstance(region, str):
        raise TypeError(f"region is not a string: {region!r}")
    entries = document.get("data") or []
    if not isinstance(entries, list):
        raise TypeError("data is not an array")
    return ForecastFile(region, [_parse_entry(item) for item in entries])


def read_forecast_carbon_intensity(filename: str | Path) -> tuple[float, str]:
    """Return the average forecast carbon intensity and its region."""
    logger.info("Reading forecast carbon intensity from: %s", filename)
    try:
        raw = Path(filename).read_bytes()
    except OSError as error:
        raise ForecastError(
            f"failed to read forecast carbon intensity file: {error}"
        ) from error
    try:
        forecast = _parse_forecast(raw)
    except (ValueError, TypeError) as error:
        raise ForecastError(
            f"failed to parse forecast carbon intensity JSON: {error}"
        ) from error
    if not forecast.data:
        raise ForecastError("forecast carbon intensity file is empty")
    average = sum(entry.value for entry in forecast.data) / len(forecast.data)
    logger.info(
        "Computed average forecast carbon intensity: %.6f gCO2eq/Wh for region %s",
        average,
        forecast.region,
    )
    return average, forecast.region