"""Power draw and carbon emissions of compute resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Mapping

from carbonestimate.coefficients import (
    CoefficientsProviders,
    RegionEmissions,
    load_energy_coefficients,
)
from carbonestimate.data import Settings
from carbonestimate.estimation import ComputeResource, EstimationResource, Provider

logger = logging.getLogger(__name__)

_PRECISION = Decimal("1e-10")

_TIME_FACTORS = {
    "d": Decimal(24),
    "m": Decimal(24 * 30),
    "y": Decimal(24 * 365),
}


def _to_decimal(value: Decimal | float | int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def _floor(value: Decimal) -> Decimal:
    return value.quantize(_PRECISION, rounding=ROUND_FLOOR)


@dataclass(frozen=True)
class Watts:
    """Power range of a processing unit, from idle to full load."""

    min_watts: Decimal
    max_watts: Decimal

    def average(self, usage: Decimal) -> Decimal:
        """Average power at the given utilisation."""
        return self.min_watts + usage * (self.max_watts - self.min_watts)


class Estimator:
    """Estimates energy use and carbon emissions of compute resources."""

    def __init__(
        self,
        settings: Settings | None = None,
        coefficients: CoefficientsProviders | None = None,
        region_emissions: RegionEmissions | None = None,
        cpu_watts: Mapping[str, Watts] | None = None,
        gpu_watts: Mapping[str, Watts] | None = None,
        default_gpu_watts: Watts | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._coefficients = coefficients
        self.region_emissions = region_emissions or RegionEmissions(self.settings)
        self.cpu_watts = {name.lower(): watts for name, watts in (cpu_watts or {}).items()}
        self.gpu_watts = dict(gpu_watts or {})
        self.default_gpu_watts = default_gpu_watts

    @property
    def coefficients(self) -> CoefficientsProviders:
        if self._coefficients is None:
            self._coefficients = load_energy_coefficients(self.settings)
        return self._coefficients

    def _cpu_platform_watts(self, platform: str) -> Watts:
        try:
            return self.cpu_watts[platform.lower()]
        except KeyError:
            raise LookupError(f"unknown CPU platform: {platform}") from None

    def _gpu_type_watts(self, gpu_type: str) -> Watts:
        watts = self.gpu_watts.get(gpu_type, self.default_gpu_watts)
        if watts is None:
            raise LookupError(f"unknown GPU type: {gpu_type}")
        return watts

    def watt_cpu(self, resource: ComputeResource) -> Decimal:
        """Average power of the vCPUs of a resource, in W."""
        provider = resource.identification.provider
        usage = _to_decimal(self.settings.avg_cpu_use(provider))
        platform = resource.specs.cpu_type
        if platform and provider is Provider.GCP:
            per_cpu = self._cpu_platform_watts(platform).average(usage)
        else:
            coefficients = self.coefficients.by_provider(provider)
            per_cpu = Watts(coefficients.cpu_min_wh, coefficients.cpu_max_wh).average(usage)
        return per_cpu * resource.specs.vcpus

    def watt_memory(self, resource: ComputeResource) -> Decimal:
        """Power of the memory of a resource, in W."""
        provider = resource.identification.provider
        coefficient = self.coefficients.by_provider(provider).memory_wh_gb
        return Decimal(resource.specs.memory_mb) / 1024 * coefficient

    def watt_storage(self, resource: ComputeResource) -> Decimal:
        """Power of the disks of a resource, in W."""
        coefficients = self.coefficients.by_provider(resource.identification.provider)
        ssd_per_gb = coefficients.storage_ssd_wh_tb / 1024
        hdd_per_gb = coefficients.storage_hdd_wh_tb / 1024
        return resource.specs.ssd_storage * ssd_per_gb + resource.specs.hdd_storage * hdd_per_gb

    def watt_gpu(self, resource: ComputeResource) -> Decimal:
        """Average power of the GPUs of a resource, in W."""
        usage = _to_decimal(self.settings.avg_gpu_use(resource.identification.provider))
        return sum(
            (self._gpu_type_watts(gpu_type).average(usage) for gpu_type in resource.specs.gpu_types),
            Decimal(0),
        )

    def watt_hour(self, resource: ComputeResource) -> Decimal:
        """Energy used per hour by one instance with its replicas, in Wh."""
        ident = resource.identification
        label = f"{ident.resource_type}.{ident.name}"
        cpu = self.watt_cpu(resource)
        memory = self.watt_memory(resource)
        storage = self.watt_storage(resource)
        gpu = self.watt_gpu(resource)
        pue = self.coefficients.by_provider(ident.provider).pue_average
        logger.debug(
            "%s CPU %s Wh, memory %s Wh, storage %s Wh, GPUs %s Wh, PUE %s",
            label, cpu, memory, storage, gpu, pue,
        )
        replication_factor = ident.replication_factor or 1
        energy = pue * (cpu + memory + storage + gpu) * replication_factor
        logger.debug("%s energy in Wh: %s", label, energy)
        return energy

    def estimate_supported(
        self,
        resource: ComputeResource,
        forecast_carbon_intensity: Decimal | float | None = None,
        forecast_region: str = "",
    ) -> EstimationResource:
        """Estimate power and emissions per instance of a supported resource."""
        ident = resource.identification
        watt_hour = self.watt_hour(resource)
        kilowatt_hour = watt_hour / 1000

        if forecast_carbon_intensity is not None and ident.region == forecast_region:
            intensity = _to_decimal(forecast_carbon_intensity)
            logger.info(
                "Applying forecast carbon intensity %s for resource %s in region %s",
                intensity, ident.name, ident.region,
            )
        else:
            intensity = self.region_emissions.lookup(
                ident.provider, ident.region
            ).grid_carbon_intensity
            logger.info(
                "Using static carbon intensity %s for resource %s in region %s",
                intensity, ident.name, ident.region,
            )

        emissions = kilowatt_hour * intensity
        factor = _TIME_FACTORS.get(self.settings.unit_time.lower())
        if factor is not None:
            emissions *= factor
        if self.settings.unit_carbon.lower() == "kg":
            emissions /= 1000

        logger.debug(
            "estimating resource %s.%s (%s): %s kWh * %s gCO2/kWh = %s %sCO2/%s",
            ident.resource_type, ident.name, ident.region, kilowatt_hour,
            intensity, emissions, self.settings.unit_carbon, self.settings.unit_time,
        )

        return EstimationResource(
            resource=resource,
            power=_floor(watt_hour),
            carbon_emissions=_floor(emissions),
            average_cpu_usage=_floor(_to_decimal(self.settings.avg_cpu_use(Provider.GCP))),
            total_count=Decimal(ident.count * ident.replication_factor),
        )