"""Estimation of whole sets of resources."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping

from carbonestimate.estimation import (
    EstimationInfo,
    EstimationReport,
    EstimationResource,
    EstimationTotal,
    InfoByProvider,
    Provider,
    Resource,
    UnsupportedProviderError,
)
from carbonestimate.power import Estimator

logger = logging.getLogger(__name__)


def estimate_resource(
    resource: Resource,
    estimator: Estimator,
    forecast_carbon_intensity: Decimal | float | None = None,
    forecast_region: str = "",
) -> EstimationResource:
    """Estimate one resource; unsupported resources get zero estimates."""
    if not resource.is_supported():
        return EstimationResource(resource=resource)
    provider = resource.identification.provider
    if provider in (Provider.AWS, Provider.GCP):
        return estimator.estimate_supported(
            resource, forecast_carbon_intensity, forecast_region
        )
    raise UnsupportedProviderError(str(provider))


def estimate_resources(
    resource_list: Mapping[str, Resource],
    estimator: Estimator,
    forecast_carbon_intensity: Decimal | float | None = None,
    forecast_region: str = "",
) -> EstimationReport:
    """Estimate every resource and build a report with totals."""
    estimated: list[EstimationResource] = []
    unsupported: list[Resource] = []
    total = EstimationTotal()

    for resource in resource_list.values():
        try:
            estimation = estimate_resource(
                resource, estimator, forecast_carbon_intensity, forecast_region
            )
        except UnsupportedProviderError as error:
            ident = resource.identification
            logger.warning(
                "Skipping unsupported provider %s: %s.%s",
                error.provider, ident.resource_type, ident.name,
            )
            continue

        if resource.is_supported():
            estimated.append(estimation)
        else:
            unsupported.append(resource)

        total.power += estimation.power * estimation.total_count
        total.carbon_emissions += estimation.carbon_emissions * estimation.total_count
        total.resources_count += estimation.total_count

    settings = estimator.settings
    unit_time = settings.unit_time or "h"
    usage = InfoByProvider(
        average_cpu_usage=settings.avg_cpu_use(Provider.GCP),
        average_gpu_usage=settings.avg_gpu_use(Provider.GCP),
    )
    info = EstimationInfo(
        unit_time=unit_time,
        unit_watt_time=f"W{unit_time}",
        unit_carbon_emissions_time=f"{settings.unit_carbon}CO2eq/{unit_time}",
        info_by_provider={Provider.GCP: usage, Provider.AWS: usage},
    )
    return EstimationReport(
        info=info,
        resources=estimated,
        unsupported_resources=unsupported,
        total=total,
    )


def sort_estimations(resources: list[EstimationResource]) -> None:
    """Sort estimations in place by resource address."""
    resources.sort(key=lambda estimation: estimation.resource.address())