"""Cloud resource descriptions and the structures of an emissions report."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Union


def format_decimal(value: Decimal) -> str:
    """Render a decimal in plain notation without trailing zeros."""
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


class UnsupportedProviderError(ValueError):
    """Raised when a cloud provider is unknown or not supported."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"unsupported provider: {provider}")
        self.provider = provider


class Provider(enum.Enum):
    """Cloud providers a resource can belong to."""

    AWS = "AWS"
    GCP = "GCP"
    AZURE = "AZURE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> Provider:
        """Parse a provider name, ignoring case."""
        try:
            return cls(name.upper())
        except ValueError:
            raise UnsupportedProviderError(name) from None


@dataclass
class ResourceIdentification:
    """What identifies a resource in an infrastructure plan."""

    address: str
    name: str
    resource_type: str
    provider: Provider
    region: str = ""
    count: int = 1
    replication_factor: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "ResourceType": self.resource_type,
            "Provider": str(self.provider),
            "Region": self.region,
            "Count": self.count,
            "ReplicationFactor": self.replication_factor,
            "Address": self.address,
        }


@dataclass
class ComputeResourceSpecs:
    """Hardware characteristics of a compute resource."""

    gpu_types: list[str] = field(default_factory=list)
    hdd_storage: Decimal = Decimal(0)
    ssd_storage: Decimal = Decimal(0)
    memory_mb: int = 0
    vcpus: int = 0
    cpu_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "GpuTypes": list(self.gpu_types),
            "HddStorage": format_decimal(self.hdd_storage),
            "SsdStorage": format_decimal(self.ssd_storage),
            "MemoryMb": self.memory_mb,
            "VCPUs": self.vcpus,
            "CPUType": self.cpu_type,
        }


@dataclass
class ComputeResource:
    """A resource whose energy use can be estimated."""

    identification: ResourceIdentification
    specs: ComputeResourceSpecs = field(default_factory=ComputeResourceSpecs)

    def address(self) -> str:
        return self.identification.address

    def is_supported(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "Identification": self.identification.to_dict(),
            "Specs": self.specs.to_dict(),
        }


@dataclass
class UnsupportedResource:
    """A resource found in a plan that cannot be estimated."""

    identification: ResourceIdentification

    def address(self) -> str:
        return self.identification.address

    def is_supported(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"Identification": self.identification.to_dict()}


Resource = Union[ComputeResource, UnsupportedResource]


@dataclass
class EstimationResource:
    """Power and emissions estimated for one instance of a resource."""

    resource: Resource
    power: Decimal = Decimal(0)
    carbon_emissions: Decimal = Decimal(0)
    average_cpu_usage: Decimal = Decimal(0)
    total_count: Decimal = Decimal(0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Resource": self.resource.to_dict(),
            "PowerPerInstance": format_decimal(self.power),
            "CarbonEmissionsPerInstance": format_decimal(self.carbon_emissions),
            "AverageCPUUsage": format_decimal(self.average_cpu_usage),
            "TotalCount": format_decimal(self.total_count),
        }


@dataclass
class EstimationTotal:
    """Sums over all estimated resources."""

    power: Decimal = Decimal(0)
    carbon_emissions: Decimal = Decimal(0)
    resources_count: Decimal = Decimal(0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Power": format_decimal(self.power),
            "CarbonEmissions": format_decimal(self.carbon_emissions),
            "ResourcesCount": format_decimal(self.resources_count),
        }


@dataclass
class InfoByProvider:
    """Usage assumptions applied to one provider."""

    average_cpu_usage: float = 0.0
    average_gpu_usage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "AverageCPUUsage": self.average_cpu_usage,
            "AverageGPUUsage": self.average_gpu_usage,
        }


@dataclass
class EstimationInfo:
    """Units and context of an estimation."""

    unit_time: str
    unit_watt_time: str
    unit_carbon_emissions_time: str
    date_time: datetime = field(default_factory=lambda: datetime.now().astimezone())
    info_by_provider: dict[Provider, InfoByProvider] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "UnitTime": self.unit_time,
            "UnitWattTime": self.unit_watt_time,
            "UnitCarbonEmissionsTime": self.unit_carbon_emissions_time,
            "DateTime": self.date_time.isoformat(),
            "InfoByProvider": {
                str(provider): info.to_dict()
                for provider, info in self.info_by_provider.items()
            },
        }


@dataclass
class EstimationReport:
    """The full result of estimating a set of resources."""

    info: EstimationInfo
    resources: list[EstimationResource] = field(default_factory=list)
    unsupported_resources: list[Resource] = field(default_factory=list)
    total: EstimationTotal = field(default_factory=EstimationTotal)

    def to_dict(self) -> dict[str, Any]:
        """Return the report as plain JSON-compatible data."""
        return {
            "Info": self.info.to_dict(),
            "Resources": [resource.to_dict() for resource in self.resources],
            "UnsupportedResources": [
                resource.to_dict() for resource in self.unsupported_resources
            ],
            "Total": self.total.to_dict(),
        }