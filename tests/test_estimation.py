import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from carbonestimate.estimation import (
    ComputeResource,
    ComputeResourceSpecs,
    EstimationInfo,
    EstimationReport,
    EstimationResource,
    EstimationTotal,
    InfoByProvider,
    Provider,
    ResourceIdentification,
    UnsupportedProviderError,
    UnsupportedResource,
    format_decimal,
)


def _compute() -> ComputeResource:
    return ComputeResource(
        identification=ResourceIdentification(
            address="google_compute_instance.machine-name-1",
            name="machine-name-1",
            resource_type="type-1",
            provider=Provider.GCP,
            region="europe-west9",
        ),
        specs=ComputeResourceSpecs(vcpus=2, memory_mb=4096),
    )


def _unsupported() -> UnsupportedResource:
    return UnsupportedResource(
        identification=ResourceIdentification(
            address="aws_subnet.my_subnet",
            name="my_subnet",
            resource_type="aws_subnet",
            provider=Provider.AWS,
        )
    )


@pytest.mark.parametrize(
    "name,expected",
    [("gcp", Provider.GCP), ("aws", Provider.AWS), ("AZURE", Provider.AZURE)],
)
def test_provider_parse(name, expected):
    assert Provider.parse(name) is expected


def test_provider_parse_unknown():
    with pytest.raises(UnsupportedProviderError) as info:
        Provider.parse("oracle")
    assert info.value.provider == "oracle"


def test_provider_str_round_trip():
    for provider in Provider:
        assert Provider.parse(str(provider)) is provider


def test_compute_resource_address_and_support():
    resource = _compute()
    assert resource.address() == "google_compute_instance.machine-name-1"
    assert resource.is_supported() is True


def test_unsupported_resource():
    resource = _unsupported()
    assert resource.address() == "aws_subnet.my_subnet"
    assert resource.is_supported() is False


def test_format_decimal_trims_zeros():
    assert format_decimal(Decimal("7.6007840000")) == "7.600784"


def test_format_decimal_zero():
    assert format_decimal(Decimal("0.000")) == "0"


def test_format_decimal_keeps_integers_plain():
    assert format_decimal(Decimal("1024")) == "1024"


def test_report_to_dict():
    stamp = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    report = EstimationReport(
        info=EstimationInfo(
            unit_time="h",
            unit_watt_time="Wh",
            unit_carbon_emissions_time="gCO2eq/h",
            date_time=stamp,
            info_by_provider={Provider.GCP: InfoByProvider(0.5, 0.25)},
        ),
        resources=[
            EstimationResource(
                resource=_compute(),
                power=Decimal("7.6007840000"),
                carbon_emissions=Decimal("0.448446256"),
                average_cpu_usage=Decimal("0.5"),
                total_count=Decimal(1),
            )
        ],
        unsupported_resources=[_unsupported()],
        total=EstimationTotal(
            power=Decimal("7.600784"),
            carbon_emissions=Decimal("0.448446256"),
            resources_count=Decimal(1),
        ),
    )
    data = report.to_dict()
    assert data["Info"]["UnitCarbonEmissionsTime"] == "gCO2eq/h"
    assert data["Info"]["DateTime"] == stamp.isoformat()
    assert data["Info"]["InfoByProvider"]["GCP"]["AverageGPUUsage"] == 0.25
    resource = data["Resources"][0]
    assert resource["PowerPerInstance"] == "7.600784"
    assert resource["CarbonEmissionsPerInstance"] == "0.448446256"
    assert resource["Resource"]["Identification"]["Provider"] == "GCP"
    assert resource["Resource"]["Specs"]["MemoryMb"] == 4096
    assert data["UnsupportedResources"][0]["Identification"]["Name"] == "my_subnet"
    assert data["Total"]["ResourcesCount"] == "1"
    assert json.loads(json.dumps(data)) == data