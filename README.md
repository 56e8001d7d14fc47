# carbonestimate

A library that estimates the electric power and the CO2 emissions of cloud
compute resources (virtual machines, instance groups, managed databases,
disks) on Google Cloud and AWS.

For each resource, one instance's energy per hour combines:

- **CPU**: minimum and maximum watts per vCPU, weighted by the configured
  average CPU use. For a GCP resource with a `cpu_type`, the figures come
  from a per-platform table you give the `Estimator` (`cpu_watts`);
  otherwise they come from the provider's energy coefficients;
- **memory**: watt-hours per GB of RAM;
- **storage**: watt-hours per TB of SSD and of HDD;
- **GPUs**: minimum and maximum watts per GPU type, from the `gpu_watts`
  table (or `default_gpu_watts`) given to the `Estimator`, weighted by the
  configured average GPU use;
- the provider's average **PUE** and the resource's replication factor.

The energy in kWh is multiplied by the **grid carbon intensity** of the
resource's region, or by a forecast intensity you supply for one region.
Results can be expressed per hour, day, month or year (`Settings.unit_time`
`"h"`, `"d"`, `"m"`, `"y"`), in grams or kilograms of CO2 equivalent
(`Settings.unit_carbon` `"g"` or `"kg"`). Power and emissions per instance
are rounded down to 10 decimal places.

## Installation

```
pip install carbonestimate
```

## Modules

| Module | What it holds |
| --- | --- |
| `carbonestimate.estimation` | `Provider`, `UnsupportedProviderError`, `ResourceIdentification`, `ComputeResourceSpecs`, `ComputeResource`, `UnsupportedResource`, and the report types `EstimationResource`, `EstimationTotal`, `InfoByProvider`, `EstimationInfo`, `EstimationReport` |
| `carbonestimate.data` | `Settings`, `read_data_file`, `read_forecast_carbon_intensity`, `ForecastError` |
| `carbonestimate.coefficients` | `Coefficients`, `CoefficientsProviders`, `load_energy_coefficients`, `Emissions`, `parse_emissions_csv`, `RegionEmissions`, `RegionEmissionError` |
| `carbonestimate.power` | `Watts` and `Estimator`, which computes watts and emissions for one resource |
| `carbonestimate.estimate` | `estimate_resource`, `estimate_resources`, `sort_estimations` |
| `carbonestimate.output` | `generate_report_text`, `generate_report_json` |
| `carbonestimate.disk_type` | `DiskType` (`SSD`, `HDD`), `InvalidDiskTypeError`, `UnsupportedDiskTypeError` |
| `carbonestimate.mapping` | YAML resource mappings: `Mappings`, `ResourceMapping`, `PropertyDefinition`, `Reference`, `Regex`, `GeneralConfig`, `DiskTypes`, `load_mappings` |
| `carbonestimate.resolver` | `resolve_regex`, `apply_regex`, `resolve_disk_type`, `resolve_json_file_reference`, `ResolveError` |
| `carbonestimate.storages` | `ValueWithUnit`, `Storage`, `storage_from_properties`, `sort_storages`, `process_storages`, `memory_to_mb`, `gpu_types`, `check_ignored_resource`, `parse_provider`, `StorageError` |

## Example

```python
from decimal import Decimal

from carbonestimate.coefficients import CoefficientsProviders
from carbonestimate.data import Settings
from carbonestimate.estimate import estimate_resources
from carbonestimate.estimation import (
    ComputeResource,
    ComputeResourceSpecs,
    Provider,
    ResourceIdentification,
)
from carbonestimate.output import generate_report_text
from carbonestimate.power import Estimator

coefficients = CoefficientsProviders.from_json(
    '{"GCP": {"cpu_min_wh": 0.71, "cpu_max_wh": 4.26, "storage_hdd_wh_tb": 0.65,'
    ' "storage_ssd_wh_tb": 1.2, "networking_wh_gb": 0.001,'
    ' "memory_wh_gb": 0.392, "pue_average": 1.1}}'
)
estimator = Estimator(Settings(unit_time="d"), coefficients=coefficients)

vm = ComputeResource(
    ResourceIdentification(
        address="google_compute_instance.web",
        name="web",
        resource_type="google_compute_instance",
        provider=Provider.GCP,
        region="europe-west9",
        count=2,
    ),
    ComputeResourceSpecs(vcpus=2, memory_mb=4096, ssd_storage=Decimal(20)),
)

report = estimate_resources(
    {vm.address(): vm}, estimator, Decimal("59"), "europe-west9"
)
print(generate_report_text(report, is_forecast=True))
```

Here the forecast intensity applies to the resource's region, so no region
table is read. Pass `None` and an empty region to use the static regional
intensities only.

## Settings and data files

`Settings` holds the units, the average CPU and GPU use per provider
(0.5 for `gcp`, `aws` and `azure` by default) and `data_path`, a directory
in which `read_data_file` looks first. Files not found there are read from a
`datafiles` directory beside the `carbonestimate.data` module.

The reference files read by name are:

- `energy_coefficients.json`: an object keyed by provider (`AWS`, `GCP`,
  `Azure`, any case), each with `cpu_min_wh`, `cpu_max_wh`,
  `storage_hdd_wh_tb`, `storage_ssd_wh_tb`, `networking_wh_gb`,
  `memory_wh_gb` and `pue_average`. Loaded by `load_energy_coefficients`
  when no `CoefficientsProviders` is given to the `Estimator`.
- `aws_co2_region.csv` and `gcp_co2_region.csv`: tables with the columns
  `Region`, `Location` and `Grid carbon intensity (gCO2eq / kWh)`, loaded
  once per provider by `RegionEmissions`. `RegionEmissions.lookup` raises
  `RegionEmissionError` for an unsupported provider, an empty region or an
  unknown region.

### Forecast carbon intensity

A forecast file is JSON holding a region and a list of timestamped values:

```json
{
  "region": "europe-west9",
  "data": [
    {"timestamp": "2024-01-01T00:00:00Z", "value": 0.05},
    {"timestamp": "2024-01-01T01:00:00Z", "value": 0.07}
  ]
}
```

`read_forecast_carbon_intensity(filename)` returns the average value and
the region. An unreadable, malformed or empty file raises `ForecastError`.

## Reports

`estimate_resources(resource_list, estimator, forecast_carbon_intensity,
forecast_region)` returns an `EstimationReport` with one
`EstimationResource` per supported resource, the list of unsupported
resources, and totals of power, emissions and resource count, each weighted
by `count * replication_factor`.

- `UnsupportedResource` entries get zero estimates, are listed in
  `unsupported_resources` and show as "unsupported" in the text table.
- `estimate_resource` raises `UnsupportedProviderError` for a
  `ComputeResource` whose provider is neither GCP nor AWS;
  `estimate_resources` logs a warning and leaves such a resource out.

`generate_report_text(report, is_forecast)` sorts the resources by address
and renders a table of emissions per instance with four decimals and a
total line. `generate_report_json(report)` renders `report.to_dict()` as
indented JSON.

## Mappings and plan helpers

`load_mappings(directory)` reads every YAML file in each sub-folder of a
directory (by default a `mappings` directory beside the module) and merges
them into a `Mappings` of provider settings (`general`) and compute
resource mappings (`compute_resource`). The helpers in
`carbonestimate.resolver` and `carbonestimate.storages` turn values read
from a plan into disk types, storage sizes in GB (with override by key and
priority), memory in MB, lists of GPU types and providers, and tell which
resource types a provider's settings ignore.

## What this package does not do

There is no command-line tool. The package does not run infrastructure
tools or walk a plan document to find its resources: you build the
`ComputeResource` and `UnsupportedResource` objects yourself, using the
mapping and helper functions where they fit. It ships no CPU-platform or
GPU power tables; give them to the `Estimator`.

## Running the tests

```
pip install "carbonestimate[test]"
pytest
```