import json

import pytest

from carbonestimate.data import Settings
from carbonestimate.disk_type import DiskType
from carbonestimate.mapping import (
    DiskTypes,
    GeneralConfig,
    PropertyDefinition,
    Reference,
    Regex,
)
from carbonestimate.resolver import (
    ResolveError,
    apply_regex,
    resolve_disk_type,
    resolve_json_file_reference,
    resolve_regex,
)

MACHINE_PATTERN = r"^(n1)-(\w+)-(\d+)$"


def test_resolve_regex_returns_group():
    assert resolve_regex("n1-standard-2", Regex(MACHINE_PATTERN, 2)) == "standard"
    assert resolve_regex("n1-standard-2", Regex(MACHINE_PATTERN, 1)) == "n1"
    assert resolve_regex("n1-standard-2", Regex(MACHINE_PATTERN, 0)) == "n1-standard-2"


def test_resolve_regex_without_match_fails():
    with pytest.raises(ResolveError):
        resolve_regex("e2-medium", Regex(MACHINE_PATTERN, 1))


def test_resolve_regex_without_groups_fails():
    with pytest.raises(ResolveError):
        resolve_regex("n1-standard-2", Regex("n1", 0))


def test_resolve_regex_with_missing_group_fails():
    with pytest.raises(ResolveError):
        resolve_regex("n1-standard-2", Regex(MACHINE_PATTERN, 7))


def test_apply_regex_without_regex_keeps_value():
    assert apply_regex("n1-standard-2", None) == "n1-standard-2"
    assert apply_regex("n1-standard-2", PropertyDefinition()) == "n1-standard-2"


def test_apply_regex_uses_definition():
    definition = PropertyDefinition(regex=Regex(MACHINE_PATTERN, 3))
    assert apply_regex("n1-standard-2", definition) == "2"


def _general(default=DiskType.HDD):
    return GeneralConfig(
        disk_types=DiskTypes(
            default=default,
            types={"pd-ssd": DiskType.SSD, "pd-standard": DiskType.HDD},
        )
    )


def test_resolve_disk_type_known_names():
    assert resolve_disk_type("pd-ssd", _general()) is DiskType.SSD
    assert resolve_disk_type("pd-standard", _general()) is DiskType.HDD


def test_resolve_disk_type_falls_back_to_default():
    assert resolve_disk_type("pd-balanced", _general(DiskType.HDD)) is DiskType.HDD


def test_resolve_disk_type_without_default_is_ssd():
    assert resolve_disk_type("pd-balanced", _general(None)) is DiskType.SSD
    assert resolve_disk_type("pd-balanced", None) is DiskType.SSD


@pytest.fixture
def machine_data(tmp_path):
    table = {"n1-standard-2": {"vcpus": 2, "memoryMb": 7680, "gpus": ["nvidia-tesla-k80"]}}
    (tmp_path / "machines.json").write_text(json.dumps(table))
    general = GeneralConfig(json_data={"machine_types": "machines.json"})
    return general, Settings(data_path=tmp_path)


def test_json_reference_reads_property(machine_data):
    general, settings = machine_data
    reference = Reference(json_file="machine_types", property=".memoryMb")
    assert resolve_json_file_reference("n1-standard-2", reference, general, settings) == 7680


def test_json_reference_reads_indexed_property(machine_data):
    general, settings = machine_data
    reference = Reference(json_file="machine_types", property=".gpus[0]")
    assert (
        resolve_json_file_reference("n1-standard-2", reference, general, settings)
        == "nvidia-tesla-k80"
    )


def test_json_reference_unknown_key_is_none(machine_data):
    general, settings = machine_data
    reference = Reference(json_file="machine_types", property=".vcpus")
    assert resolve_json_file_reference("custom-2-4096", reference, general, settings) is None


def test_json_reference_missing_property_fails(machine_data):
    general, settings = machine_data
    reference = Reference(json_file="machine_types", property=".cores")
    with pytest.raises(ResolveError):
        resolve_json_file_reference("n1-standard-2", reference, general, settings)


def test_json_reference_unknown_file_fails(machine_data):
    general, settings = machine_data
    reference = Reference(json_file="unknown", property=".vcpus")
    with pytest.raises(ResolveError):
        resolve_json_file_reference("n1-standard-2", reference, general, settings)