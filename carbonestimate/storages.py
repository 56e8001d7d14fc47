"""Assembly of compute resource specs from properties read from a plan."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from carbonestimate.disk_type import DiskType, InvalidDiskTypeError
from carbonestimate.estimation import ComputeResourceSpecs, Provider
from carbonestimate.mapping import GeneralConfig

logger = logging.getLogger(__name__)

_MEMORY_FACTORS = {
    "pb": (1024 * 1024 * 1024, 1),
    "tb": (1024 * 1024, 1),
    "gb": (1024, 1),
    "mb": (1, 1),
    "kb": (1, 1024),
    "b": (1, 1024 * 1024),
}

_STORAGE_FACTORS = {
    "mb": Decimal(1) / Decimal(1024),
    "tb": Decimal(1024),
    "kb": Decimal(1) / Decimal(1024 * 1024),
    "b": Decimal(1) / Decimal(1024 * 1024 * 1024),
}


@dataclass
class ValueWithUnit:
    """A property value with the unit its mapping declares."""

    value: Any
    unit: str | None = None


@dataclass(frozen=True)
class Storage:
    """A disk attached to a resource."""

    size_gb: Decimal
    is_ssd: bool
    override_priority: int = 0
    key: str = ""


class StorageError(ValueError):
    """Raised when a storage description is incomplete or invalid."""


def _parse_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return int(float(value))
    raise ValueError(f"not an integer: {value!r}")


def _disk_type(value: Any) -> DiskType:
    if isinstance(value, DiskType):
        return value
    if not isinstance(value, str):
        raise StorageError(f"Cannot find storage type '{value!r}'")
    try:
        return DiskType.parse(value)
    except InvalidDiskTypeError as error:
        raise StorageError(f"Cannot parse disk type '{value}': {error}") from error


def storage_from_properties(properties: dict[str, Any]) -> Storage | None:
    """Build a storage from its properties; None when it has no size."""
    size = properties.get("size")
    if not isinstance(size, ValueWithUnit):
        logger.warning("Cannot find storage size in storage properties '%s'", properties)
        return None
    if size.value is None:
        raise StorageError(f"Storage size value is nil '{size}'")
    try:
        size_gb = Decimal(str(size.value))
    except InvalidOperation:
        raise StorageError(f"Invalid storage size '{size.value}'") from None
    if size.unit is not None:
        factor = _STORAGE_FACTORS.get(size.unit.lower())
        if factor is not None:
            size_gb *= factor

    is_ssd = False
    storage_type = properties.get("type")
    if storage_type is not None:
        is_ssd = _disk_type(storage_type.value) is DiskType.SSD

    override_priority = 0
    priority = properties.get("override_priority")
    if priority is not None:
        if isinstance(priority.value, bool) or not isinstance(priority.value, (int, float)):
            raise StorageError(f"Invalid override priority '{priority.value!r}'")
        override_priority = int(priority.value)

    key = ""
    key_value = properties.get("key")
    if key_value is not None:
        if not isinstance(key_value.value, str):
            raise StorageError(f"Invalid storage key '{key_value.value!r}'")
        key = key_value.value

    return Storage(size_gb, is_ssd, override_priority, key)


def sort_storages(storages: Iterable[Storage]) -> list[Storage]:
    """Order storages by override priority, lowest first."""
    return sorted(storages, key=lambda storage: storage.override_priority)


def process_storages(items: Iterable[Any], specs: ComputeResourceSpecs) -> None:
    """Add the sizes of the storages to the specs, honouring overrides by key."""
    by_key: dict[str, list[Storage]] = {}
    for index, item in enumerate(items):
        if item is None:
            continue
        try:
            storage = storage_from_properties(item)
        except StorageError as error:
            raise StorageError(f"Cannot get storage[{index}]: {error}") from error
        if storage is None:
            continue
        by_key.setdefault(storage.key, []).append(storage)

    for key, storages in by_key.items():
        logger.debug("Storage key: %s: %s", key, storages)
        kept = [sort_storages(storages)[0]] if key else storages
        for storage in kept:
            if storage.is_ssd:
                specs.ssd_storage += storage.size_gb
            else:
                specs.hdd_storage += storage.size_gb


def memory_to_mb(value: Any, unit: str | None) -> int:
    """Convert an amount of memory in the given unit to whole megabytes."""
    amount = _parse_int(value)
    factors = _MEMORY_FACTORS.get((unit or "").lower())
    if factors is None:
        raise ValueError(f"Unknown unit for memory: {unit}")
    multiplier, divisor = factors
    return amount * multiplier // divisor


def gpu_types(gpu: dict[str, Any]) -> list[str]:
    """Return one GPU type name per attached GPU."""
    gpu_type = gpu.get("type")
    if gpu_type is None:
        raise ValueError("Cannot find GPU type")
    count = gpu.get("count")
    if count is None or count.value is None:
        return []
    return [str(gpu_type.value)] * _parse_int(count.value)


def check_ignored_resource(resource_type: str, general: GeneralConfig | None) -> bool:
    """Whether a resource type is listed, by name or pattern, as ignored."""
    if general is None or general.ignored_resources is None:
        return False
    return any(
        ignored == resource_type or re.search(ignored, resource_type)
        for ignored in general.ignored_resources
    )


def parse_provider(tf_provider_name: str) -> Provider:
    """Map a plan provider name to a provider."""
    if tf_provider_name.endswith("google"):
        return Provider.GCP
    if tf_provider_name.endswith("aws"):
        return Provider.AWS
    return Provider.parse(tf_provider_name)