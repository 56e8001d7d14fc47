"""Declarative mappings from plan resources to compute resource properties."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from carbonestimate.disk_type import DiskType
from carbonestimate.estimation import Provider

logger = logging.getLogger(__name__)

_DEFAULT_MAPPINGS_DIR = Path(__file__).with_name("mappings")


@dataclass
class Regex:
    """A pattern applied to a found value, keeping one of its groups."""

    pattern: str
    group: int = 0
    type: str = ""


@dataclass
class Reference:
    """Where a found value is looked up to obtain the final value."""

    general: str = ""
    json_file: str = ""
    property: str = ""
    paths: list[str] | None = None
    return_path: bool = False


@dataclass
class PropertyDefinition:
    """How one property of a resource is read."""

    paths: list[str] = field(default_factory=list)
    unit: str | None = None
    default: Any = None
    value_type: str | None = None
    reference: Reference | None = None
    regex: Regex | None = None
    item: list[ResourceMapping] | None = None
    validator: str | None = None


@dataclass
class ResourceMapping:
    """How resources of one type are found and their properties read."""

    paths: list[str] = field(default_factory=list)
    type: str = ""
    variables: ResourceMapping | None = None
    properties: dict[str, list[PropertyDefinition]] = field(default_factory=dict)


@dataclass
class DiskTypes:
    """Disk type of each provider disk name, with a fallback."""

    default: DiskType | None = None
    types: dict[str, DiskType | None] | None = None


@dataclass
class GeneralConfig:
    """Provider-wide settings of a mapping."""

    json_data: dict[str, Any] | None = None
    disk_types: DiskTypes | None = None
    ignored_resources: list[str] | None = None


def _as_dict(data: Any, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what} is not a mapping: {data!r}")
    return data


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _parse_paths(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(path) for path in value]
    raise ValueError(f"paths is neither a string nor a list: {value!r}")


def _parse_disk_type(value: Any) -> DiskType | None:
    if value is None:
        return None
    if isinstance(value, DiskType):
        return value
    return DiskType.parse(str(value))


def _parse_regex(data: Any) -> Regex:
    data = _as_dict(data, "regex")
    return Regex(
        pattern=str(data.get("pattern") or ""),
        group=int(data.get("group") or 0),
        type=str(data.get("type") or ""),
    )


def _parse_reference(data: Any) -> Reference:
    data = _as_dict(data, "reference")
    paths = data.get("paths")
    return Reference(
        general=str(data.get("general") or ""),
        json_file=str(data.get("json_file") or ""),
        property=str(data.get("property") or ""),
        paths=_parse_paths(paths) if paths is not None else None,
        return_path=bool(data.get("return_path", False)),
    )


def _parse_property(data: Any) -> PropertyDefinition:
    data = _as_dict(data, "property definition")
    reference = data.get("reference")
    regex = data.get("regex")
    item = data.get("item")
    if item is not None and not isinstance(item, list):
        raise ValueError(f"item is not a list: {item!r}")
    return PropertyDefinition(
        paths=_parse_paths(data.get("paths")),
        unit=_optional_str(data.get("unit")),
        default=data.get("default"),
        value_type=_optional_str(data.get("value_type")),
        reference=_parse_reference(reference) if reference is not None else None,
        regex=_parse_regex(regex) if regex is not None else None,
        item=[_parse_resource_mapping(entry) for entry in item] if item is not None else None,
        validator=_optional_str(data.get("validator")),
    )


def _parse_definitions(name: str, value: Any) -> list[PropertyDefinition]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"property {name} is not a list of definitions")
    return [_parse_property(entry) for entry in value]


def _parse_resource_mapping(data: Any) -> ResourceMapping:
    data = _as_dict(data, "resource mapping")
    variables = data.get("variables")
    properties = _as_dict(data.get("properties"), "properties")
    return ResourceMapping(
        paths=_parse_paths(data.get("paths")),
        type=str(data.get("type") or ""),
        variables=_parse_resource_mapping(variables) if variables is not None else None,
        properties={
            str(name): _parse_definitions(str(name), value)
            for name, value in properties.items()
        },
    )


def _parse_general(data: Any) -> GeneralConfig:
    data = _as_dict(data, "general config")
    json_data = data.get("json_data")
    disk_types = data.get("disk_types")
    ignored = data.get("ignored_resources")
    parsed_disk_types = None
    if disk_types is not None:
        disk_types = _as_dict(disk_types, "disk_types")
        types = disk_types.get("types")
        parsed_disk_types = DiskTypes(
            default=_parse_disk_type(disk_types.get("default")),
            types=(
                {str(name): _parse_disk_type(value) for name, value in _as_dict(types, "types").items()}
                if types is not None
                else None
            ),
        )
    return GeneralConfig(
        json_data=dict(_as_dict(json_data, "json_data")) if json_data is not None else None,
        disk_types=parsed_disk_types,
        ignored_resources=[str(name) for name in ignored] if ignored is not None else None,
    )


@dataclass
class Mappings:
    """All mappings: provider settings and compute resource types."""

    general: dict[Provider, GeneralConfig] = field(default_factory=dict)
    compute_resource: dict[str, ResourceMapping] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Mappings:
        """Build mappings from parsed YAML data."""
        data = _as_dict(data, "mappings")
        return cls(
            general={
                Provider.parse(str(name)): _parse_general(config)
                for name, config in _as_dict(data.get("general"), "general").items()
            },
            compute_resource={
                str(name): _parse_resource_mapping(mapping)
                for name, mapping in _as_dict(
                    data.get("compute_resource"), "compute_resource"
                ).items()
            },
        )

    def merge(self, other: Mappings) -> Mappings:
        """Add the entries of another set of mappings, replacing same keys."""
        self.general.update(other.general)
        self.compute_resource.update(other.compute_resource)
        return self


def _load_provider_folder(folder: Path) -> Mappings:
    merged = Mappings()
    for path in sorted(folder.iterdir()):
        if path.is_dir():
            continue
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
        merged.merge(Mappings.from_dict(document))
    return merged


def load_mappings(directory: str | Path | None = None) -> Mappings:
    """Load every provider folder of a mappings directory."""
    root = Path(directory) if directory is not None else _DEFAULT_MAPPINGS_DIR
    mappings = Mappings()
    for folder in sorted(root.iterdir()):
        if folder.is_dir():
            logger.debug("loading mappings from %s", folder)
            mappings.merge(_load_provider_folder(folder))
    return mappings