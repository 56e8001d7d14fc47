"""Transformations applied to values read from a plan."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from carbonestimate.data import Settings, read_data_file
from carbonestimate.disk_type import DiskType
from carbonestimate.mapping import GeneralConfig, PropertyDefinition, Reference, Regex

logger = logging.getLogger(__name__)

_PATH_SEGMENT = re.compile(r'\.([A-Za-z_][\w-]*)|\.?\["([^"]*)"\]|\.?\[(\d+)\]')


class ResolveError(ValueError):
    """Raised when a value cannot be transformed as its mapping asks."""


def resolve_regex(value: str, regex: Regex) -> str:
    """Return the configured group of the first match of the pattern."""
    try:
        match = re.search(regex.pattern, value)
    except re.error as error:
        raise ResolveError(f"Invalid regex {regex.pattern}: {error}") from error
    if match is None or match.re.groups < 1:
        raise ResolveError(f"No match found for regex {regex.pattern} in value {value}")
    try:
        group = match.group(regex.group)
    except IndexError:
        raise ResolveError(
            f"Regex {regex.pattern} has no group {regex.group}"
        ) from None
    return group or ""


def apply_regex(value: str, definition: PropertyDefinition | None) -> str:
    """Apply the regex of a property definition, if it has one."""
    if definition is None or definition.regex is None:
        return value
    return resolve_regex(value, definition.regex)


def resolve_disk_type(key: str, general: GeneralConfig | None) -> DiskType | None:
    """Map a provider disk name to a disk type, falling back to the default."""
    disk_types = general.disk_types if general is not None else None
    if disk_types is None:
        return DiskType.SSD
    for name, disk_type in (disk_types.types or {}).items():
        if name == key:
            return disk_type
    if disk_types.default is not None:
        return disk_types.default
    return DiskType.SSD


def _lookup(path: str, item: Any) -> Any:
    if path in ("", "."):
        return item
    current = item
    position = 0
    while position < len(path):
        match = _PATH_SEGMENT.match(path, position)
        if match is None:
            raise ResolveError(f"Unsupported property path: {path}")
        position = match.end()
        name, quoted, index = match.groups()
        if current is None:
            return None
        if index is not None:
            if not isinstance(current, list):
                raise ResolveError(f"Cannot index {current!r} with [{index}]")
            number = int(index)
            current = current[number] if number < len(current) else None
        else:
            if not isinstance(current, dict):
                raise ResolveError(f"Cannot read {name or quoted} of {current!r}")
            current = current.get(name if name is not None else quoted)
    return current


def resolve_json_file_reference(
    key: str,
    reference: Reference,
    general: GeneralConfig | None,
    settings: Settings | None = None,
) -> Any:
    """Look up a key in a reference data file and read one of its properties."""
    json_data = (general.json_data if general is not None else None) or {}
    if reference.json_file not in json_data:
        raise ResolveError(f"Cannot find file {reference.json_file} in general.json_data")
    raw = read_data_file(str(json_data[reference.json_file]), settings)
    try:
        table = json.loads(raw)
    except ValueError as error:
        raise ResolveError(f"Cannot parse {reference.json_file}: {error}") from error
    if not isinstance(table, dict):
        raise ResolveError(f"File {reference.json_file} is not an object")
    if key not in table:
        logger.debug("Cannot find key %s in file %s", key, reference.json_file)
        return None
    if not reference.property:
        return None
    value = _lookup(reference.property, table[key])
    if value is None:
        raise ResolveError(
            f"Cannot find property {reference.property} in file {reference.json_file}"
        )
    return value