"""Kinds of storage disks."""

from __future__ import annotations

import enum


class InvalidDiskTypeError(ValueError):
    """Raised when a name does not denote a disk type."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not a valid DiskType")
        self.name = name


class UnsupportedDiskTypeError(Exception):
    """Raised when a disk type is not supported."""

    def __init__(self, disk_type: str) -> None:
        super().__init__(f"Unsupported Disk Type: {disk_type}")
        self.disk_type = disk_type


class DiskType(enum.Enum):
    """Solid-state or spinning disk."""

    SSD = 0
    HDD = 1

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, name: str) -> DiskType:
        """Parse a disk type name, ignoring case."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise InvalidDiskTypeError(name) from None