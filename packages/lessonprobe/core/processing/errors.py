"""Processing errors."""

from __future__ import annotations


class PackageNotFoundError(KeyError):
    """No processed package has the requested id."""

    def __init__(self, package_id: str) -> None:
        super().__init__(package_id)
        self.package_id = package_id

    def __str__(self) -> str:
        return f"Package with ID {self.package_id} not found"
