"""
Report location as a tagged variant.

A report location is coordinates only, an address only, or both. When both
are present the coordinates place the report on a map and the address is
what people read.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from leakwatch.services.exceptions import ValidationError


class LocationKind(str, Enum):
    """Which parts of a location are present."""

    COORDINATES_ONLY = "COORDINATES_ONLY"
    ADDRESS_ONLY = "ADDRESS_ONLY"
    BOTH = "BOTH"


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 point."""

    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"


@dataclass(frozen=True)
class CoordinatesOnly:
    coordinates: Coordinates
    kind = LocationKind.COORDINATES_ONLY

    @property
    def address(self) -> None:
        return None

    @property
    def map_point(self) -> Coordinates:
        return self.coordinates

    @property
    def display_text(self) -> str:
        return str(self.coordinates)


@dataclass(frozen=True)
class AddressOnly:
    address: str
    kind = LocationKind.ADDRESS_ONLY

    @property
    def coordinates(self) -> None:
        return None

    @property
    def map_point(self) -> None:
        return None

    @property
    def display_text(self) -> str:
        return self.address


@dataclass(frozen=True)
class Both:
    coordinates: Coordinates
    address: str
    kind = LocationKind.BOTH

    @property
    def map_point(self) -> Coordinates:
        return self.coordinates

    @property
    def display_text(self) -> str:
        return self.address


Location = Union[CoordinatesOnly, AddressOnly, Both]


def _parse_coordinates(
    latitude: float | None,
    longitude: float | None,
) -> Coordinates | None:
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        missing = "latitude" if latitude is None else "longitude"
        raise ValidationError(
            "Latitude and longitude must be provided together",
            fields=[missing],
        )

    bad: list[str] = []
    if not -90.0 <= float(latitude) <= 90.0:
        bad.append("latitude")
    if not -180.0 <= float(longitude) <= 180.0:
        bad.append("longitude")
    if bad:
        raise ValidationError("Coordinates out of range", fields=bad)

    return Coordinates(latitude=float(latitude), longitude=float(longitude))


def build_location(
    latitude: float | None = None,
    longitude: float | None = None,
    address: str | None = None,
) -> Location:
    """
    Build a location from its raw parts.

    A blank address counts as absent.

    Raises:
        ValidationError: If neither coordinates nor an address is given,
            only half of the coordinate pair is given, or a coordinate is
            out of range.
    """
    coordinates = _parse_coordinates(latitude, longitude)
    address = address.strip() if address else None

    if coordinates is not None and address:
        return Both(coordinates=coordinates, address=address)
    if coordinates is not None:
        return CoordinatesOnly(coordinates=coordinates)
    if address:
        return AddressOnly(address=address)

    raise ValidationError(
        "A location needs coordinates or an address",
        fields=["location"],
    )


def location_of(report) -> Location:
    """Read the location variant stored on a report."""
    return build_location(report.latitude, report.longitude, report.location_address)


def location_columns(location: Location) -> dict[str, float | str | None]:
    """Column values for storing a location on a report."""
    coordinates = location.coordinates
    return {
        "latitude": coordinates.latitude if coordinates else None,
        "longitude": coordinates.longitude if coordinates else None,
        "location_address": location.address,
    }
