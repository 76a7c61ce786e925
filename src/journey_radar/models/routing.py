"""Pydantic models for routes returned by the HERE transit routing API.

HERE responds in camelCase; fields accept either spelling and unknown keys are
kept so that annotated routes carry everything the provider sent.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Coordinate(BaseModel):
    """A WGS84 point in degrees."""

    lat: float
    lng: float


class _HereModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Place(_HereModel):
    id: str | None = None
    name: str | None = None
    location: Coordinate | None = None


class RoutePoint(_HereModel):
    place: Place | None = None
    time: str | None = None


class IntermediateStop(_HereModel):
    id: str | None = None
    place: Place
    departure: RoutePoint | None = None
    arrival: RoutePoint | None = None


class Transport(_HereModel):
    """Transport descriptor of a section (line, mode, headsign...)."""

    mode: str | None = None
    name: str | None = None
    category: str | None = None
    color: str | None = None
    text_color: str | None = None
    headsign: str | None = None
    short_name: str | None = None
    long_name: str | None = None

    @property
    def line_name(self) -> str | None:
        """Rider-facing line name (short name, falling back to name)."""
        return self.short_name or self.name


class Section(_HereModel):
    """One leg of a planned route."""

    id: str
    type: str | None = None
    departure: RoutePoint | None = None
    arrival: RoutePoint | None = None
    polyline: str | None = None
    geometry: list[Coordinate] = Field(default_factory=list)
    transport: Transport | None = None
    travel_summary: dict[str, Any] | None = None
    actions: list[dict[str, Any]] | None = None
    intermediate_stops: list[IntermediateStop] | None = None


class PlannedRoute(_HereModel):
    """A route alternative: ordered list of sections."""

    id: str
    sections: list[Section] = Field(default_factory=list)
