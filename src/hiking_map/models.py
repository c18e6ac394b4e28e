"""Pydantic domain models for the track library, parsed tracks and map layers."""

import re
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from hiking_map.config import DEFAULT_FOLDER_COLOR

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def normalize_hex_color(value) -> str:
    """Return `value` as an upper-case #RRGGBB string or raise ValueError."""
    if not isinstance(value, str):
        raise ValueError("Color must be a string")
    value = value.strip()
    if not HEX_COLOR_RE.match(value):
        raise ValueError(f"Invalid hex color '{value}'. Must be #RRGGBB format.")
    return f"#{value[1:].upper()}"


class FileNode(BaseModel):
    """A GPX file in the library. Terminal node."""
    type: Literal["file"] = "file"
    name: str
    path: str

    @property
    def key(self) -> str:
        return self.path

    @property
    def display_name(self) -> str:
        return self.name.replace(".gpx", "")


class FolderNode(BaseModel):
    """A folder in the library with its configured track color."""
    model_config = ConfigDict(validate_assignment=True)

    type: Literal["folder"] = "folder"
    name: str
    path: Optional[str] = None
    color: str = DEFAULT_FOLDER_COLOR
    children: list["TreeNode"] = Field(default_factory=list)

    @field_validator("color", mode="before")
    @classmethod
    def validate_color(cls, v) -> str:
        if v is None:
            return DEFAULT_FOLDER_COLOR
        return normalize_hex_color(v)

    @property
    def key(self) -> str:
        # Folders without a recorded path fall back to their name, which is
        # only unique for root-level folders.
        return self.path or self.name


TreeNode = Annotated[Union[FolderNode, FileNode], Field(discriminator="type")]

FolderNode.model_rebuild()

_tree_adapter = TypeAdapter(list[TreeNode])


def parse_tree(data) -> list[Union[FolderNode, FileNode]]:
    """Validate a raw (JSON-like) tree snapshot into typed nodes."""
    return _tree_adapter.validate_python(data)


def dump_tree(nodes) -> list[dict]:
    return _tree_adapter.dump_python(nodes)


class TrackSegment(BaseModel):
    """A contiguous run of track points with derived statistics."""
    points: list[tuple[float, float]] = Field(default_factory=list)
    distance_km: float = Field(default=0.0, ge=0)
    min_elevation_m: Optional[float] = None
    max_elevation_m: Optional[float] = None

    @property
    def has_elevation(self) -> bool:
        return self.min_elevation_m is not None and self.max_elevation_m is not None


class LatLngBounds(BaseModel):
    south: float
    west: float
    north: float
    east: float

    def as_pairs(self) -> list[list[float]]:
        """Return [[south, west], [north, east]] as Leaflet expects."""
        return [[self.south, self.west], [self.north, self.east]]


class Polyline(BaseModel):
    points: list[tuple[float, float]]
    color: str
    weight: float = Field(gt=0)
    opacity: float = Field(ge=0, le=1)
    popup: Optional[str] = None

    @field_validator("color", mode="before")
    @classmethod
    def validate_color(cls, v) -> str:
        return normalize_hex_color(v)


class TrackLayer(BaseModel):
    """Rendered form of one track: a border/track polyline pair per segment."""
    path: str
    name: str
    color: str
    polylines: list[Polyline] = Field(default_factory=list)
