"""User settings: map view, tile provider, display options."""

import json
import logging
import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

OSM_TILES = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
OSM_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)
MAPY_TILES = "https://api.mapy.cz/v1/maptiles/{style}/256/{{z}}/{{x}}/{{y}}?apikey={api_key}"
MAPY_ATTRIBUTION = '&copy; <a href="https://www.mapy.cz/">Mapy.cz</a>'
MAPY_STYLES = {
    "basic": "basic",
    "outdoor": "outdoor",
    "winter": "winter",
    "aerial": "ophoto",
}
MAX_ZOOM = 18

_API_KEY_RE = re.compile(r"^[a-zA-Z0-9\-_]+$")


class MapView(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    center: tuple[float, float] = (49.2827, -123.1207)  # Vancouver, BC
    zoom: int = Field(default=10, ge=0, le=MAX_ZOOM)

    @field_validator("center")
    @classmethod
    def center_in_range(cls, v: tuple[float, float]) -> tuple[float, float]:
        lat, lon = v
        if not -90 <= lat <= 90 or not -180 <= lon <= 180:
            raise ValueError(f"Map center {v} is not a valid lat/lon")
        return v


class MapyConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    api_key: str = ""
    style: Literal["basic", "outdoor", "winter", "aerial"] = "basic"

    @field_validator("api_key", mode="before")
    @classmethod
    def validate_api_key(cls, v) -> str:
        v = (v or "").strip()
        if v and (len(v) < 10 or len(v) > 200 or not _API_KEY_RE.match(v)):
            raise ValueError(
                "Invalid API key format. Keys should be 10-200 characters with only "
                "letters, numbers, hyphens, and underscores."
            )
        return v


class TileLayer(BaseModel):
    url: str
    attribution: str
    max_zoom: int = MAX_ZOOM


class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    map: MapView = Field(default_factory=MapView)
    map_provider: Literal["osm", "mapy"] = "osm"
    mapy: MapyConfig = Field(default_factory=MapyConfig)
    desaturate_map: bool = False

    @model_validator(mode="after")
    def mapy_requires_key(self) -> "Settings":
        if self.map_provider == "mapy" and not self.mapy.api_key:
            raise ValueError("Please enter a Mapy.cz API key or select OpenStreetMap")
        return self

    def tile_layer(self) -> TileLayer:
        if self.map_provider == "mapy" and self.mapy.api_key:
            return TileLayer(
                url=MAPY_TILES.format(style=MAPY_STYLES[self.mapy.style], api_key=self.mapy.api_key),
                attribution=MAPY_ATTRIBUTION,
            )
        return TileLayer(url=OSM_TILES, attribution=OSM_ATTRIBUTION)

    def public_dict(self) -> dict:
        """Settings as a dict with the API key masked."""
        data = self.model_dump()
        if data["mapy"]["api_key"]:
            data["mapy"]["api_key"] = data["mapy"]["api_key"][:4] + "..."
        return data


def load_settings(path: Path) -> Settings:
    """Load settings from JSON, falling back to defaults on any problem."""
    if not path.exists():
        return Settings()
    try:
        with open(path) as f:
            data = json.load(f)
        return Settings.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("Error loading settings from %s, using defaults: %s", path, e)
        return Settings()


def save_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(settings.model_dump(mode="json"), f, indent=2)
    logger.debug("Settings saved to %s", path)
