"""Folium-backed map widget.

Keeps the set of attached track layers and renders them, on demand, into a
Leaflet page via folium.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

import folium

from hiking_map.core.geo import bounds_of
from hiking_map.models import LatLngBounds, Polyline, TrackLayer
from hiking_map.settings import Settings

logger = logging.getLogger(__name__)

DESATURATE_CSS = "<style>.leaflet-tile-pane { filter: grayscale(100%); }</style>"


class FoliumMap:
    def __init__(self):
        self._attached: dict[str, TrackLayer] = {}
        self._listeners: list[Callable[[], None]] = []
        self.fit_request: Optional[tuple[LatLngBounds, tuple[int, int]]] = None

    # -- MapWidget ---------------------------------------------------------

    def add_layer(self, layer: TrackLayer) -> None:
        self._attached[layer.path] = layer
        self._changed()

    def remove_layer(self, layer: TrackLayer) -> None:
        if self._attached.pop(layer.path, None) is not None:
            self._changed()

    def get_bounds(self, polylines: Sequence[Polyline]) -> Optional[LatLngBounds]:
        return bounds_of(point for polyline in polylines for point in polyline.points)

    def fit_bounds(self, bounds: LatLngBounds, padding: tuple[int, int]) -> None:
        self.fit_request = (bounds, padding)
        self._changed()

    # -- change notification -----------------------------------------------

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener()

    # -- rendering ---------------------------------------------------------

    @property
    def attached_layers(self) -> list[TrackLayer]:
        return list(self._attached.values())

    def render(self, settings: Settings, script: Optional[str] = None) -> folium.Map:
        """Build a folium map of the attached layers.

        A pending fit request is applied and consumed. `script` is extra JS
        run after the map is created; the map's JS variable is available as
        `{map}` in the template.
        """
        tiles = settings.tile_layer()
        m = folium.Map(
            location=list(settings.map.center),
            zoom_start=settings.map.zoom,
            tiles=tiles.url,
            attr=tiles.attribution,
            max_zoom=tiles.max_zoom,
            control_scale=True,
        )
        if settings.desaturate_map:
            m.get_root().header.add_child(folium.Element(DESATURATE_CSS))

        for layer in self._attached.values():
            group = folium.FeatureGroup(name=layer.name)
            for polyline in layer.polylines:
                folium.PolyLine(
                    locations=[list(p) for p in polyline.points],
                    color=polyline.color,
                    weight=polyline.weight,
                    opacity=polyline.opacity,
                    popup=folium.Popup(polyline.popup, max_width=300) if polyline.popup else None,
                ).add_to(group)
            group.add_to(m)

        if self.fit_request is not None:
            bounds, padding = self.fit_request
            m.fit_bounds(bounds.as_pairs(), padding=padding)
            self.fit_request = None

        if script:
            m.get_root().script.add_child(folium.Element(script.replace("{map}", m.get_name())))
        return m

    def save(self, path: Path, settings: Settings) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.render(settings).save(str(path))
        logger.info("Map saved to %s (%d track layer(s))", path, len(self._attached))
        return path
