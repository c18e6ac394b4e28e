"""Track layer cache and map visibility.

LayerManager owns every built TrackLayer, keyed by file path, and the set of
paths currently attached to the map. Hiding a track detaches its layer but
keeps it cached so the next show is cheap; only an explicit eviction (color
change, delete) forces a rebuild from the GPX source.
"""

import html
import logging
from typing import Callable, Optional

from hiking_map.config import FIT_PADDING
from hiking_map.core.gpx import parse_gpx
from hiking_map.errors import TrackLoadError
from hiking_map.interfaces import FileReader, MapWidget
from hiking_map.models import FileNode, Polyline, TrackLayer, TrackSegment

logger = logging.getLogger(__name__)

BORDER_STYLE = {"color": "#FFFFFF", "weight": 8, "opacity": 1.0}
TRACK_WEIGHT = 3
TRACK_OPACITY = 0.8


def track_popup(file: FileNode, segment: TrackSegment) -> str:
    """HTML popup summary for one segment of a track."""
    distance = f"{segment.distance_km:.2f}"
    if segment.has_elevation:
        elevation = f"{segment.min_elevation_m:.0f}m - {segment.max_elevation_m:.0f}m"
    else:
        elevation = "N/A"
    return (
        '<div style="font-family: inherit;">'
        f'<h4 style="margin: 0 0 8px 0; color: #24292e;">{html.escape(file.display_name)}</h4>'
        '<div style="font-size: 12px; color: #586069;">'
        f"<div>Distance: {distance} km</div>"
        f"<div>Elevation: {elevation}</div>"
        "</div></div>"
    )


def build_layer(file: FileNode, segments: list[TrackSegment], color: str) -> TrackLayer:
    """Build the border + colored polyline pair for each segment."""
    polylines = []
    for segment in segments:
        polylines.append(Polyline(points=segment.points, **BORDER_STYLE))
        polylines.append(Polyline(
            points=segment.points,
            color=color,
            weight=TRACK_WEIGHT,
            opacity=TRACK_OPACITY,
            popup=track_popup(file, segment),
        ))
    return TrackLayer(path=file.path, name=file.name, color=color, polylines=polylines)


class LayerStore:
    """Keyed store of built layers, at most one per file path."""

    def __init__(self):
        self._layers: dict[str, TrackLayer] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._layers

    def __len__(self) -> int:
        return len(self._layers)

    def get(self, path: str) -> Optional[TrackLayer]:
        return self._layers.get(path)

    def upsert(self, layer: TrackLayer) -> Optional[TrackLayer]:
        """Store `layer`, returning the layer it replaced if one was present."""
        previous = self._layers.get(layer.path)
        if previous is not None:
            logger.debug("Replacing cached layer for %s", layer.path)
        self._layers[layer.path] = layer
        return previous

    def evict(self, path: str) -> Optional[TrackLayer]:
        """Remove and return the layer for `path`, or None if absent."""
        return self._layers.pop(path, None)

    def paths(self) -> list[str]:
        return list(self._layers)


class LayerManager:
    def __init__(
        self,
        map_widget: MapWidget,
        reader: FileReader,
        resolve_color: Callable[[str], str],
        report: Optional[Callable[[str], None]] = None,
    ):
        self.map = map_widget
        self.reader = reader
        self.resolve_color = resolve_color
        self.report = report or (lambda message: None)
        self.store = LayerStore()
        self.visible: set[str] = set()

    def is_visible(self, path: str) -> bool:
        return path in self.visible

    async def _load_layer(self, file: FileNode) -> TrackLayer:
        try:
            content = await self.reader.read_text(file.path)
        except (OSError, ValueError) as e:
            raise TrackLoadError(file.name, str(e)) from e
        segments = parse_gpx(content)
        if not segments:
            raise TrackLoadError(file.name)
        return build_layer(file, segments, self.resolve_color(file.path))

    async def show_track(self, file: FileNode) -> bool:
        """Attach the track's layer to the map, building it on first use.

        Returns False (after reporting) when the track cannot be loaded.
        """
        cached = self.store.get(file.path)
        if cached is not None:
            self.map.add_layer(cached)
            self.visible.add(file.path)
            return True

        try:
            layer = await self._load_layer(file)
        except TrackLoadError as e:
            logger.warning("%s (%s)", e, e.reason)
            self.report(str(e))
            return False

        self.store.upsert(layer)
        self.map.add_layer(layer)
        self.visible.add(file.path)
        return True

    def hide_track(self, path: str) -> None:
        """Detach the layer for `path` if one exists. The layer stays cached."""
        layer = self.store.get(path)
        if layer is not None:
            self.map.remove_layer(layer)
        self.visible.discard(path)

    def hide_all(self) -> int:
        """Hide every visible track, including ones no longer in the tree."""
        paths = list(self.visible)
        for path in paths:
            self.hide_track(path)
        self.visible.clear()
        return len(paths)

    def evict(self, path: str) -> None:
        """Detach and discard the cached layer so the next show rebuilds it."""
        self.hide_track(path)
        self.store.evict(path)

    async def force_rebuild(self, file: FileNode) -> bool:
        self.evict(file.path)
        return await self.show_track(file)

    def fit_all_tracks(self) -> bool:
        """Fit the map to every visible track. Returns False when nothing to fit."""
        if not self.visible:
            self.report("No tracks visible on map")
            return False

        polylines = []
        for path in sorted(self.visible):
            layer = self.store.get(path)
            if layer is not None:
                polylines.extend(layer.polylines)

        bounds = self.map.get_bounds(polylines) if polylines else None
        if bounds is None:
            self.report("No tracks available to fit")
            return False

        self.map.fit_bounds(bounds, padding=FIT_PADDING)
        return True
