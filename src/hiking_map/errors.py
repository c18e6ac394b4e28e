"""Error taxonomy shared by the core, the library and the tool layer."""

import re


class HikingMapError(Exception):
    """Base class for all hiking-map errors."""


class ValidationError(HikingMapError, ValueError):
    """Bad user input: folder name, hex color, path, unknown tree key, settings."""


class StorageError(HikingMapError, OSError):
    """A storage operation failed (missing file, permission, disk)."""


class TrackLoadError(HikingMapError):
    """A track could not be read or produced no segments."""

    def __init__(self, name: str, reason: str = "No track data found in GPX file"):
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to load track: {name}")


_PATH_PATTERN = re.compile(r"/[^\s]*/[^\s]*")


def user_message(error: BaseException | str) -> str:
    """Return an error message safe to show to the user (absolute paths masked)."""
    return _PATH_PATTERN.sub("[path]", str(error))
