"""hiking-map: browse, color and toggle folders of GPX tracks on a map."""

__version__ = "0.1.0"
