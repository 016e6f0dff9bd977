"""Building blocks for radiosity lighting of BSP maps."""

__version__ = "0.1.0"

__all__ = [
    "edges",
    "lightinfo",
    "lights",
    "rle",
    "settings",
    "trace",
    "triangulation",
    "world",
]