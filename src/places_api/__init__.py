"""Places API — cached place lookups backed by an external places provider."""

__version__ = "0.1.0"
