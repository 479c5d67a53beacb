"""Financial suitability and portfolio allocation engine."""

__version__ = "0.1.0"
