"""City geocoding and localized place resolution."""

__version__ = "0.1.0"
