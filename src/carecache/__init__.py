"""carecache: tag- and version-aware response cache over Redis."""

__version__ = "0.1.0"
