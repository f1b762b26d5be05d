"""Morning weather label service."""

__version__ = "0.1.0"
