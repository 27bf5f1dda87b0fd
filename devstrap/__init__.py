"""devstrap: declarative development machine bootstrapper."""

__version__ = "0.1.0"
