"""ScooterBooter social graph and feed aggregation service."""

__version__ = "0.1.0"
