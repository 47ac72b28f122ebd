"""Network usage monitor: counter sampling, hourly rollups and usage queries."""

__version__ = "0.4.0"
