"""Gallery asset storage and catalog consistency server."""

__version__ = "0.1.0"
