"""orbctl: versioned CircleCI orb catalog and config migration tool."""

__version__ = "0.1.0"
