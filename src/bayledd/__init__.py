"""Drive-bay LED daemon."""

__version__ = "1.0.0"
