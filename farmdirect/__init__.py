"""FarmDirect: a direct farmer-to-buyer produce marketplace."""

__version__ = "1.0.0"
