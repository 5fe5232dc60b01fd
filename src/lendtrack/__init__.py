"""lendtrack: track which user holds which item, how many units, and until when."""

__version__ = "0.1.0"
