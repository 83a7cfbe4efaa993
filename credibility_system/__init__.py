"""Community report corroboration and credibility scoring."""

__version__ = "0.1.0"
