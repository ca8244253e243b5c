"""insight-sync: mirror remote line-oriented content indexes into a local store."""

__version__ = "0.1.0"
