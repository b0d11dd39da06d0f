"""flatstore: local household store with remote reconciliation."""

__version__ = "0.4.0"
