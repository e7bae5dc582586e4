"""Bus booking desk: booking lifecycle and reconciliation engine."""

__version__ = "1.0.0"
