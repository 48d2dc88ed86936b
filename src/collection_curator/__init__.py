"""Cohort tagging and deterministic collection ordering for catalog collections."""

__version__ = "0.1.0"
