"""HYBRID AI coach: turns coach responses into confirmed workout mutations."""

__version__ = "0.3.0"
