"""Prometheus exporter for MongoDB Atlas process, database and disk measurements."""

__version__ = "0.1.0"
