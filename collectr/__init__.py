"""Federated game search across IGDB and RAWG."""

__version__ = "0.1.0"
