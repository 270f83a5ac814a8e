"""Simulation core for a day/night Earth globe with live satellites."""

__version__ = "0.1.0"
