"""Append timestamped rants to a site's timeline document and sync it with git."""

__version__ = "0.3.0"
