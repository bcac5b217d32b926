"""Durable photo ingestion: previews, blur hash placeholders and camera metadata."""

__version__ = "0.1.0"
