"""Hybrid dense + sparse retrieval and grounded question answering over PDFs."""

__version__ = "1.0.0"
