"""In-memory content and analytics core for a portfolio website, with HTTP request helpers."""

__version__ = "1.0.0"