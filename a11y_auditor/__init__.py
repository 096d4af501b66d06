"""Crawl a website and audit its pages against an external accessibility API."""

__version__ = "1.0.0"
