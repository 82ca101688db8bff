"""Appify: website-to-app build orchestration service."""

__version__ = "1.0.0"
