# simstudio/schemas/__init__.py
"""Pydantic request and response models for the HTTP API."""
