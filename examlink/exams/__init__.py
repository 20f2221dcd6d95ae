"""HTTP endpoints for taking and authoring assessments."""

from .router import router

__all__ = ['router']
